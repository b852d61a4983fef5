"""
Snapshot Buffer
===============

Hand-off point between the push-channel consumer and the processing loop.

Snapshots are full presence lists, so a newer one supersedes an older
one. When the processing loop falls behind, the stalest pending
snapshot is discarded and counted in dropped_count.
"""

import asyncio
import logging
from typing import Optional

from occupancy_twin.models.entity import SnapshotUpdate


logger = logging.getLogger(__name__)


class SnapshotBuffer:
    """
    Bounded asyncio queue of decoded snapshots that evicts the oldest.

    Example:
        buffer = SnapshotBuffer(maxsize=50)
        await buffer.put(update)          # consumer side
        update = await buffer.get(1.0)    # processing loop
    """

    def __init__(self, maxsize: int = 50) -> None:
        if maxsize < 1:
            raise ValueError("maxsize must be >= 1")

        self._queue: asyncio.Queue[SnapshotUpdate] = asyncio.Queue(maxsize=maxsize)
        self._dropped_count: int = 0

    @property
    def size(self) -> int:
        """Snapshots waiting to be merged."""
        return self._queue.qsize()

    @property
    def dropped_count(self) -> int:
        """Snapshots evicted because the processing loop fell behind."""
        return self._dropped_count

    async def put(self, update: SnapshotUpdate) -> bool:
        """
        Enqueue a snapshot.

        Returns:
            False if a stale snapshot had to be evicted first, else True
        """
        evicted = False
        if self._queue.full():
            self._queue.get_nowait()
            self._dropped_count += 1
            evicted = True
            logger.warning(
                f"Snapshot buffer full ({self._queue.maxsize}), evicted stale snapshot; "
                f"{self._dropped_count} evicted so far"
            )

        self._queue.put_nowait(update)
        return not evicted

    async def get(self, timeout: Optional[float] = None) -> Optional[SnapshotUpdate]:
        """Wait for the next snapshot; None once timeout seconds pass."""
        if timeout is None:
            return await self._queue.get()
        try:
            return await asyncio.wait_for(self._queue.get(), timeout=timeout)
        except asyncio.TimeoutError:
            return None

    def get_nowait(self) -> Optional[SnapshotUpdate]:
        try:
            return self._queue.get_nowait()
        except asyncio.QueueEmpty:
            return None

    def clear(self) -> int:
        """Discard pending snapshots and return how many were discarded."""
        discarded = 0
        while self.get_nowait() is not None:
            discarded += 1
        if discarded:
            logger.info(f"Snapshot buffer cleared ({discarded} pending snapshots discarded)")
        return discarded
