"""
Stream Module
=============

Push-channel consumption, decoding and buffering.

This module provides the ingestion layer for the occupancy twin:
    - decode_snapshot: Wire message -> SnapshotUpdate (or None)
    - SnapshotBuffer: Async-safe bounded queue (drops oldest on overflow)
    - SnapshotConsumer: WebSocket client with reconnection

Example:
    from occupancy_twin.stream import SnapshotBuffer, SnapshotConsumer

    buffer = SnapshotBuffer(maxsize=50)
    consumer = SnapshotConsumer(
        url="ws://localhost:3000/ws?type=browser",
        buffer=buffer,
        reconnect_backoff_ms=3000,
    )

    task = asyncio.create_task(consumer.run())

    while True:
        update = await buffer.get()
        engine.on_snapshot(update)
"""

from occupancy_twin.stream.decoder import decode_snapshot, heading_from_orientation
from occupancy_twin.stream.buffer import SnapshotBuffer
from occupancy_twin.stream.consumer import SnapshotConsumer, SnapshotConsumerMetrics


__all__ = [
    "decode_snapshot",
    "heading_from_orientation",
    "SnapshotBuffer",
    "SnapshotConsumer",
    "SnapshotConsumerMetrics",
]
