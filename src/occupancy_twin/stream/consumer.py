"""
Snapshot Consumer
=================

WebSocket client for the tracking backend's push channel.

This module provides the SnapshotConsumer class which:
    - Connects to the backend's browser endpoint (/ws?type=browser)
    - Decodes every message with the snapshot decoder
    - Pushes decoded snapshots into a SnapshotBuffer
    - Reconnects after a fixed backoff when the channel drops
    - Exposes metrics for health monitoring

Design Rules:
    - Malformed messages are counted and skipped, never fatal
    - Does NOT touch engine state (the buffer is the only output)
"""

import asyncio
import logging
import time
from typing import Optional

import websockets
from websockets.exceptions import (
    ConnectionClosed,
    ConnectionClosedError,
    ConnectionClosedOK,
)

from occupancy_twin.models.entity import SnapshotUpdate
from occupancy_twin.stream.buffer import SnapshotBuffer
from occupancy_twin.stream.decoder import RawMessage, decode_snapshot


logger = logging.getLogger(__name__)


class SnapshotConsumerMetrics:
    """Metrics for SnapshotConsumer observability."""

    __slots__ = (
        "messages_received",
        "snapshots_accepted",
        "messages_dropped",
        "reconnect_count",
        "last_message_at",
    )

    def __init__(self) -> None:
        self.messages_received: int = 0
        self.snapshots_accepted: int = 0
        self.messages_dropped: int = 0
        self.reconnect_count: int = 0
        self.last_message_at: float = 0.0

    def to_dict(self) -> dict:
        return {
            "messages_received": self.messages_received,
            "snapshots_accepted": self.snapshots_accepted,
            "messages_dropped": self.messages_dropped,
            "reconnect_count": self.reconnect_count,
            "last_message_at": self.last_message_at,
        }


class SnapshotConsumer:
    """
    WebSocket consumer for tracking snapshots.

    Attributes:
        url: WebSocket URL to connect to
        buffer: SnapshotBuffer to push snapshots into
        connected: Whether currently connected
        metrics: Operational metrics

    Example:
        buffer = SnapshotBuffer(maxsize=50)
        consumer = SnapshotConsumer(
            url="ws://localhost:3000/ws?type=browser",
            buffer=buffer,
        )

        task = asyncio.create_task(consumer.run())
        ...
        await consumer.stop()
        await task
    """

    def __init__(
        self,
        url: str,
        buffer: SnapshotBuffer,
        reconnect_backoff_ms: int = 3000,
        max_reconnect_attempts: int = 0,
    ) -> None:
        """
        Initialize snapshot consumer.

        Args:
            url: WebSocket URL of the tracking backend
            buffer: SnapshotBuffer to push decoded snapshots into
            reconnect_backoff_ms: Wait between reconnect attempts
            max_reconnect_attempts: Max attempts (0 = unlimited)
        """
        self.url = url
        self.buffer = buffer
        self.reconnect_backoff_ms = reconnect_backoff_ms
        self.max_reconnect_attempts = max_reconnect_attempts

        self._websocket: Optional[object] = None
        self._connected: bool = False
        self._running: bool = False
        self._stop_event: asyncio.Event = asyncio.Event()

        self.metrics = SnapshotConsumerMetrics()

    @property
    def connected(self) -> bool:
        """Whether the push channel is currently open."""
        return self._connected

    async def run(self) -> None:
        """
        Start consuming snapshots.

        Runs until stop() is called or reconnect attempts run out.
        """
        self._running = True
        self._stop_event.clear()

        logger.info(f"SnapshotConsumer starting, connecting to {self.url}")

        while self._running:
            try:
                await self._connect_and_consume()
            except Exception as e:
                if not self._running:
                    break
                logger.error(f"Connection error: {e}")
                self._connected = False

            if not self._running:
                break

            if (
                self.max_reconnect_attempts > 0
                and self.metrics.reconnect_count >= self.max_reconnect_attempts
            ):
                logger.error(
                    f"Max reconnect attempts ({self.max_reconnect_attempts}) exceeded"
                )
                break

            self.metrics.reconnect_count += 1
            backoff_sec = self.reconnect_backoff_ms / 1000.0
            logger.info(
                f"Reconnecting in {backoff_sec:.1f}s "
                f"(attempt {self.metrics.reconnect_count})"
            )

            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=backoff_sec)
                break
            except asyncio.TimeoutError:
                pass

        self._running = False
        logger.info("SnapshotConsumer stopped")

    async def stop(self) -> None:
        """Signal the run loop to exit and close the connection."""
        logger.info("SnapshotConsumer stopping...")
        self._running = False
        self._stop_event.set()

        if self._websocket is not None:
            try:
                await self._websocket.close()
            except Exception as e:
                logger.debug(f"Error while closing websocket: {e}")

        self._connected = False

    async def _connect_and_consume(self) -> None:
        """Connect and consume messages until the channel closes."""
        async with websockets.connect(
            self.url,
            ping_interval=20,
            ping_timeout=10,
            close_timeout=5,
            max_size=None,
        ) as ws:
            self._websocket = ws
            self._connected = True
            logger.info(f"Connected to tracking stream: {self.url}")

            try:
                async for message in ws:
                    if not self._running:
                        break
                    await self.handle_message(message)

            except ConnectionClosedOK:
                logger.info("Connection closed normally")
            except ConnectionClosedError as e:
                logger.warning(f"Connection closed with error: {e}")
                raise
            except ConnectionClosed as e:
                logger.warning(f"Connection closed: {e}")
                raise
            finally:
                self._connected = False
                self._websocket = None

    async def handle_message(self, raw: RawMessage) -> Optional[SnapshotUpdate]:
        """
        Decode one message and buffer it if valid.

        Returns:
            The decoded snapshot, or None if the message was dropped
        """
        self.metrics.messages_received += 1
        self.metrics.last_message_at = time.time()

        update = decode_snapshot(raw)
        if update is None:
            self.metrics.messages_dropped += 1
            return None

        await self.buffer.put(update)
        self.metrics.snapshots_accepted += 1
        return update
