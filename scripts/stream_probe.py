#!/usr/bin/env python3
"""
Stream Probe
============

Standalone script to check a live tracking push channel end to end.

This script:
    1. Connects to a running tracking backend
    2. Feeds every snapshot into a TwinEngine and ticks it at 60 Hz
    3. Logs ingestion and occupancy stats every N seconds
    4. Reports a final summary

Usage:
    python scripts/stream_probe.py --duration 120
    python scripts/stream_probe.py --url ws://localhost:3000/ws?type=browser --facility coldroom2
"""

import argparse
import asyncio
import logging
import os
import sys
import time

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from occupancy_twin.config import settings
from occupancy_twin.engine import TwinEngine
from occupancy_twin.stream import SnapshotBuffer, SnapshotConsumer


logger = logging.getLogger("stream_probe")


async def run_probe(url: str, facility_id: str, duration: int, report_interval: int) -> dict:
    """
    Consume the stream for `duration` seconds.

    Returns:
        Final metrics dict
    """
    engine = TwinEngine(settings.get_facility(facility_id), settings.engine)
    buffer = SnapshotBuffer(maxsize=settings.stream.max_queue_size)
    consumer = SnapshotConsumer(url=url, buffer=buffer)

    logger.info(f"Probing {url} for {duration}s (facility={facility_id})")
    consumer_task = asyncio.create_task(consumer.run())

    interval = settings.engine.frame_interval_ms / 1000.0
    start_time = time.monotonic()
    last_tick = start_time
    last_report = start_time

    try:
        while time.monotonic() - start_time < duration:
            while (update := buffer.get_nowait()) is not None:
                engine.on_snapshot(update)

            await asyncio.sleep(interval)
            now = time.monotonic()
            engine.on_tick(engine.frames_for((now - last_tick) * 1000.0))
            last_tick = now

            if now - last_report >= report_interval:
                stats = engine.statistics
                logger.info(
                    f"connected={consumer.connected} "
                    f"received={consumer.metrics.messages_received} "
                    f"dropped={consumer.metrics.messages_dropped} "
                    f"live={engine.live_count} entries={stats.total_entries} "
                    f"visits={stats.completed_visits} avg_dwell={stats.average_dwell_seconds}s"
                )
                last_report = now
    finally:
        await consumer.stop()
        try:
            await asyncio.wait_for(consumer_task, timeout=5.0)
        except asyncio.TimeoutError:
            consumer_task.cancel()

    engine.publish_snapshot()
    summary = {
        **consumer.metrics.to_dict(),
        **engine.get_metrics(),
    }
    logger.info(f"FINAL SUMMARY: {summary}")
    return summary


def main():
    parser = argparse.ArgumentParser(description="Probe a tracking push channel")
    parser.add_argument("--url", type=str, default=settings.stream.url, help="WebSocket URL")
    parser.add_argument(
        "--facility",
        type=str,
        default=settings.active_facility,
        help="Facility id used for the heatmap grid",
    )
    parser.add_argument("--duration", type=int, default=120, help="Probe duration in seconds")
    parser.add_argument("--report-interval", type=int, default=10, help="Seconds between reports")
    args = parser.parse_args()

    result = asyncio.run(run_probe(
        url=args.url,
        facility_id=args.facility,
        duration=args.duration,
        report_interval=args.report_interval,
    ))

    sys.exit(0 if result["snapshots_accepted"] > 0 else 1)


if __name__ == "__main__":
    main()
