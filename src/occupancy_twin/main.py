"""
Occupancy Twin Main Application
===============================

FastAPI entry point for the occupancy twin service.

Background tasks:
    - SnapshotConsumer: push channel -> SnapshotBuffer
    - process_snapshots: SnapshotBuffer -> TwinEngine.on_snapshot
    - run_ticks: fixed-rate clock -> TwinEngine.on_tick

All three run on one event loop, so engine merges and ticks are
serialized by the scheduler.

Endpoints:
    GET  /                          - Service information
    GET  /health                    - Liveness probe
    GET  /ready                     - Readiness probe
    GET  /metrics                   - Operational metrics
    GET  /entities                  - Live entities
    GET  /heatmap                   - Latest published heatmap
    GET  /stats                     - Visit statistics
    GET  /output                    - Full output payload
    GET  /frame                     - Latest camera image (JPEG)
    GET  /facilities                - Configured facilities
    POST /facilities/{id}/activate  - Switch facility (resets engine)
    WS   /ws/output                 - Real-time output stream
"""

import asyncio
import logging
import os
import signal
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse, Response

from occupancy_twin.config import settings
from occupancy_twin.engine import TwinEngine
from occupancy_twin.stream import SnapshotBuffer, SnapshotConsumer


logger = logging.getLogger(__name__)


# =============================================================================
# Global State
# =============================================================================

_shutdown_flag: bool = False

_snapshot_buffer: Optional[SnapshotBuffer] = None
_snapshot_consumer: Optional[SnapshotConsumer] = None
_consumer_task: Optional[asyncio.Task] = None

_engine: Optional[TwinEngine] = None
_processing_task: Optional[asyncio.Task] = None
_tick_task: Optional[asyncio.Task] = None

_startup_time: float = time.time()
_is_ready: bool = False
_snapshot_error_count: int = 0
_tick_error_count: int = 0


# =============================================================================
# Getters
# =============================================================================

def get_engine() -> TwinEngine:
    if _engine is None:
        raise HTTPException(status_code=503, detail="Engine not initialized")
    return _engine

def get_snapshot_buffer() -> Optional[SnapshotBuffer]:
    return _snapshot_buffer

def get_snapshot_consumer() -> Optional[SnapshotConsumer]:
    return _snapshot_consumer

def is_ready() -> bool:
    return _is_ready


# =============================================================================
# Signal Handlers
# =============================================================================

def _handle_sigterm(signum, frame):
    """Handle SIGTERM for graceful shutdown."""
    global _shutdown_flag
    logger.info("Received SIGTERM, initiating graceful shutdown...")
    _shutdown_flag = True


# =============================================================================
# Background Loops
# =============================================================================

async def process_snapshots(buffer: SnapshotBuffer, engine: TwinEngine) -> None:
    """Drain the snapshot buffer into the engine."""
    global _is_ready, _snapshot_error_count

    logger.info("Snapshot processing loop started")
    _is_ready = True

    while not _shutdown_flag:
        try:
            update = await buffer.get(timeout=1.0)
            if update is None:
                continue
            delta = engine.on_snapshot(update)
            if delta.created or delta.retired:
                logger.debug(
                    f"Merged snapshot: +{len(delta.created)} "
                    f"-{len(delta.retired)} live={delta.live_count}"
                )
        except asyncio.CancelledError:
            logger.info("Snapshot processing loop cancelled")
            break
        except Exception as e:
            _snapshot_error_count += 1
            logger.error(f"Snapshot processing error: {e}")

    _is_ready = False
    logger.info("Snapshot processing loop stopped")


async def run_ticks(engine: TwinEngine) -> None:
    """Drive on_tick at the nominal frame rate."""
    global _tick_error_count

    interval = engine.config.frame_interval_ms / 1000.0
    last = time.monotonic()
    logger.info(f"Tick loop started ({1.0 / interval:.0f} Hz)")

    while not _shutdown_flag:
        try:
            await asyncio.sleep(interval)
            now = time.monotonic()
            engine.on_tick(engine.frames_for((now - last) * 1000.0))
            last = now
        except asyncio.CancelledError:
            logger.info("Tick loop cancelled")
            break
        except Exception as e:
            _tick_error_count += 1
            logger.error(f"Tick error: {e}")

    logger.info("Tick loop stopped")


async def _cancel(task: Optional[asyncio.Task]) -> None:
    if task is None:
        return
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass


# =============================================================================
# Lifespan Management
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan manager with graceful shutdown."""
    global _snapshot_buffer, _snapshot_consumer, _consumer_task
    global _engine, _processing_task, _tick_task, _startup_time, _shutdown_flag

    signal.signal(signal.SIGTERM, _handle_sigterm)

    _startup_time = time.time()
    _shutdown_flag = False
    logger.info(f"Starting {settings.service.name} {settings.service.version}")

    _engine = TwinEngine(
        facility=settings.get_facility(settings.active_facility),
        config=settings.engine,
    )

    logger.info(f"Stream URL: {settings.stream.url}")
    _snapshot_buffer = SnapshotBuffer(maxsize=settings.stream.max_queue_size)
    _snapshot_consumer = SnapshotConsumer(
        url=settings.stream.url,
        buffer=_snapshot_buffer,
        reconnect_backoff_ms=settings.stream.reconnect_backoff_ms,
        max_reconnect_attempts=settings.stream.max_reconnect_attempts,
    )
    _consumer_task = asyncio.create_task(_snapshot_consumer.run(), name="snapshot_consumer")
    _processing_task = asyncio.create_task(
        process_snapshots(_snapshot_buffer, _engine),
        name="snapshot_processing",
    )
    _tick_task = asyncio.create_task(run_ticks(_engine), name="render_ticks")

    logger.info("All components started")

    yield

    logger.info("Shutting down gracefully...")
    _shutdown_flag = True

    await _cancel(_tick_task)
    await _cancel(_processing_task)

    if _snapshot_consumer:
        await _snapshot_consumer.stop()

    if _consumer_task:
        try:
            await asyncio.wait_for(_consumer_task, timeout=5.0)
        except asyncio.TimeoutError:
            await _cancel(_consumer_task)

    logger.info("Shutdown complete")


# =============================================================================
# FastAPI Application
# =============================================================================

app = FastAPI(
    title="OccupancyTwin",
    description="Smoothed occupancy model and utilization heatmap for monitored spaces",
    version=settings.service.version,
    lifespan=lifespan,
)


# =============================================================================
# HTTP Endpoints
# =============================================================================

@app.get("/")
async def root() -> JSONResponse:
    """Service information endpoint."""
    return JSONResponse({
        "service": "OccupancyTwin",
        "version": settings.service.version,
        "name": settings.service.name,
        "status": "running",
        "facility": _engine.facility.id if _engine else None,
    })


@app.get("/health")
async def health() -> JSONResponse:
    """Liveness probe - always 200 while the process is up."""
    return JSONResponse({
        "status": "healthy",
        "uptime_seconds": round(time.time() - _startup_time, 1),
    })


@app.get("/ready")
async def ready() -> JSONResponse:
    """
    Readiness probe.

    Returns 200 once the engine is up and either the stream is
    connected or the processing loop is running; 503 otherwise.
    """
    consumer = get_snapshot_consumer()
    stream_connected = consumer.connected if consumer else False
    engine_ready = _engine is not None and _is_ready

    body = {
        "stream_connected": stream_connected,
        "engine_initialized": engine_ready,
    }
    if _engine is not None and (stream_connected or engine_ready):
        return JSONResponse({"status": "ready", **body})
    return JSONResponse({"status": "not_ready", **body}, status_code=503)


@app.get("/metrics")
async def metrics() -> JSONResponse:
    """Detailed metrics for observability."""
    consumer = get_snapshot_consumer()
    buffer = get_snapshot_buffer()

    stream_metrics = {}
    if consumer and buffer:
        stream_metrics = {
            "stream_connected": consumer.connected,
            **consumer.metrics.to_dict(),
            "buffer_size": buffer.size,
            "buffer_dropped": buffer.dropped_count,
        }

    return JSONResponse({
        "uptime_seconds": round(time.time() - _startup_time, 1),
        "snapshot_errors": _snapshot_error_count,
        "tick_errors": _tick_error_count,
        **stream_metrics,
        "engine": get_engine().get_metrics() if _engine else None,
    })


@app.get("/entities")
async def entities() -> JSONResponse:
    """Live entities with display positions and trails."""
    views = get_engine().entity_views()
    return JSONResponse([v.model_dump(mode="json") for v in views])


@app.get("/heatmap")
async def heatmap() -> JSONResponse:
    """Latest published heatmap snapshot."""
    return JSONResponse(get_engine().heatmap_view().model_dump(mode="json"))


@app.get("/stats")
async def stats() -> JSONResponse:
    """Current visit statistics."""
    return JSONResponse(get_engine().statistics.to_dict())


@app.get("/output")
async def output() -> JSONResponse:
    """Full output payload."""
    return JSONResponse(get_engine().output().model_dump(mode="json"))


@app.get("/frame")
async def frame() -> Response:
    """Latest camera image received on the push channel."""
    image = get_engine().latest_image
    if image is None:
        return JSONResponse({"error": "No camera image received yet"}, status_code=404)
    return Response(content=image, media_type="image/jpeg")


@app.get("/facilities")
async def facilities() -> JSONResponse:
    """Configured facilities and the active one."""
    engine = get_engine()
    return JSONResponse({
        "active": engine.facility.id,
        "facilities": [f.model_dump(mode="json") for f in settings.facilities],
    })


@app.post("/facilities/{facility_id}/activate")
async def activate_facility(facility_id: str) -> JSONResponse:
    """Switch the active facility, discarding entities and heatmap."""
    try:
        facility = settings.get_facility(facility_id)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Unknown facility: {facility_id}")

    engine = get_engine()
    engine.reset(facility)
    buffer = get_snapshot_buffer()
    if buffer is not None:
        buffer.clear()

    logger.info(f"Active facility switched to '{facility_id}'")
    return JSONResponse({"active": facility.id})


# =============================================================================
# WebSocket Endpoints
# =============================================================================

@app.websocket("/ws/output")
async def output_stream(websocket: WebSocket) -> None:
    """WebSocket endpoint for real-time output."""
    await websocket.accept()
    logger.info("Client connected to /ws/output")

    try:
        while not _shutdown_flag:
            if _engine is not None:
                await websocket.send_json(_engine.output().model_dump(mode="json"))
            await asyncio.sleep(1.0)
    except WebSocketDisconnect:
        pass
    except Exception as e:
        logger.warning(f"WebSocket error: {e}")
    finally:
        logger.info("Client disconnected from /ws/output")


# =============================================================================
# Main Entry Point
# =============================================================================

def run() -> None:
    """Console entry point."""
    import uvicorn

    port = int(os.environ.get("PORT", settings.server.port))

    uvicorn.run(
        "occupancy_twin.main:app",
        host=settings.server.host,
        port=port,
        reload=False,
    )


if __name__ == "__main__":
    run()
