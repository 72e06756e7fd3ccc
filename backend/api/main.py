from fastapi import FastAPI, WebSocket, WebSocketDisconnect, HTTPException
from fastapi.middleware.cors import CORSMiddleware
import os
import asyncio
import math
import threading
import json
import logging
from typing import Set
from contextlib import asynccontextmanager

from backend import metrics
from backend.adapters.sim import SimSource
from pfd.config import ConfigManager
from pfd.exceptions import ConfigurationError, PfdException
from pfd.models.signal_word import transport_value
from pfd.services.service_container import ServiceContainer

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan handler: build the display services, start the SimSource reader
    thread, the sample consumer and the frame broadcaster.
    """
    container = ServiceContainer()
    container.initialize_services(ConfigManager())
    pfd = container.get_pfd_service()

    # samples cross from the blocking reader thread into the event loop;
    # every PfdService call happens on the loop thread
    sample_queue: asyncio.Queue = asyncio.Queue()
    frame_queue: asyncio.Queue = asyncio.Queue()
    clients: Set[WebSocket] = set()

    pfd.add_frame_listener(frame_queue.put_nowait)

    sim = SimSource()
    sim.open()

    loop = asyncio.get_running_loop()
    reader_thread = threading.Thread(target=_sim_reader_loop, args=(loop, sample_queue, sim), daemon=True)
    reader_thread.start()

    consumer = asyncio.create_task(_sample_consumer(app, sample_queue))
    broadcaster = asyncio.create_task(_broadcaster_task(frame_queue, clients))

    app.state.container = container
    app.state.pfd = pfd
    app.state.sim = sim
    app.state.sample_queue = sample_queue
    app.state.frame_queue = frame_queue
    app.state.clients = clients
    app.state.decode_failures_seen = 0
    app.state._reader_thread = reader_thread
    app.state._consumer = consumer
    app.state._broadcaster = broadcaster

    try:
        yield
    finally:
        logger.info("Shutting down sample source and display services...")
        sim.close()
        await sample_queue.put(None)
        await frame_queue.put(None)
        for task in (consumer, broadcaster):
            try:
                await task
            except Exception as e:
                logger.warning(f"Error awaiting background task: {e}", exc_info=True)
        container.clear()
        app.state.pfd = None
        app.state.sim = None


app = FastAPI(title="PFD Display Backend", lifespan=lifespan)

# Allow local static server or other local origins to call the API during dev/testing.
if os.environ.get("ENV", "development") in ("development", "test"):
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[
            "http://localhost:8080",
            "http://127.0.0.1:8080",
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ],
        allow_methods=["*"],
        allow_headers=["*"],
        allow_credentials=False,
    )


@app.get("/api/health")
def health():
    """Simple health endpoint for smoke tests."""
    pfd = getattr(app.state, "pfd", None)
    return {
        "status": "ok",
        "service": "pfd-backend",
        "version": "0.1",
        "display_state": pfd.state.value if pfd is not None else None,
    }


def _require_pfd():
    pfd = getattr(app.state, "pfd", None)
    if pfd is None:
        raise HTTPException(status_code=503, detail="Display service not available")
    return pfd


def _record_decode_failures(pfd) -> None:
    seen = getattr(app.state, "decode_failures_seen", 0)
    current = pfd.signals.decode_failures
    if current > seen:
        metrics.inc("decode_failure", current - seen)
        app.state.decode_failures_seen = current


def _apply_sample(pfd, name: str, word: float) -> None:
    pfd.publish(name, word)
    metrics.inc("samples_in")
    _record_decode_failures(pfd)


async def _broadcaster_task(frame_queue: asyncio.Queue, clients: Set[WebSocket]):
    """Async task that consumes display frames and broadcasts them to clients."""
    while True:
        frame = await frame_queue.get()
        if frame is None:
            break
        if not clients:
            continue
        payload = json.dumps(frame.to_dict())
        to_remove = []
        for ws in list(clients):
            try:
                await ws.send_text(payload)
            except Exception as e:
                logger.debug(f"WebSocket send error, removing client: {e}")
                to_remove.append(ws)
        for ws in to_remove:
            clients.discard(ws)


async def _sample_consumer(app: FastAPI, sample_queue: asyncio.Queue):
    """Async task that applies samples from the SimSource to the display."""
    while True:
        sample = await sample_queue.get()
        if sample is None:
            break
        pfd = getattr(app.state, "pfd", None)
        if pfd is None:
            continue
        _apply_sample(pfd, sample.name, sample.word)


def _sim_reader_loop(loop: asyncio.AbstractEventLoop, sample_queue: asyncio.Queue, sim: SimSource):
    """Blocking thread loop: reads from sim.iter_recv() and enqueues samples into the asyncio queue."""
    try:
        for sample in sim.iter_recv():
            loop.call_soon_threadsafe(sample_queue.put_nowait, sample)
    except Exception as e:
        logger.error(f"Sim reader loop error: {e}", exc_info=True)


@app.websocket("/ws/display")
async def websocket_display(ws: WebSocket):
    """WebSocket endpoint that streams display frames to connected clients.

    The current frame is sent on connect, then a frame after every sample or
    tick, as the JSON form of DisplayFrame.to_dict().
    """
    await ws.accept()
    clients: Set[WebSocket] = app.state.clients
    clients.add(ws)
    pfd = getattr(app.state, "pfd", None)
    if pfd is not None:
        await ws.send_text(json.dumps(pfd.frame().to_dict()))
    try:
        while True:
            try:
                await ws.receive_text()
            except WebSocketDisconnect:
                break
    finally:
        clients.discard(ws)
        logger.debug("WebSocket client disconnected and removed")


@app.post("/api/samples")
async def api_samples(payload: dict):
    """Publish one sample to the display.

    Payload: { "name": str, "value": float, "ssm": int|str } or
    { "name": str, "value": float } (word channels default to normal
    operation, other channels take the plain number and text channels such
    as nav_ident a string), or
    { "name": str, "word": float } for a raw transport value.
    """
    pfd = _require_pfd()
    name = payload.get("name")
    if not isinstance(name, str) or not name:
        raise HTTPException(status_code=400, detail="name is required")
    if "word" not in payload and "value" not in payload:
        raise HTTPException(status_code=400, detail="value or word is required")

    try:
        if "word" in payload:
            word = float(payload["word"])
        else:
            word = transport_value(name, payload["value"], payload.get("ssm"))
    except (ValueError, TypeError, PfdException) as e:
        logger.warning(f"Rejected sample for {name}: {e}")
        raise HTTPException(status_code=400, detail=f"Invalid sample: {e}")

    _apply_sample(pfd, name, word)
    return {"status": "ok", "state": pfd.state.value}


@app.post("/api/tick")
async def api_tick(payload: dict):
    """Advance the display's virtual time. Payload: { "dt": seconds }"""
    pfd = _require_pfd()
    try:
        dt = float(payload.get("dt", 0.0))
    except (ValueError, TypeError):
        raise HTTPException(status_code=400, detail=f"Invalid dt: {payload.get('dt')!r}")
    if not math.isfinite(dt) or dt < 0:
        raise HTTPException(status_code=400, detail=f"dt must be a non-negative number, got {dt}")
    try:
        frame = pfd.tick(dt)
    except ConfigurationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    metrics.inc("ticks")
    _record_decode_failures(pfd)
    return {"status": "ok", "time": frame.time, "state": frame.state}


@app.get("/api/display")
async def api_display():
    """Return the latest display frame."""
    return _require_pfd().frame().to_dict()


@app.post("/api/reset")
async def api_reset():
    """Reset instrument filter memory (e.g. after a simulator reset)."""
    _require_pfd().reset()
    return {"status": "ok"}


# metrics router (small and safe to include)
try:
    from backend.api import metrics as _metrics_module
    app.include_router(_metrics_module.router)
except ImportError:
    logger.debug("Metrics router not available")
