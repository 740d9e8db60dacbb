from fastapi import Depends, FastAPI, Request, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from pydantic import ValidationError
import redis
import uuid
import json
import asyncio
from backend import RedisBackend, get_backend
from constants import CLIENT_URL, SESSION_OUTBOX_SIZE
from realtime.hub import RealtimeHub
from realtime.sessions import Session
from routers.chats import chats_router
from routers.notifications import notifications_router
from schemas.events import Frame
from logging_config import get_logger, setup_logging
import os

# Setup logging
log_level = os.getenv("LOG_LEVEL", "INFO")
log_file = os.getenv("LOG_FILE", None)
setup_logging(log_level=log_level, log_file=log_file)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # The hub lives exactly as long as the process serves traffic; its state is never persisted.
    hub = RealtimeHub()
    app.state.hub = hub
    await hub.start()
    try:
        yield
    finally:
        await hub.stop()


app = FastAPI(lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[CLIENT_URL],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["*"],
)

app.include_router(chats_router)
app.include_router(notifications_router)

logger.info("FastAPI application initialized")


@app.exception_handler(redis.RedisError)
async def redis_error_handler(request: Request, exc: redis.RedisError):
    logger.error(f"Redis error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(status_code=500, content={"message": "Something went wrong!"})


@app.get("/health")
async def health(backend: RedisBackend = Depends(get_backend)):
    redis_ok = backend.ping()
    return {
        "status": "OK",
        "message": "Server is running",
        "components": {"redis": {"ok": redis_ok}},
    }


async def pump_session(websocket: WebSocket, session: Session):
    """Background task draining a session's outbox onto its socket."""
    try:
        async for frame in session.frames():
            await websocket.send_text(json.dumps(frame))
    except asyncio.CancelledError:
        raise
    except Exception as e:
        # Socket went away under us; the reader side reports the disconnect.
        logger.debug(f"Stopped writing to session {session.session_id}: {e}")


@app.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """Realtime transport. Frames in both directions are `{"event": ..., "data": ...}` JSON."""
    hub: RealtimeHub = websocket.app.state.hub
    await websocket.accept()

    session = Session(str(uuid.uuid4()), outbox_size=SESSION_OUTBOX_SIZE)
    logger.info(f"User connected: {session.session_id}")
    hub.connect(session)
    writer = asyncio.create_task(pump_session(websocket, session))

    try:
        while True:
            data = await websocket.receive_text()
            try:
                frame = Frame.model_validate(json.loads(data))
            except (json.JSONDecodeError, ValidationError):
                logger.debug(f"Ignoring unparseable frame from session {session.session_id}")
                continue
            hub.dispatch(session.session_id, frame.event, frame.data)
    except WebSocketDisconnect:
        logger.info(f"User disconnected: {session.session_id}")
    except Exception as e:
        logger.error(f"WebSocket error for session {session.session_id}: {e}", exc_info=True)
    finally:
        hub.disconnect(session.session_id)
        writer.cancel()
        try:
            await writer
        except asyncio.CancelledError:
            pass
