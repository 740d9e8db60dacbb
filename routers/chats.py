from fastapi import APIRouter, Depends, HTTPException, Response
import redis
from backend import RedisBackend, get_backend
from constants import BROADCAST_ON_PERSIST
from realtime.hub import RealtimeHub
from routers.dependencies import get_current_user, get_hub
from schemas.chats import ChatResponse, CreateChatRequest, SendMessageRequest
from logging_config import get_logger

logger = get_logger(__name__)

chats_router = APIRouter(prefix="/chats", tags=["chats"])


def _get_participant_chat(backend: RedisBackend, chat_id: str, user_id: str) -> dict:
    chat = backend.get_chat(chat_id)
    if not chat:
        logger.warning(f"Chat {chat_id} not found")
        raise HTTPException(status_code=404, detail="Chat not found")
    if user_id not in chat["participants"]:
        logger.warning(f"User {user_id} is not a participant of chat {chat_id}")
        raise HTTPException(status_code=403, detail="Not authorized")
    return chat


@chats_router.get("/", response_model=list[ChatResponse])
async def get_chats(user_id: str = Depends(get_current_user), backend: RedisBackend = Depends(get_backend)):
    return backend.get_user_chats(user_id)


@chats_router.post("/", response_model=ChatResponse)
async def create_chat(
    body: CreateChatRequest,
    response: Response,
    user_id: str = Depends(get_current_user),
    backend: RedisBackend = Depends(get_backend),
):
    """Return the 1:1 chat between the caller and `user_id`, creating it if needed."""
    if not body.user_id:
        raise HTTPException(status_code=400, detail="User ID is required")

    chat = backend.find_chat(user_id, body.user_id)
    if chat:
        return chat

    chat = backend.create_chat([user_id, body.user_id])
    response.status_code = 201
    return chat


@chats_router.get("/{chat_id}/messages", response_model=ChatResponse)
async def get_chat_messages(
    chat_id: str,
    user_id: str = Depends(get_current_user),
    backend: RedisBackend = Depends(get_backend),
):
    return _get_participant_chat(backend, chat_id, user_id)


@chats_router.post("/{chat_id}/messages", response_model=ChatResponse)
async def send_message(
    chat_id: str,
    body: SendMessageRequest,
    user_id: str = Depends(get_current_user),
    backend: RedisBackend = Depends(get_backend),
    hub: RealtimeHub = Depends(get_hub),
):
    """Persist a message, then hand the stored copy to the chat room.

    Room members only ever see messages that are already durable. A failed
    write raises before anything is broadcast.
    """
    _get_participant_chat(backend, chat_id, user_id)

    try:
        stored = backend.append_message(chat_id, {"sender_id": user_id, "text": body.text})
    except redis.RedisError as e:
        logger.error(f"Error storing message in chat {chat_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to send message")
    if stored is None:
        raise HTTPException(status_code=404, detail="Chat not found")

    if BROADCAST_ON_PERSIST:
        hub.broadcast_message(chat_id, stored)
    logger.info(f"Message {stored['id']} sent to chat {chat_id} by {user_id}")

    return backend.get_chat(chat_id)
