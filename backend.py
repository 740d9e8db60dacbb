import redis
import json
import uuid
from datetime import datetime
from typing import Optional
from constants import REDIS_HOST, REDIS_PORT, REDIS_PASSWORD
from redis_keys import (
    REDIS_CHAT_KEY,
    REDIS_CHAT_MESSAGES_KEY,
    REDIS_CHAT_PAIR_KEY,
    REDIS_USER_CHATS_KEY,
    REDIS_NOTIFICATION_KEY,
    REDIS_USER_NOTIFICATIONS_KEY,
)
from logging_config import get_logger

logger = get_logger(__name__)

# Connection is opened lazily on first command; /health reports reachability.
redis_client = redis.Redis(host=REDIS_HOST, port=REDIS_PORT, password=REDIS_PASSWORD, decode_responses=True)


class RedisBackend:
    """Durable store for chats and notifications.

    This is the source of truth. The realtime hub only ever receives objects
    returned from here, after the write has completed.
    """

    def __init__(self, client: Optional[redis.Redis] = None):
        self.redis_client = client if client is not None else redis_client
        logger.info(f"Initializing RedisBackend with connection to {REDIS_HOST}:{REDIS_PORT}")

    def ping(self) -> bool:
        try:
            return bool(self.redis_client.ping())
        except redis.RedisError as e:
            logger.error(f"Redis ping failed: {e}")
            return False

    # Chats

    def create_chat(self, participants: list) -> dict:
        chat_id = uuid.uuid4().hex
        now = datetime.now()
        logger.info(f"Creating chat {chat_id} for participants {participants}")
        key = REDIS_CHAT_KEY.format(chat_id=chat_id)
        pipe = self.redis_client.pipeline(transaction=True)
        pipe.hset(key, mapping={
            "id": chat_id,
            "participants": json.dumps(participants),
            "created_at": now.isoformat(),
            "last_message": "",
            "last_message_at": now.isoformat(),
        })
        if len(participants) == 2:
            first, second = sorted(participants)
            pipe.set(REDIS_CHAT_PAIR_KEY.format(first=first, second=second), chat_id)
        for user_id in participants:
            pipe.zadd(REDIS_USER_CHATS_KEY.format(user_id=user_id), {chat_id: now.timestamp()})
        pipe.execute()
        logger.debug(f"Chat {chat_id} created successfully with key: {key}")
        return self.get_chat(chat_id)

    def find_chat(self, user_a: str, user_b: str) -> Optional[dict]:
        """Return the existing 1:1 chat between two users, if any."""
        first, second = sorted([user_a, user_b])
        chat_id = self.redis_client.get(REDIS_CHAT_PAIR_KEY.format(first=first, second=second))
        if not chat_id:
            return None
        return self.get_chat(chat_id)

    def get_chat(self, chat_id: str) -> Optional[dict]:
        logger.debug(f"Fetching chat {chat_id}")
        chat_data = self.redis_client.hgetall(REDIS_CHAT_KEY.format(chat_id=chat_id))
        if not chat_data:
            logger.debug(f"Chat {chat_id} not found in Redis")
            return None
        try:
            participants = json.loads(chat_data.get("participants", "[]"))
        except (json.JSONDecodeError, TypeError):
            logger.warning(f"Chat {chat_id} has unreadable participants field")
            participants = []
        raw_messages = self.redis_client.lrange(REDIS_CHAT_MESSAGES_KEY.format(chat_id=chat_id), 0, -1)
        messages = []
        for raw in raw_messages:
            try:
                messages.append(json.loads(raw))
            except json.JSONDecodeError:
                logger.warning(f"Skipping unreadable message in chat {chat_id}")
        return {
            "id": chat_data.get("id", chat_id),
            "participants": participants,
            "messages": messages,
            "last_message": chat_data.get("last_message", ""),
            "last_message_at": chat_data.get("last_message_at", ""),
            "created_at": chat_data.get("created_at", ""),
        }

    def get_user_chats(self, user_id: str) -> list:
        """All chats the user takes part in, most recently active first."""
        chat_ids = self.redis_client.zrevrange(REDIS_USER_CHATS_KEY.format(user_id=user_id), 0, -1)
        chats = []
        for chat_id in chat_ids:
            chat = self.get_chat(chat_id)
            if chat:
                chats.append(chat)
        logger.debug(f"User {user_id} has {len(chats)} chats")
        return chats

    def append_message(self, chat_id: str, message: dict) -> Optional[dict]:
        """Append `{sender_id, text}` to a chat and return the stored message.

        The returned dict is the exact object written, so it can be handed to
        the room router without rebuilding ids or timestamps.
        """
        chat = self.get_chat(chat_id)
        if chat is None:
            logger.warning(f"Cannot append message: chat {chat_id} not found")
            return None
        now = datetime.now()
        stored = {
            "id": uuid.uuid4().hex,
            "chat_id": chat_id,
            "sender_id": message["sender_id"],
            "text": message["text"],
            "created_at": now.isoformat(),
        }
        pipe = self.redis_client.pipeline(transaction=True)
        pipe.rpush(REDIS_CHAT_MESSAGES_KEY.format(chat_id=chat_id), json.dumps(stored))
        pipe.hset(REDIS_CHAT_KEY.format(chat_id=chat_id), mapping={
            "last_message": stored["text"],
            "last_message_at": stored["created_at"],
        })
        for user_id in chat["participants"]:
            pipe.zadd(REDIS_USER_CHATS_KEY.format(user_id=user_id), {chat_id: now.timestamp()})
        pipe.execute()
        logger.debug(f"Stored message {stored['id']} in chat {chat_id}")
        return stored

    # Notifications

    def create_notification(self, data: dict) -> dict:
        now = datetime.now()
        stored = {
            "id": uuid.uuid4().hex,
            "recipient": data["recipient"],
            "sender": data.get("sender"),
            "type": data["type"],
            "message": data["message"],
            "idea": data.get("idea"),
            "proposal": data.get("proposal"),
            "read": False,
            "created_at": now.isoformat(),
        }
        pipe = self.redis_client.pipeline(transaction=True)
        pipe.set(REDIS_NOTIFICATION_KEY.format(notification_id=stored["id"]), json.dumps(stored))
        pipe.zadd(
            REDIS_USER_NOTIFICATIONS_KEY.format(user_id=stored["recipient"]),
            {stored["id"]: now.timestamp()},
        )
        pipe.execute()
        logger.info(f"Created {stored['type']} notification {stored['id']} for user {stored['recipient']}")
        return stored

    def get_notification(self, notification_id: str) -> Optional[dict]:
        raw = self.redis_client.get(REDIS_NOTIFICATION_KEY.format(notification_id=notification_id))
        if not raw:
            return None
        return json.loads(raw)

    def get_notifications(self, user_id: str) -> list:
        ids = self.redis_client.zrevrange(REDIS_USER_NOTIFICATIONS_KEY.format(user_id=user_id), 0, -1)
        if not ids:
            return []
        raws = self.redis_client.mget([REDIS_NOTIFICATION_KEY.format(notification_id=i) for i in ids])
        return [json.loads(raw) for raw in raws if raw]

    def mark_notification_read(self, notification_id: str, user_id: str) -> Optional[dict]:
        notification = self.get_notification(notification_id)
        if notification is None or notification.get("recipient") != user_id:
            return None
        notification["read"] = True
        self.redis_client.set(REDIS_NOTIFICATION_KEY.format(notification_id=notification_id), json.dumps(notification))
        return notification

    def mark_all_notifications_read(self, user_id: str) -> int:
        updated = 0
        pipe = self.redis_client.pipeline(transaction=True)
        for notification in self.get_notifications(user_id):
            if notification.get("read"):
                continue
            notification["read"] = True
            pipe.set(REDIS_NOTIFICATION_KEY.format(notification_id=notification["id"]), json.dumps(notification))
            updated += 1
        if updated:
            pipe.execute()
        logger.debug(f"Marked {updated} notifications read for user {user_id}")
        return updated

    def delete_notification(self, notification_id: str, user_id: str) -> bool:
        notification = self.get_notification(notification_id)
        if notification is None or notification.get("recipient") != user_id:
            return False
        pipe = self.redis_client.pipeline(transaction=True)
        pipe.delete(REDIS_NOTIFICATION_KEY.format(notification_id=notification_id))
        pipe.zrem(REDIS_USER_NOTIFICATIONS_KEY.format(user_id=user_id), notification_id)
        pipe.execute()
        logger.info(f"Deleted notification {notification_id}")
        return True


redis_backend = RedisBackend()


def get_backend() -> RedisBackend:
    return redis_backend
