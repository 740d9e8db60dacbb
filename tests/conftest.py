import uuid
from datetime import datetime

import pytest
import redis
import pytest_asyncio
from fastapi.testclient import TestClient

from app import app
from backend import get_backend
from realtime.hub import RealtimeHub
from realtime.sessions import Session


class InMemoryBackend:
    """Dict-backed stand-in for RedisBackend with the same method surface."""

    def __init__(self):
        self.chats = {}
        self.notifications = {}
        self.fail_writes = False

    def ping(self):
        return True

    def create_chat(self, participants):
        chat_id = uuid.uuid4().hex
        now = datetime.now().isoformat()
        self.chats[chat_id] = {
            "id": chat_id,
            "participants": list(participants),
            "messages": [],
            "last_message": "",
            "last_message_at": now,
            "created_at": now,
        }
        return self.get_chat(chat_id)

    def find_chat(self, user_a, user_b):
        for chat in self.chats.values():
            if sorted(chat["participants"]) == sorted([user_a, user_b]):
                return self.get_chat(chat["id"])
        return None

    def get_chat(self, chat_id):
        chat = self.chats.get(chat_id)
        if chat is None:
            return None
        return {**chat, "messages": list(chat["messages"])}

    def get_user_chats(self, user_id):
        chats = [self.get_chat(c) for c, chat in self.chats.items() if user_id in chat["participants"]]
        return sorted(chats, key=lambda c: c["last_message_at"], reverse=True)

    def append_message(self, chat_id, message):
        if self.fail_writes:
            raise redis.ConnectionError("write failed")
        chat = self.chats.get(chat_id)
        if chat is None:
            return None
        stored = {
            "id": uuid.uuid4().hex,
            "chat_id": chat_id,
            "sender_id": message["sender_id"],
            "text": message["text"],
            "created_at": datetime.now().isoformat(),
        }
        chat["messages"].append(stored)
        chat["last_message"] = stored["text"]
        chat["last_message_at"] = stored["created_at"]
        return stored

    def create_notification(self, data):
        stored = {
            "id": uuid.uuid4().hex,
            "recipient": data["recipient"],
            "sender": data.get("sender"),
            "type": data["type"],
            "message": data["message"],
            "idea": data.get("idea"),
            "proposal": data.get("proposal"),
            "read": False,
            "created_at": datetime.now().isoformat(),
        }
        self.notifications[stored["id"]] = stored
        return stored

    def get_notifications(self, user_id):
        found = [n for n in self.notifications.values() if n["recipient"] == user_id]
        return sorted(found, key=lambda n: n["created_at"], reverse=True)

    def mark_notification_read(self, notification_id, user_id):
        notification = self.notifications.get(notification_id)
        if notification is None or notification["recipient"] != user_id:
            return None
        notification["read"] = True
        return notification

    def mark_all_notifications_read(self, user_id):
        updated = 0
        for notification in self.get_notifications(user_id):
            if not notification["read"]:
                notification["read"] = True
                updated += 1
        return updated

    def delete_notification(self, notification_id, user_id):
        notification = self.notifications.get(notification_id)
        if notification is None or notification["recipient"] != user_id:
            return False
        del self.notifications[notification_id]
        return True


class Recorder:
    """Collects (session_id, event, data) deliveries in order."""

    def __init__(self, reachable=None):
        self.deliveries = []
        self.reachable = reachable

    def __call__(self, session_id, event, data):
        if self.reachable is not None and session_id not in self.reachable:
            return False
        self.deliveries.append((session_id, event, data))
        return True

    def to(self, session_id):
        return [(event, data) for sid, event, data in self.deliveries if sid == session_id]


@pytest.fixture
def recorder():
    return Recorder()


@pytest.fixture
def memory_backend():
    return InMemoryBackend()


@pytest.fixture
def client(memory_backend):
    app.dependency_overrides[get_backend] = lambda: memory_backend
    try:
        with TestClient(app) as test_client:
            yield test_client
    finally:
        app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def hub():
    realtime_hub = RealtimeHub()
    await realtime_hub.start()
    yield realtime_hub
    await realtime_hub.stop()


@pytest.fixture
def make_session():
    def _make(session_id=None, outbox_size=0):
        return Session(session_id or uuid.uuid4().hex, outbox_size=outbox_size)
    return _make


@pytest.fixture
def events_of():
    def _events(session):
        return [(frame["event"], frame["data"]) for frame in session.pending()]
    return _events
