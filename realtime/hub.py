import asyncio
from typing import Callable, Dict, Optional
from pydantic import ValidationError
from logging_config import get_logger
from realtime import events
from realtime.notifications import NotificationBridge
from realtime.presence import PresenceBroadcaster
from realtime.registry import ConnectionRegistry
from realtime.rooms import RoomRouter
from realtime.sessions import Session
from schemas.events import SendMessageEvent, SendNotificationEvent, TypingEvent

logger = get_logger(__name__)


class RealtimeHub:
    """Owner of all realtime state: sessions, registry and rooms.

    Callers never touch that state directly. Every operation is submitted to
    an inbox and executed by a single dispatcher task, one command at a time,
    so handlers run to completion without locks.
    """

    def __init__(self):
        self.sessions: Dict[str, Session] = {}
        self.registry = ConnectionRegistry()
        self.rooms = RoomRouter(self._deliver)
        self.presence = PresenceBroadcaster(lambda: self.sessions.keys(), self._deliver)
        self.bridge = NotificationBridge(self.registry, self._deliver)
        self._inbox: Optional[asyncio.Queue] = None
        self._task: Optional[asyncio.Task] = None
        self._handlers: Dict[str, Callable[[str, object], None]] = {
            events.USER_CONNECTED: self._on_user_connected,
            events.JOIN_CHAT: self._on_join_chat,
            events.LEAVE_CHAT: self._on_leave_chat,
            events.SEND_MESSAGE: self._on_send_message,
            events.TYPING: self._on_typing,
            events.STOP_TYPING: self._on_stop_typing,
            events.SEND_NOTIFICATION: self._on_send_notification,
        }

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self):
        if self.running:
            return
        self._inbox = asyncio.Queue()
        self._task = asyncio.create_task(self._run())
        logger.info("Realtime hub started")

    async def stop(self):
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        for session in self.sessions.values():
            session.close()
        self.sessions.clear()
        logger.info("Realtime hub stopped")

    async def flush(self):
        """Wait until every command submitted so far has been handled."""
        if self._inbox is not None:
            await self._inbox.join()

    def _submit(self, handler: Callable, *args):
        if self._inbox is None:
            raise RuntimeError("Realtime hub is not started")
        self._inbox.put_nowait((handler, args))

    async def _run(self):
        while True:
            handler, args = await self._inbox.get()
            try:
                handler(*args)
            except Exception as e:
                logger.error(f"Error in realtime handler {handler.__name__}: {e}", exc_info=True)
            finally:
                self._inbox.task_done()

    # Public surface, safe to call from any coroutine on the hub's loop

    def connect(self, session: Session):
        self._submit(self._on_connect, session)

    def disconnect(self, session_id: str):
        self._submit(self._on_disconnect, session_id)

    def dispatch(self, session_id: str, event: str, data=None):
        self._submit(self._on_event, session_id, event, data)

    def broadcast_message(self, chat_id: str, message: dict):
        """Fan a persisted message out to the chat room."""
        self._submit(self._on_broadcast_message, chat_id, message)

    def push_notification(self, recipient_id: str, payload: dict):
        self._submit(self.bridge.push, recipient_id, payload)

    # Handlers, run only on the dispatcher task

    def _deliver(self, session_id: str, event: str, data) -> bool:
        session = self.sessions.get(session_id)
        if session is None:
            return False
        return session.send(event, data)

    def _on_connect(self, session: Session):
        self.sessions[session.session_id] = session
        session.send(events.CONNECTED, {"sessionId": session.session_id})
        logger.debug(f"Session {session.session_id} connected (sessions: {len(self.sessions)})")

    def _on_disconnect(self, session_id: str):
        session = self.sessions.pop(session_id, None)
        if session is None:
            return
        rooms = self.rooms.leave_all(session_id)
        user_id = self.registry.unregister(session_id)
        session.close()
        if user_id is not None:
            self.presence.announce(user_id, False)
        logger.debug(f"Session {session_id} disconnected (user: {session.user_id}, rooms left: {len(rooms)})")

    def _on_event(self, session_id: str, event: str, data):
        if session_id not in self.sessions:
            logger.debug(f"Dropping {event} from unknown session {session_id}")
            return
        handler = self._handlers.get(event)
        if handler is None:
            logger.debug(f"Ignoring unknown event {event!r} from session {session_id}")
            return
        try:
            handler(session_id, data)
        except ValidationError as e:
            logger.debug(f"Ignoring malformed {event} from session {session_id}: {e.error_count()} errors")

    def _on_user_connected(self, session_id: str, user_id):
        if not isinstance(user_id, str) or not user_id:
            logger.debug(f"Ignoring user_connected with invalid user id from session {session_id}")
            return
        displaced = self.registry.register(user_id, session_id)
        self.sessions[session_id].user_id = user_id
        if displaced is not None:
            self.presence.announce(displaced, False)
        self.presence.announce(user_id, True)

    def _on_join_chat(self, session_id: str, chat_id):
        if not isinstance(chat_id, str) or not chat_id:
            return
        self.rooms.join(session_id, chat_id)
        logger.debug(f"Session {session_id} (user: {self.sessions[session_id].user_id}) joined chat {chat_id}")

    def _on_leave_chat(self, session_id: str, chat_id):
        if not isinstance(chat_id, str) or not chat_id:
            return
        self.rooms.leave(session_id, chat_id)

    def _on_send_message(self, session_id: str, data):
        payload = SendMessageEvent.model_validate(data)
        self.rooms.broadcast(payload.chat_id, events.NEW_MESSAGE, payload.message)

    def _on_typing(self, session_id: str, data):
        payload = TypingEvent.model_validate(data)
        self.rooms.typing_start(payload.chat_id, payload.user_id, origin=session_id)

    def _on_stop_typing(self, session_id: str, data):
        payload = TypingEvent.model_validate(data)
        self.rooms.typing_stop(payload.chat_id, payload.user_id, origin=session_id)

    def _on_send_notification(self, session_id: str, data):
        payload = SendNotificationEvent.model_validate(data)
        self.bridge.push(payload.recipient_id, payload.notification)

    def _on_broadcast_message(self, chat_id: str, message: dict):
        self.rooms.broadcast(chat_id, events.NEW_MESSAGE, message)
