from typing import Callable, Dict, Optional, Set
from logging_config import get_logger
from realtime.events import USER_TYPING, USER_STOP_TYPING

logger = get_logger(__name__)

Deliver = Callable[[str, str, object], bool]


class RoomRouter:
    """Room membership table and per-room fan-out.

    Format: {room_id: {session_id: None}} - a dict keeps members in join
    order, so every broadcast visits them in the same sequence.
    """

    def __init__(self, deliver: Deliver):
        self._deliver = deliver
        self._members: Dict[str, Dict[str, None]] = {}
        self._rooms_by_session: Dict[str, Set[str]] = {}

    def join(self, session_id: str, room_id: str) -> bool:
        members = self._members.setdefault(room_id, {})
        if session_id in members:
            return False
        members[session_id] = None
        self._rooms_by_session.setdefault(session_id, set()).add(room_id)
        logger.debug(f"Session {session_id} joined room {room_id} (members: {len(members)})")
        return True

    def leave(self, session_id: str, room_id: str) -> bool:
        members = self._members.get(room_id)
        if not members or session_id not in members:
            return False
        del members[session_id]
        if not members:
            del self._members[room_id]
        rooms = self._rooms_by_session.get(session_id)
        if rooms is not None:
            rooms.discard(room_id)
            if not rooms:
                del self._rooms_by_session[session_id]
        logger.debug(f"Session {session_id} left room {room_id}")
        return True

    def leave_all(self, session_id: str) -> list:
        rooms = sorted(self._rooms_by_session.get(session_id, ()))
        for room_id in rooms:
            self.leave(session_id, room_id)
        return rooms

    def members(self, room_id: str) -> list:
        return list(self._members.get(room_id, ()))

    def broadcast(self, room_id: str, event: str, payload, exclude: Optional[str] = None) -> int:
        """Deliver to every member of `room_id` except `exclude`. Returns the delivery count."""
        delivered = 0
        for session_id in self.members(room_id):
            if session_id == exclude:
                continue
            if self._deliver(session_id, event, payload):
                delivered += 1
        logger.debug(f"Broadcast {event} to {delivered} sessions in room {room_id}")
        return delivered

    def typing_start(self, room_id: str, user_id: str, origin: str) -> int:
        return self.broadcast(room_id, USER_TYPING, {"userId": user_id}, exclude=origin)

    def typing_stop(self, room_id: str, user_id: str, origin: str) -> int:
        return self.broadcast(room_id, USER_STOP_TYPING, {"userId": user_id}, exclude=origin)
