from typing import Callable, Iterable
from logging_config import get_logger
from realtime.events import USER_STATUS

logger = get_logger(__name__)


class PresenceBroadcaster:
    # Presence goes to every connected session, not just a user's contacts.
    def __init__(self, sessions: Callable[[], Iterable[str]], deliver: Callable[[str, str, object], bool]):
        self._sessions = sessions
        self._deliver = deliver

    def announce(self, user_id: str, online: bool) -> int:
        status = {"userId": user_id, "online": online}
        delivered = 0
        for session_id in list(self._sessions()):
            if self._deliver(session_id, USER_STATUS, status):
                delivered += 1
        logger.info(f"User {user_id} is {'online' if online else 'offline'} (announced to {delivered} sessions)")
        return delivered
