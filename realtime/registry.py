from typing import Dict, Optional
from logging_config import get_logger

logger = get_logger(__name__)


class ConnectionRegistry:
    """Maps a user identity to its single active session.

    Last registration wins; there is no multi-device fan-out. The registry is
    process-local and starts empty, so presence is unknown until clients
    re-register after a restart.
    """

    def __init__(self):
        self._session_by_user: Dict[str, str] = {}
        self._user_by_session: Dict[str, str] = {}

    def register(self, user_id: str, session_id: str) -> Optional[str]:
        """Point `user_id` at `session_id`, overwriting any prior mapping.

        Returns the user previously bound to this same session if that user's
        mapping had to be dropped (a session re-identifying as someone else).
        """
        displaced = None
        previous_user = self._user_by_session.get(session_id)
        if previous_user is not None and previous_user != user_id:
            if self._session_by_user.get(previous_user) == session_id:
                del self._session_by_user[previous_user]
                displaced = previous_user

        previous_session = self._session_by_user.get(user_id)
        if previous_session is not None and previous_session != session_id:
            logger.debug(f"User {user_id} moved from session {previous_session} to {session_id}")

        self._session_by_user[user_id] = session_id
        self._user_by_session[session_id] = user_id
        return displaced

    def lookup(self, user_id: str) -> Optional[str]:
        return self._session_by_user.get(user_id)

    def unregister(self, session_id: str) -> Optional[str]:
        """Forget `session_id`. Returns the user whose mapping was removed.

        A stale session (its user has since registered a newer one) leaves the
        newer mapping untouched and returns None.
        """
        user_id = self._user_by_session.pop(session_id, None)
        if user_id is None:
            return None
        if self._session_by_user.get(user_id) != session_id:
            logger.debug(f"Ignoring stale disconnect of session {session_id} for user {user_id}")
            return None
        del self._session_by_user[user_id]
        return user_id
