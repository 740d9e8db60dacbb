from typing import Callable
from logging_config import get_logger
from realtime.events import NEW_NOTIFICATION
from realtime.registry import ConnectionRegistry

logger = get_logger(__name__)


class NotificationBridge:
    """Best-effort push of an already-persisted notification to its recipient.

    The payload is forwarded verbatim. A recipient without an active session
    is skipped; there is no queueing or retry, the durable record is what the
    client polls later.
    """

    def __init__(self, registry: ConnectionRegistry, deliver: Callable[[str, str, object], bool]):
        self._registry = registry
        self._deliver = deliver

    def push(self, recipient_id: str, payload) -> bool:
        session_id = self._registry.lookup(recipient_id)
        if session_id is None:
            logger.debug(f"Recipient {recipient_id} is offline, notification not pushed")
            return False
        delivered = self._deliver(session_id, NEW_NOTIFICATION, payload)
        logger.debug(f"Pushed notification to {recipient_id} on session {session_id}: {delivered}")
        return delivered
