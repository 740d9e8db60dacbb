import asyncio
from typing import AsyncIterator, Optional
from logging_config import get_logger

logger = get_logger(__name__)


class Session:
    """One live transport connection and its outbound frame queue."""

    def __init__(self, session_id: str, outbox_size: int = 0):
        self.session_id = session_id
        self.user_id: Optional[str] = None
        self.closed = False
        self._outbox: asyncio.Queue = asyncio.Queue(maxsize=outbox_size)
        self.dropped = 0

    def send(self, event: str, data) -> bool:
        """Queue a frame for the writer. Never blocks; drops when the outbox is full."""
        if self.closed:
            return False
        try:
            self._outbox.put_nowait({"event": event, "data": data})
        except asyncio.QueueFull:
            self.dropped += 1
            logger.warning(f"Outbox full for session {self.session_id}, dropped {event} ({self.dropped} dropped so far)")
            return False
        return True

    def close(self):
        if self.closed:
            return
        self.closed = True
        # Sentinel may not fit a full outbox; frames() also checks the flag.
        try:
            self._outbox.put_nowait(None)
        except asyncio.QueueFull:
            pass

    def pending(self) -> list:
        """Drain queued frames without waiting."""
        frames = []
        while not self._outbox.empty():
            frame = self._outbox.get_nowait()
            if frame is not None:
                frames.append(frame)
        return frames

    async def frames(self) -> AsyncIterator[dict]:
        while True:
            if self.closed and self._outbox.empty():
                return
            frame = await self._outbox.get()
            if frame is None:
                return
            yield frame

    def __repr__(self):
        return f"Session({self.session_id!r}, user_id={self.user_id!r})"
