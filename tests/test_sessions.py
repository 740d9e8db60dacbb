"""Tests for the per-session outbound queue."""

import pytest

from realtime.sessions import Session


@pytest.mark.unit
class TestSession:

    def test_send_queues_frames_in_order(self):
        session = Session("s1")
        session.send("a", 1)
        session.send("b", 2)
        assert session.pending() == [{"event": "a", "data": 1}, {"event": "b", "data": 2}]

    def test_full_outbox_drops_frames(self):
        session = Session("s1", outbox_size=2)
        assert session.send("a", 1) is True
        assert session.send("b", 2) is True
        assert session.send("c", 3) is False
        assert session.dropped == 1
        assert [f["event"] for f in session.pending()] == ["a", "b"]

    def test_send_after_close_is_rejected(self):
        session = Session("s1")
        session.close()
        assert session.send("a", 1) is False

    @pytest.mark.asyncio
    async def test_frames_drain_then_stop_on_close(self):
        session = Session("s1")
        session.send("a", 1)
        session.send("b", 2)
        session.close()

        received = [frame["event"] async for frame in session.frames()]

        assert received == ["a", "b"]

    @pytest.mark.asyncio
    async def test_frames_stop_when_closed_with_full_outbox(self):
        session = Session("s1", outbox_size=1)
        session.send("a", 1)
        session.close()

        received = [frame["event"] async for frame in session.frames()]

        assert received == ["a"]
