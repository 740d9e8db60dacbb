"""End-to-end tests over the /ws transport.

Frames from one socket are handled in the order they were sent, so
re-sending `user_connected` and waiting for its `user_status` echo is used
as a barrier: everything sent before it has been processed.
"""

from http import HTTPStatus


def register(ws, user_id):
    ws.send_json({"event": "user_connected", "data": user_id})
    frame = ws.receive_json()
    assert frame == {"event": "user_status", "data": {"userId": user_id, "online": True}}


def test_connect_greets_with_session_id(client):
    with client.websocket_connect("/ws") as ws:
        frame = ws.receive_json()
        assert frame["event"] == "connected"
        assert frame["data"]["sessionId"]


def test_garbage_frames_are_ignored(client):
    with client.websocket_connect("/ws") as ws:
        ws.receive_json()
        ws.send_text("not json")
        ws.send_json([1, 2, 3])
        ws.send_json({"no_event": True})
        ws.send_json({"event": "send_message", "data": {"oops": 1}})
        register(ws, "alice")


def test_message_scenario(client):
    chat = client.post("/chats/", json={"userId": "bob"}, headers={"X-User-Id": "alice"}).json()
    chat_id = chat["id"]

    with client.websocket_connect("/ws") as ws_a:
        ws_a.receive_json()
        register(ws_a, "alice")
        ws_a.send_json({"event": "join_chat", "data": chat_id})
        register(ws_a, "alice")

        with client.websocket_connect("/ws") as ws_b:
            ws_b.receive_json()
            register(ws_b, "bob")
            assert ws_a.receive_json()["data"] == {"userId": "bob", "online": True}
            ws_b.send_json({"event": "join_chat", "data": chat_id})
            register(ws_b, "bob")
            assert ws_a.receive_json()["data"] == {"userId": "bob", "online": True}

            resp = client.post(f"/chats/{chat_id}/messages", json={"text": "hello"}, headers={"X-User-Id": "alice"})
            assert resp.status_code == HTTPStatus.OK
            stored = resp.json()["messages"][-1]

            frame = ws_b.receive_json()
            assert frame["event"] == "new_message"
            assert frame["data"]["text"] == "hello"
            assert frame["data"]["sender_id"] == "alice"
            assert frame["data"]["id"] == stored["id"]
            assert frame["data"]["created_at"] == stored["created_at"]

            # Exactly one copy: the next frame B sees is the barrier echo.
            register(ws_b, "bob")

            assert ws_a.receive_json()["event"] == "new_message"
            assert ws_a.receive_json()["data"] == {"userId": "bob", "online": True}

        offline = ws_a.receive_json()
        assert offline == {"event": "user_status", "data": {"userId": "bob", "online": False}}


def test_typing_reaches_peers_only(client):
    with client.websocket_connect("/ws") as ws_a, client.websocket_connect("/ws") as ws_b:
        ws_a.receive_json()
        ws_b.receive_json()
        ws_a.send_json({"event": "join_chat", "data": "chat1"})
        ws_b.send_json({"event": "join_chat", "data": "chat1"})
        register(ws_b, "bob")
        assert ws_a.receive_json()["data"]["userId"] == "bob"

        ws_a.send_json({"event": "typing", "data": {"chatId": "chat1", "userId": "alice"}})
        assert ws_b.receive_json() == {"event": "user_typing", "data": {"userId": "alice"}}

        ws_a.send_json({"event": "stop_typing", "data": {"chatId": "chat1", "userId": "alice"}})
        assert ws_b.receive_json() == {"event": "user_stop_typing", "data": {"userId": "alice"}}

        # A's next frame is its own registration echo, not a typing event.
        register(ws_a, "alice")


def test_camel_case_client_frames(client):
    with client.websocket_connect("/ws") as ws_a, client.websocket_connect("/ws") as ws_b:
        ws_a.receive_json()
        ws_b.receive_json()
        ws_b.send_json({"event": "join_chat", "data": "chat1"})
        register(ws_b, "bob")

        message = {"id": "m1", "sender_id": "alice", "text": "hello", "created_at": "2026-10-19T10:00:00"}
        ws_a.send_json({"event": "send_message", "data": {"chatId": "chat1", "message": message}})
        assert ws_b.receive_json() == {"event": "new_message", "data": message}

        ws_a.send_json({"event": "send_notification", "data": {"recipientId": "bob", "notification": {"type": "follow"}}})
        assert ws_b.receive_json() == {"event": "new_notification", "data": {"type": "follow"}}
