import pytest
from starlette.websockets import WebSocketDisconnect

from ayasync.core.security import create_access_token


def token_for(user):
    return create_access_token({"sub": user["id"], "email": user["email"], "role": "user"})


def test_socket_requires_valid_token(client):
    with pytest.raises(WebSocketDisconnect) as exc_info:
        with client.websocket_connect("/ws?token=garbage"):
            pass
    assert exc_info.value.code == 1008

    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect("/ws"):
            pass


def test_join_team_board_and_register(client, alice, broadcaster):
    user, _ = alice

    with client.websocket_connect(f"/ws?token={token_for(user)}") as ws:
        ws.send_json({"event": "joinTeamBoard", "data": "team_1"})
        ws.send_json({"event": "register", "data": user["id"]})
        # Frames are handled in order, so once this error arrives both joins are done
        ws.send_json({"event": "sync"})
        assert ws.receive_json() == {"event": "error", "data": "Unknown event: sync"}

        assert broadcaster.room_size("teamBoard:team_1") == 1
        assert broadcaster.room_size(f"user:{user['id']}") == 1

        ws.send_json({"event": "leaveTeamBoard", "data": "team_1"})
        ws.send_json({"event": "sync"})
        ws.receive_json()
        assert broadcaster.room_size("teamBoard:team_1") == 0


def test_cannot_register_for_another_user(client, alice, bob, broadcaster):
    user, _ = alice
    other, _ = bob

    with client.websocket_connect(f"/ws?token={token_for(user)}") as ws:
        ws.send_json({"event": "register", "data": other["id"]})
        assert ws.receive_json() == {"event": "error", "data": "Cannot register for another user"}
        assert broadcaster.room_size(f"user:{other['id']}") == 0


def test_non_json_frame_is_answered_with_error(client, alice):
    user, _ = alice

    with client.websocket_connect(f"/ws?token={token_for(user)}") as ws:
        ws.send_text("hello")
        assert ws.receive_json() == {"event": "error", "data": "Frames must be JSON"}


def test_binary_frame_is_answered_with_error(client, alice):
    user, _ = alice

    with client.websocket_connect(f"/ws?token={token_for(user)}") as ws:
        ws.send_bytes(b"\x00\x01")
        assert ws.receive_json() == {"event": "error", "data": "Frames must be JSON"}

        # The session survives and keeps handling frames
        ws.send_json({"event": "register", "data": user["id"]})
        ws.send_json({"event": "sync"})
        assert ws.receive_json() == {"event": "error", "data": "Unknown event: sync"}


def test_activity_is_relayed_to_every_session(client, alice, bob, broadcaster):
    user, _ = alice
    other, _ = bob
    activity = {"type": "task", "text": "Alice moved a card"}

    with client.websocket_connect(f"/ws?token={token_for(user)}") as sender:
        with client.websocket_connect(f"/ws?token={token_for(other)}") as listener:
            # Make sure the listener is connected before the relay
            listener.send_json({"event": "sync"})
            listener.receive_json()

            sender.send_json({"event": "activity:new", "data": activity})

            assert listener.receive_json() == {"event": "activity:new", "data": activity}
            assert sender.receive_json() == {"event": "activity:new", "data": activity}

    assert broadcaster.events("activity:new") == [(None, activity)]


def test_client_team_created_is_relayed(client, alice, broadcaster):
    user, _ = alice

    with client.websocket_connect(f"/ws?token={token_for(user)}") as ws:
        ws.send_json({"event": "team:created", "data": {"id": "team_1"}})
        assert ws.receive_json() == {"event": "team:created", "data": {"id": "team_1"}}

    assert broadcaster.events("team:created") == [(None, {"id": "team_1"})]
