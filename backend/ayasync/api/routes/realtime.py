import json
import logging
from typing import Optional
from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect, status
from ayasync.api.dependencies import authenticate_token
from ayasync.realtime.broadcaster import (
    EVENT_ACTIVITY_NEW,
    EVENT_TEAM_CREATED,
    team_board_room,
    user_room,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["realtime"])

# Client events passed through unchanged to every connected session
RELAYED_EVENTS = (EVENT_ACTIVITY_NEW, EVENT_TEAM_CREATED)


async def receive_frame(websocket: WebSocket):
    """Next JSON frame from the client; raises ValueError for binary or non-JSON frames"""
    message = await websocket.receive()
    if message["type"] == "websocket.disconnect":
        raise WebSocketDisconnect(message.get("code", status.WS_1000_NORMAL_CLOSURE))
    text = message.get("text")
    if text is None:
        raise ValueError("binary frame")
    return json.loads(text)


@router.websocket("/ws")
async def realtime_socket(websocket: WebSocket, token: Optional[str] = Query(default=None)):
    """
    Realtime channel.

    Clients connect with ?token=<jwt> and send JSON frames
    {"event": ..., "data": ...}:
    - register(userId)         join the private user room (own id only)
    - joinTeamBoard(teamId)    receive teamBoard:update for that board
    - leaveTeamBoard(teamId)
    - activity:new, team:created   relayed to every connected session
    """
    user = authenticate_token(token)
    if user is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    broadcaster = websocket.app.state.broadcaster
    await websocket.accept()
    broadcaster.connect(websocket)
    logger.info(f"Realtime session opened for {user.id}")

    try:
        while True:
            try:
                frame = await receive_frame(websocket)
            except ValueError:
                await websocket.send_json({"event": "error", "data": "Frames must be JSON"})
                continue
            event = frame.get("event") if isinstance(frame, dict) else None
            data = frame.get("data") if isinstance(frame, dict) else None

            if event == "register":
                if str(data) != user.id:
                    await websocket.send_json({"event": "error", "data": "Cannot register for another user"})
                    continue
                broadcaster.join(websocket, user_room(user.id))
            elif event == "joinTeamBoard" and data:
                broadcaster.join(websocket, team_board_room(str(data)))
            elif event == "leaveTeamBoard" and data:
                broadcaster.leave(websocket, team_board_room(str(data)))
            elif event in RELAYED_EVENTS:
                await broadcaster.broadcast(event, data)
            else:
                await websocket.send_json({"event": "error", "data": f"Unknown event: {event}"})
    except WebSocketDisconnect:
        logger.info(f"Realtime session closed for {user.id}")
    finally:
        broadcaster.disconnect(websocket)
