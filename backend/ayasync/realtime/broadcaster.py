"""
Realtime publish/subscribe hub.

Connected sessions (WebSockets) join named rooms:
- user:<userId>        private room of one user
- teamBoard:<teamId>   everyone looking at a team board

Route handlers publish events to rooms after their mutation commits.
Delivery is best effort: no replay, no persistence, no ordering across
rooms. A client that reconnects re-fetches state over REST.
"""

import logging
from typing import Any, Dict, Protocol, Set

logger = logging.getLogger(__name__)

# Server -> client event names
EVENT_TEAM_BOARD_UPDATE = "teamBoard:update"
EVENT_TEAM_CREATED = "team:created"
EVENT_TEAM_UPDATED = "team:updated"
EVENT_MESSAGE_NEW = "msg:new"
EVENT_PING = "ping"
EVENT_BOARD_SHARED = "board:shared"
EVENT_ACTIVITY_NEW = "activity:new"


def user_room(user_id: str) -> str:
    return f"user:{user_id}"


def team_board_room(team_id: str) -> str:
    return f"teamBoard:{team_id}"


class Session(Protocol):
    """Anything we can push JSON frames to (a Starlette WebSocket in production)"""

    async def send_json(self, data: Any) -> None:
        ...


class Broadcaster:
    def __init__(self) -> None:
        self._sessions: Set[Session] = set()
        self._rooms: Dict[str, Set[Session]] = {}

    def connect(self, session: Session) -> None:
        self._sessions.add(session)

    def disconnect(self, session: Session) -> None:
        """Forget a session and remove it from every room it joined"""
        self._sessions.discard(session)
        for room in list(self._rooms):
            members = self._rooms[room]
            members.discard(session)
            if not members:
                del self._rooms[room]

    def join(self, session: Session, room: str) -> None:
        self._rooms.setdefault(room, set()).add(session)
        logger.debug("Session joined room %s", room)

    def leave(self, session: Session, room: str) -> None:
        members = self._rooms.get(room)
        if not members:
            return
        members.discard(session)
        if not members:
            del self._rooms[room]

    def room_size(self, room: str) -> int:
        return len(self._rooms.get(room, ()))

    @property
    def session_count(self) -> int:
        return len(self._sessions)

    async def publish(self, room: str, event: str, data: Any) -> int:
        """
        Send an event to every session in a room.

        Returns the number of sessions the frame was delivered to. An empty
        room is a no-op. Sessions that fail to receive are dropped.
        """
        members = self._rooms.get(room)
        if not members:
            return 0
        return await self._deliver(list(members), event, data)

    async def broadcast(self, event: str, data: Any) -> int:
        """Send an event to every connected session"""
        return await self._deliver(list(self._sessions), event, data)

    async def _deliver(self, sessions: list, event: str, data: Any) -> int:
        frame = {"event": event, "data": data}
        delivered = 0
        for session in sessions:
            try:
                await session.send_json(frame)
                delivered += 1
            except Exception as e:
                # Never surface a delivery failure to the publishing request
                logger.warning(f"Dropping realtime session after failed send of {event}: {e}")
                self.disconnect(session)
        return delivered
