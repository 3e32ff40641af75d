"""Socket.IO server pushing request lifecycle events to connected clients.

Clients join `team:<teamId>` and `spoc:<spocId>` rooms themselves; the server
does not check that a client belongs to the room it asks for. Membership is per
connection, so clients rejoin after a reconnect and re-fetch the request list
to catch up on anything missed while disconnected.
"""

from typing import Any, Dict, Optional

import socketio
from fastapi.encoders import jsonable_encoder

from config import is_allowed_origin
from logging_config import logger

# Server -> client events
REQUEST_CREATED = "request:created"
REQUEST_CREATED_FOR_SPOC = "request:created:forSpoc"
REQUEST_CREATED_FOR_TEAM = "request:created:forTeam"
REQUEST_UPDATED = "request:updated"
REQUEST_DELETED = "request:deleted"

# Same origin rule as the HTTP API
sio = socketio.AsyncServer(
    async_mode="asgi",
    cors_allowed_origins=is_allowed_origin,
)


def team_room(team_id: str) -> str:
    return f"team:{team_id}"


def spoc_room(spoc_id: str) -> str:
    return f"spoc:{spoc_id}"


@sio.event
async def connect(sid, environ, auth=None):
    logger.info(f"Socket connected: {sid}")


@sio.event
async def disconnect(sid, *args):
    logger.info(f"Socket disconnected: {sid}")


async def _join(sid, room_name: str, room_id: Any) -> bool:
    if not isinstance(room_id, str) or not room_id:
        logger.debug(f"Socket {sid} sent an invalid room id: {room_id!r}")
        return False
    room = f"{room_name}:{room_id}"
    await sio.enter_room(sid, room)
    logger.info(f"Socket {sid} joined {room}")
    return True


async def _leave(sid, room_name: str, room_id: Any) -> bool:
    if not isinstance(room_id, str) or not room_id:
        return False
    await sio.leave_room(sid, f"{room_name}:{room_id}")
    return True


@sio.on("spoc:join")
async def spoc_join(sid, spoc_id):
    return await _join(sid, "spoc", spoc_id)


@sio.on("spoc:leave")
async def spoc_leave(sid, spoc_id):
    return await _leave(sid, "spoc", spoc_id)


@sio.on("team:join")
async def team_join(sid, team_id):
    return await _join(sid, "team", team_id)


@sio.on("team:leave")
async def team_leave(sid, team_id):
    return await _leave(sid, "team", team_id)


async def _emit(event: str, payload: Dict[str, Any], room: Optional[str] = None):
    # Delivery is fire-and-forget, a failed emit never fails the HTTP call
    try:
        await sio.emit(event, payload, to=room)
    except Exception as e:
        logger.error(f"Failed to emit {event} to {room or 'all clients'}: {str(e)}")


async def broadcast_created(request: Dict[str, Any]):
    payload = jsonable_encoder(request)
    await _emit(REQUEST_CREATED, payload)
    if request.get("spocId"):
        await _emit(REQUEST_CREATED_FOR_SPOC, payload, room=spoc_room(request["spocId"]))
    if request.get("teamId"):
        await _emit(REQUEST_CREATED_FOR_TEAM, payload, room=team_room(request["teamId"]))


async def broadcast_updated(request: Dict[str, Any]):
    payload = jsonable_encoder(request)
    await _emit(REQUEST_UPDATED, payload)
    if request.get("spocId"):
        await _emit(REQUEST_UPDATED, payload, room=spoc_room(request["spocId"]))
    if request.get("teamId"):
        await _emit(REQUEST_UPDATED, payload, room=team_room(request["teamId"]))


async def broadcast_deleted(request: Dict[str, Any]):
    """Announce a deletion; the payload carries only the id of the deleted request."""
    payload = {"id": request["id"]}
    await _emit(REQUEST_DELETED, payload)
    if request.get("spocId"):
        await _emit(REQUEST_DELETED, payload, room=spoc_room(request["spocId"]))
    if request.get("teamId"):
        await _emit(REQUEST_DELETED, payload, room=team_room(request["teamId"]))
