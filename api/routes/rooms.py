"""Read-only HTTP view of the rooms currently alive in this process.

Snapshots use the same shape as the ``update user list`` realtime payload.
"""
from __future__ import annotations

from fastapi import APIRouter, Depends

from api.dependencies import get_realtime_service
from application.ports.realtime import UserListPayload
from application.services.realtime_service import RealtimeService
from core.response import Response, success_response
from domain.common.exceptions import RoomNotFoundException


router = APIRouter(prefix="/rooms", tags=["Rooms"])


@router.get("", response_model=Response[list[UserListPayload]])
async def list_rooms(rt: RealtimeService = Depends(get_realtime_service)):
    """列出所有非空房间及成员"""
    rooms = [UserListPayload(room_name=name, user_list=members) for name, members in rt.rooms.snapshot().items()]
    return success_response(data=rooms)


@router.get("/{room}", response_model=Response[UserListPayload])
async def get_room(room: str, rt: RealtimeService = Depends(get_realtime_service)):
    """查询单个房间成员；无成员的房间视为不存在"""
    members = rt.rooms.members_of(room)
    if not members:
        raise RoomNotFoundException(room)
    return success_response(data=UserListPayload(room_name=room, user_list=members))
