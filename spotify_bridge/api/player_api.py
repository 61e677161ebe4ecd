# spotify_bridge/api/player_api.py
from typing import Optional

from fastapi import APIRouter, Depends

from spotify_bridge.api.responses import get_dispatcher, to_response
from spotify_bridge.models.command_models import (
    ErrorResponse,
    OkResponse,
    TransferRequest,
    VolumeRequest,
)
from spotify_bridge.services.spotify_commands import CommandDispatcher

router = APIRouter()

CONTROL_RESPONSES = {200: {"model": OkResponse}, 409: {"model": ErrorResponse}}


@router.post("/play", summary="Resume playback on the active device", responses=CONTROL_RESPONSES)
def play(dispatcher: CommandDispatcher = Depends(get_dispatcher)):
    return to_response(dispatcher.play())


@router.post("/pause", summary="Pause playback", responses={200: {"model": OkResponse}})
def pause(dispatcher: CommandDispatcher = Depends(get_dispatcher)):
    return to_response(dispatcher.pause())


@router.post("/next", summary="Skip to the next track", responses={200: {"model": OkResponse}})
def next_track(dispatcher: CommandDispatcher = Depends(get_dispatcher)):
    return to_response(dispatcher.next_track())


@router.post("/previous", summary="Go back to the previous track", responses={200: {"model": OkResponse}})
def previous_track(dispatcher: CommandDispatcher = Depends(get_dispatcher)):
    return to_response(dispatcher.previous_track())


@router.get("/status", summary="Current playback state (Spotify player object)")
def status(dispatcher: CommandDispatcher = Depends(get_dispatcher)):
    return to_response(dispatcher.status())


@router.post(
    "/volume",
    summary="Set volume",
    description="`volume` 會被夾在 0-100 之間再送給 Spotify。",
    responses=CONTROL_RESPONSES,
)
def volume(
    payload: Optional[VolumeRequest] = None,
    dispatcher: CommandDispatcher = Depends(get_dispatcher),
):
    return to_response(dispatcher.volume(payload.volume if payload else None))


@router.get("/devices", summary="List available Spotify devices")
def devices(dispatcher: CommandDispatcher = Depends(get_dispatcher)):
    return to_response(dispatcher.devices())


@router.post("/transfer", summary="Move playback to another device", responses={200: {"model": OkResponse}})
def transfer(
    payload: Optional[TransferRequest] = None,
    dispatcher: CommandDispatcher = Depends(get_dispatcher),
):
    if payload is None:
        payload = TransferRequest()
    return to_response(dispatcher.transfer(payload.device_id, play=payload.play))
