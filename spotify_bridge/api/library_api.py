# spotify_bridge/api/library_api.py
from typing import Optional

from fastapi import APIRouter, Depends, Query

from spotify_bridge.api.responses import get_dispatcher, to_response
from spotify_bridge.models.command_models import (
    ErrorResponse,
    PlaylistAddRequest,
    PlaylistAddResponse,
    PlaylistCreateRequest,
    PlaylistCreateResponse,
    TrackSummary,
)
from spotify_bridge.services.spotify_commands import CommandDispatcher

router = APIRouter()


@router.get(
    "/search",
    summary="Find the best matching track",
    responses={200: {"model": TrackSummary}, 400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
def search(
    q: Optional[str] = Query(None, description="Free-text search, e.g. 'Mr Brightside'"),
    dispatcher: CommandDispatcher = Depends(get_dispatcher),
):
    return to_response(dispatcher.search(q))


@router.post(
    "/playlist",
    summary="Create a playlist",
    responses={200: {"model": PlaylistCreateResponse}, 400: {"model": ErrorResponse}},
)
def create_playlist(
    payload: Optional[PlaylistCreateRequest] = None,
    dispatcher: CommandDispatcher = Depends(get_dispatcher),
):
    payload = payload or PlaylistCreateRequest()
    return to_response(dispatcher.create_playlist(payload.name, payload.description, payload.public))


@router.post(
    "/playlist/add",
    summary="Add a track to a playlist by name",
    description=(
        "用 `uri` 或 `query` 指定歌曲，用 `playlistName` 指定 playlist（不分大小寫）。"
        "找不到 playlist 且 `createIfMissing` 不是 false 時會自動建立。"
    ),
    responses={200: {"model": PlaylistAddResponse}, 400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
def add_to_playlist(
    payload: Optional[PlaylistAddRequest] = None,
    dispatcher: CommandDispatcher = Depends(get_dispatcher),
):
    payload = payload or PlaylistAddRequest()
    return to_response(
        dispatcher.add_to_playlist(
            payload.playlist_name,
            query=payload.query,
            uri=payload.uri,
            create_if_missing=payload.create_if_missing,
        )
    )
