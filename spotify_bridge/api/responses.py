# spotify_bridge/api/responses.py
from fastapi import Request
from fastapi.responses import JSONResponse, Response

from spotify_bridge.services.results import BusinessError, Ok, Result, UpstreamError
from spotify_bridge.services.spotify_commands import CommandDispatcher


def get_dispatcher(request: Request) -> CommandDispatcher:
    return request.app.state.dispatcher


def _body_response(body, status_code: int, media_type: str) -> Response:
    # 非 JSON（HTML / 純文字）的內容原封不動轉出去
    if isinstance(body, (dict, list)):
        return JSONResponse(body, status_code=status_code)
    return Response(content=body, status_code=status_code, media_type=media_type)


def to_response(result: Result) -> Response:
    if isinstance(result, Ok):
        return _body_response(result.body, 200, result.media_type)

    if isinstance(result, UpstreamError):
        return _body_response(result.body, result.status_code, result.media_type)

    if isinstance(result, BusinessError):
        return JSONResponse(
            {"error": result.kind.value, "message": result.message},
            status_code=result.kind.status_code,
        )

    raise TypeError(f"Unknown dispatcher result: {result!r}")
