"""
Builds Router
FastAPI route that starts a build and streams its events
"""
import logging

from fastapi import APIRouter, Request
from fastapi.responses import StreamingResponse
from pydantic import ValidationError

from schemas.build import BuildRequest, MISSING_REPO_URL
from services.build_service import resolve_base_url, stream_build
from services.event_service import error_stream

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/build", tags=["builds"])

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


def _validation_message(error: ValidationError) -> str:
    """First human-readable message of a BuildRequest validation error"""
    for item in error.errors():
        if item.get("loc") and item["loc"][0] in ("repoUrl", "repo_url"):
            return MISSING_REPO_URL
    first = error.errors()[0]
    field = ".".join(str(part) for part in first.get("loc", ()))
    message = str(first.get("msg", "Invalid request")).removeprefix("Value error, ")
    return f"{field}: {message}" if field else message


def _event_stream(body) -> StreamingResponse:
    return StreamingResponse(body, media_type="text/event-stream", headers=SSE_HEADERS)


@router.post("/stream")
async def build_stream(request: Request):
    """
    Build an APK from a repository and stream progress as Server-Sent Events

    Events (one JSON object per `data:` frame):
    - {"type": "log", "log": {id, timestamp, message, type}}
    - {"type": "status", "status": "CLONING", "progress": 10}
    - {"type": "result", "success": true, "downloadUrl": "..."}
    - {"type": "result", "success": false, "error": "..."}
    - {"type": "error", "message": "..."} (request rejected, no build started)
    """
    try:
        payload = await request.json()
    except ValueError:
        payload = {}
    if not isinstance(payload, dict):
        payload = {}

    try:
        build_request = BuildRequest.model_validate(payload)
    except ValidationError as e:
        message = _validation_message(e)
        logger.warning(f"[build_stream] Rejected request: {message}")
        return _event_stream(error_stream(message))

    base_url = resolve_base_url(request.headers, request.url.scheme, request.url.netloc)
    return _event_stream(stream_build(build_request.to_options(), base_url))
