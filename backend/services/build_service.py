"""
Build Service - Runs one build per request and streams its events

Handles:
- Converting a validated BuildRequest into pipeline options
- Resolving the public base URL for download links
- Running the pipeline as a task while the response streams its events

Each request gets its own BuildPipeline, BuildSession and EventPublisher;
nothing is shared between concurrent builds except the public directory.
"""
import asyncio
import logging
from typing import AsyncGenerator, Mapping, Optional

from config import PUBLIC_BASE_URL
from builder.pipeline import BuildPipeline
from builder.schemas import BuildOptions
from services.event_service import EventPublisher

logger = logging.getLogger(__name__)


def resolve_base_url(headers: Mapping[str, str], scheme: str, host: str) -> str:
    """
    Scheme + host for download URLs

    PUBLIC_BASE_URL wins when configured, then X-Forwarded-Proto /
    X-Forwarded-Host, then the request's own scheme and host.
    """
    if PUBLIC_BASE_URL:
        return PUBLIC_BASE_URL
    proto = (headers.get("x-forwarded-proto") or scheme).split(",")[0].strip()
    forwarded_host = (headers.get("x-forwarded-host") or host).split(",")[0].strip()
    return f"{proto}://{forwarded_host}"


async def stream_build(
    options: BuildOptions,
    base_url: str,
    pipeline: Optional[BuildPipeline] = None
) -> AsyncGenerator[str, None]:
    """
    Start a build and yield its SSE frames until the publisher closes

    If the client disconnects mid-build the pipeline task is cancelled.

    Usage:
        return StreamingResponse(stream_build(options, base_url), media_type="text/event-stream")
    """
    if pipeline is None:
        pipeline = BuildPipeline(options, EventPublisher(), base_url)
    build_id = pipeline.session.build_id
    logger.info(f"[stream_build] START build_id={build_id} repo={options.repo_url}")

    task = asyncio.create_task(pipeline.run())
    try:
        async for frame in pipeline.publisher.stream():
            yield frame
    finally:
        if not task.done():
            logger.warning(f"[stream_build] Client disconnected, cancelling build {build_id}")
            task.cancel()
        logger.info(f"[stream_build] END build_id={build_id} stage={pipeline.session.stage.value}")


__all__ = ["stream_build", "resolve_base_url"]
