"""
Services package
Build execution and event streaming

build_service is imported directly (services.build_service) since it
depends on builder.pipeline, which itself publishes through event_service.
"""
from .event_service import (
    EventPublisher,
    EventType,
    format_sse,
    error_stream,
)

__all__ = [
    "EventPublisher",
    "EventType",
    "format_sse",
    "error_stream",
]
