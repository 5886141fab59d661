"""
Routers package
FastAPI route handlers organized by domain
"""
from . import builds

__all__ = [
    "builds",
]
