"""Delegation protocol — HTTP+JSON service and client."""

from .client import DelegateClient
from .schemas import ImageResponse, UrlRequest, VideoPayload
from .server import DelegationService, create_app, start_service

__all__ = [
    "DelegateClient",
    "DelegationService",
    "ImageResponse",
    "UrlRequest",
    "VideoPayload",
    "create_app",
    "start_service",
]
