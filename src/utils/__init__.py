"""유틸리티 모듈"""
from .errors import StreamerError, NeedConfig, GenerationFailed, UnparsableResponse
from .settings import StreamerSettings
from .logging_config import setup_logging

__all__ = [
    "StreamerError",
    "NeedConfig",
    "GenerationFailed",
    "UnparsableResponse",
    "StreamerSettings",
    "setup_logging",
]
