from .errors import (
    ConfigError,
    EmptyLogError,
    EmptyPage,
    SkinTrackerError,
    UpstreamError,
    UpstreamFetchError,
    UpstreamWriteError,
    ValidationError,
)

__all__ = [
    "SkinTrackerError",
    "ConfigError",
    "ValidationError",
    "UpstreamError",
    "UpstreamFetchError",
    "UpstreamWriteError",
    "EmptyLogError",
    "EmptyPage",
]
