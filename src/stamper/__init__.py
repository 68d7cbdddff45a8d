"""Stamper – minimal registry for owner/name/version content blobs"""

__version__ = "0.1.0"

from .config import RegistrySettings, load_settings
from .security import (
    FixedWindowRateLimiter,
    NoRateLimiter,
    RateLimiter,
    TokenBucketRateLimiter,
    create_rate_limiter,
)

__all__ = [
    "RegistrySettings",
    "load_settings",
    "RateLimiter",
    "FixedWindowRateLimiter",
    "TokenBucketRateLimiter",
    "NoRateLimiter",
    "create_rate_limiter",
    "__version__",
]
