"""
API Key Core.

A value object for API credentials: identity, hashed secret, lifecycle
status and access constraints.
"""

from .api_key import APIKey
from .constants import HttpMethod, KeyStatus, QuotaFrequency, QuotaType, RateLimitFrequency
from .exceptions import (
    BaseError,
    ErrorCode,
    FormatError,
    KeyGenerationError,
    PolicyError,
    ShapeError,
    ValidationError,
)
from .schemas import APIKeyRecord, APIKeySettings

__version__ = "0.1.0"

__all__ = [
    "APIKey",
    "APIKeyRecord",
    "APIKeySettings",
    "BaseError",
    "ErrorCode",
    "FormatError",
    "HttpMethod",
    "KeyGenerationError",
    "KeyStatus",
    "PolicyError",
    "QuotaFrequency",
    "QuotaType",
    "RateLimitFrequency",
    "ShapeError",
    "ValidationError",
]
