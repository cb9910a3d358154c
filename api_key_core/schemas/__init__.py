"""Pydantic schemas for API key settings and records."""

from .api_key_schemas import (
    APIKeyRecord,
    APIKeySettings,
    DomainWhitelist,
    IPWhitelist,
    Quota,
    RateLimit,
    build_default_settings,
    validate_quota,
    validate_settings,
)

__all__ = [
    "APIKeyRecord",
    "APIKeySettings",
    "DomainWhitelist",
    "IPWhitelist",
    "Quota",
    "RateLimit",
    "build_default_settings",
    "validate_quota",
    "validate_settings",
]
