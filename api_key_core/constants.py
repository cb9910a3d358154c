"""
Constants and enums for the API Key Core package.

This module centralizes the magic strings and fixed policy values used
throughout the package to ensure consistency and maintainability.
"""

from datetime import datetime, timezone
from enum import Enum
from fractions import Fraction
from typing import Dict


class RateLimitFrequency(str, Enum):
    """Time window units for rate limits."""

    SECONDS = "seconds"
    MINUTES = "minutes"
    HOURS = "hours"


class QuotaFrequency(str, Enum):
    """Reset windows for periodic quotas."""

    HOURS = "hours"
    DAYS = "days"
    WEEKS = "weeks"
    MONTHS = "months"
    QUARTERS = "quarters"
    YEARS = "years"


class QuotaType(str, Enum):
    """Quota flavours. Quotas are stored configuration only."""

    FIXED = "fixed"
    PERIODIC = "periodic"


class HttpMethod(str, Enum):
    """HTTP methods a key may be restricted to."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"


class KeyStatus(str, Enum):
    """Derived lifecycle status of an API key."""

    ACTIVE = "active"
    RESTRICTED = "restricted"
    EXPIRED = "expired"
    REVOKED = "revoked"


class LogLevel(str, Enum):
    """Standard logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class EnvironmentVariable(str, Enum):
    """Standard environment variable names."""

    LOG_LEVEL = "LOG_LEVEL"
    DEFAULT_KEY_NAME = "API_KEY_DEFAULT_NAME"


# Rate limits are (amount, frequency) pairs
DEFAULT_RATE_LIMIT_AMOUNT = 100
DEFAULT_RATE_LIMIT_FREQUENCY = RateLimitFrequency.MINUTES

# Hard ceiling, only exceeded with an explicit bypass
MAX_RATE_LIMIT_AMOUNT = 500
MAX_RATE_LIMIT_FREQUENCY = RateLimitFrequency.MINUTES

# Multipliers converting each frequency unit into requests per minute
TO_MINUTES: Dict[RateLimitFrequency, Fraction] = {
    RateLimitFrequency.SECONDS: Fraction(60),
    RateLimitFrequency.MINUTES: Fraction(1),
    RateLimitFrequency.HOURS: Fraction(1, 60),
}

# valid_until set to this instant marks a revoked key
EPOCH_SENTINEL = datetime(1970, 1, 1, tzinfo=timezone.utc)

DEFAULT_KEY_NAME = "Unnamed Key"
