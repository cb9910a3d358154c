"""Utility modules for the API Key Core."""

# Hash utilities
from .hash_utils import generate_id, is_sha256_text, secrets_match, sha256_text

# Logging utilities
from .logger import ContextAwareLogger, configure_logging, get_logger

# Time utilities
from .time_utils import format_iso, is_valid_iso_date, parse_datetime, to_utc, utc_now

# Validation helpers
from .validation import (
    assert_boolean,
    assert_non_empty_string,
    assert_positive_integer,
    assert_rate_limit_frequency,
    assert_string_list,
    canonicalize_methods,
    check_rate_limit_ceiling,
    is_valid_cidr,
    is_valid_domain,
    is_valid_ip,
    is_valid_ipv4,
    is_valid_ipv6,
    to_requests_per_minute,
    validate_domain,
    validate_ip,
)

__all__ = [
    "generate_id",
    "is_sha256_text",
    "secrets_match",
    "sha256_text",
    "ContextAwareLogger",
    "configure_logging",
    "get_logger",
    "format_iso",
    "is_valid_iso_date",
    "parse_datetime",
    "to_utc",
    "utc_now",
    "assert_boolean",
    "assert_non_empty_string",
    "assert_positive_integer",
    "assert_rate_limit_frequency",
    "assert_string_list",
    "canonicalize_methods",
    "check_rate_limit_ceiling",
    "is_valid_cidr",
    "is_valid_domain",
    "is_valid_ip",
    "is_valid_ipv4",
    "is_valid_ipv6",
    "to_requests_per_minute",
    "validate_domain",
    "validate_ip",
]
