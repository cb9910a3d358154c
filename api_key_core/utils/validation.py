"""
Validation helpers for API key fields and settings.

The ``assert_*`` and ``validate_*`` functions raise a ShapeError,
FormatError or PolicyError naming the field and the received value; the
``is_valid_*`` functions are plain predicates.
"""

import ipaddress
import re
from typing import Any, List

from ..constants import (
    MAX_RATE_LIMIT_AMOUNT,
    MAX_RATE_LIMIT_FREQUENCY,
    TO_MINUTES,
    HttpMethod,
    QuotaFrequency,
    RateLimitFrequency,
)
from ..exceptions import invalid_format, policy_violation, type_mismatch

_IPV4_PATTERN = re.compile(r"([0-9]{1,3}\.){3}[0-9]{1,3}")

# Labels are alphanumeric with internal hyphens; the last one is an alphabetic TLD
_DOMAIN_PATTERN = re.compile(
    r"(\*\.)?(?:[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?\.)+[a-zA-Z]{2,}"
)


# ==================== TYPE ASSERTIONS ====================


def assert_non_empty_string(value: Any, label: str) -> str:
    """Require text with at least one non-whitespace character."""
    if not isinstance(value, str) or value.strip() == "":
        raise type_mismatch(label, value, "a non-empty string")
    return value


def assert_boolean(value: Any, label: str) -> bool:
    if not isinstance(value, bool):
        raise type_mismatch(label, value, "a boolean")
    return value


def assert_positive_integer(value: Any, label: str) -> int:
    # bool is an int subclass but never a valid amount
    if isinstance(value, bool) or not isinstance(value, int):
        raise type_mismatch(label, value, "a positive integer")
    if value < 1:
        raise policy_violation(label, value, "must be a positive integer")
    return value


def assert_string_list(value: Any, label: str) -> List[str]:
    if not isinstance(value, (list, tuple)) or any(not isinstance(v, str) for v in value):
        raise type_mismatch(label, value, "a list of strings")
    return list(value)


def assert_mapping(value: Any, label: str) -> dict:
    if not isinstance(value, dict):
        raise type_mismatch(label, value, "an object")
    return value


def assert_rate_limit_frequency(value: Any, label: str) -> RateLimitFrequency:
    """Coerce a frequency name into RateLimitFrequency or raise a ShapeError."""
    try:
        return RateLimitFrequency(value)
    except ValueError:
        valid = ", ".join(f.value for f in RateLimitFrequency)
        raise type_mismatch(label, value, f"one of: {valid}")


def assert_quota_frequency(value: Any, label: str) -> QuotaFrequency:
    try:
        return QuotaFrequency(value)
    except ValueError:
        valid = ", ".join(f.value for f in QuotaFrequency)
        raise type_mismatch(label, value, f"one of: {valid}")


# ==================== NETWORK PATTERNS ====================


def is_valid_ipv4(ip: str) -> bool:
    if not _IPV4_PATTERN.fullmatch(ip):
        return False
    try:
        ipaddress.IPv4Address(ip)
    except ValueError:
        return False
    return True


def is_valid_ipv6(ip: str) -> bool:
    if ":" not in ip:
        return False
    try:
        ipaddress.IPv6Address(ip)
    except ValueError:
        return False
    return True


def is_valid_cidr(cidr: str) -> bool:
    """
    Check for an ``address/prefix`` block.

    The prefix must be 0-32 for IPv4 and 0-128 for IPv6. Host bits may be
    set, so ``10.0.0.1/24`` is accepted.
    """
    address, sep, prefix = cidr.partition("/")
    if not sep or not (prefix.isascii() and prefix.isdigit()):
        return False
    length = int(prefix)
    if is_valid_ipv4(address):
        return 0 <= length <= 32
    if is_valid_ipv6(address):
        return 0 <= length <= 128
    return False


def is_valid_ip(ip: str) -> bool:
    return is_valid_ipv4(ip) or is_valid_ipv6(ip) or is_valid_cidr(ip)


def validate_ip(ip: Any, label: str = "ip") -> str:
    """
    Validate an IP address or CIDR block.

    Returns:
        The trimmed address

    Raises:
        ShapeError: If ip is not a non-empty string
        FormatError: If ip is not IPv4, IPv6 or CIDR
    """
    assert_non_empty_string(ip, label)
    trimmed = ip.strip()
    if not is_valid_ip(trimmed):
        raise invalid_format(label, ip, "IP address or CIDR")
    return trimmed


def is_valid_domain(domain: str) -> bool:
    """Accept ``example.com``, ``*.example.com`` or the bare wildcard ``*``."""
    return domain == "*" or bool(_DOMAIN_PATTERN.fullmatch(domain))


def validate_domain(domain: Any, label: str = "domain") -> str:
    """
    Validate a domain pattern.

    Returns:
        The trimmed domain

    Raises:
        ShapeError: If domain is not a non-empty string
        FormatError: If domain is not a valid pattern
    """
    assert_non_empty_string(domain, label)
    trimmed = domain.strip()
    if not is_valid_domain(trimmed):
        raise invalid_format(label, domain, "domain")
    return trimmed


def unique(values: List[str]) -> List[str]:
    """Drop repeated entries, keeping first occurrences in order."""
    return list(dict.fromkeys(values))


# ==================== RATE LIMITS & METHODS ====================


def to_requests_per_minute(amount: int, frequency: RateLimitFrequency) -> float:
    return float(amount * TO_MINUTES[RateLimitFrequency(frequency)])


def check_rate_limit_ceiling(amount: int, frequency: RateLimitFrequency) -> None:
    """
    Reject rates above the system ceiling.

    Raises:
        PolicyError: If the normalized rate exceeds MAX_RATE_LIMIT
    """
    frequency = RateLimitFrequency(frequency)
    requested = to_requests_per_minute(amount, frequency)
    ceiling = to_requests_per_minute(MAX_RATE_LIMIT_AMOUNT, MAX_RATE_LIMIT_FREQUENCY)
    if requested > ceiling:
        raise policy_violation(
            "rate_limit",
            {"amount": amount, "frequency": frequency.value},
            f"of {amount} per {frequency.value} (~{requested:.4f} req/min) exceeds the "
            f"system ceiling of {ceiling:.4f} req/min ({MAX_RATE_LIMIT_AMOUNT} per "
            f"{MAX_RATE_LIMIT_FREQUENCY.value}); pass bypass_safe_limit=True to override",
        ).add_context(requested_rpm=requested, ceiling_rpm=ceiling)


def canonicalize_methods(methods: Any, label: str = "allowed_methods") -> List[str]:
    """
    Uppercase and validate a list of HTTP methods.

    Raises:
        ShapeError: If methods is not a list of strings
        PolicyError: If any entry is not a standard HTTP method
    """
    methods = assert_string_list(methods, label)
    valid = {m.value for m in HttpMethod}
    canonical = []
    for method in methods:
        upper = method.strip().upper()
        if upper not in valid:
            raise policy_violation(
                label, method, f"must only contain HTTP methods ({', '.join(sorted(valid))})"
            )
        canonical.append(upper)
    return unique(canonical)
