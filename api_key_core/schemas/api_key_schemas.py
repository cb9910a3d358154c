"""
Pydantic schemas for API key settings and the persisted record.

The settings aggregate keeps camelCase aliases so that ``model_dump(by_alias=True)``
produces exactly the shape stored in the ``settings`` column. APIKeyRecord
is the storable projection of an APIKey and has no plaintext secret field.
"""

import copy
from typing import Any, Dict, List, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, model_serializer

from ..constants import (
    DEFAULT_RATE_LIMIT_AMOUNT,
    DEFAULT_RATE_LIMIT_FREQUENCY,
    QuotaFrequency,
    QuotaType,
    RateLimitFrequency,
)
from ..exceptions import type_mismatch
from ..utils.validation import (
    assert_boolean,
    assert_mapping,
    assert_non_empty_string,
    assert_positive_integer,
    assert_quota_frequency,
    assert_rate_limit_frequency,
    assert_string_list,
    canonicalize_methods,
    unique,
    validate_domain,
    validate_ip,
)


class RateLimit(BaseModel):
    """Requests allowed per time window."""

    amount: int = Field(default=DEFAULT_RATE_LIMIT_AMOUNT, description="Requests per window")
    frequency: RateLimitFrequency = Field(
        default=DEFAULT_RATE_LIMIT_FREQUENCY.value, description="Window unit"
    )

    model_config = ConfigDict(use_enum_values=True)


class IPWhitelist(BaseModel):
    """IP addresses and CIDR blocks a key may be used from."""

    enabled: bool = False
    addresses: List[str] = Field(default_factory=list)


class DomainWhitelist(BaseModel):
    """Domains a key may be used from. Supports ``*.`` prefixes and ``*``."""

    enabled: bool = False
    domains: List[str] = Field(default_factory=list)


class Quota(BaseModel):
    """
    Total request allowance. Stored configuration only.

    A ``fixed`` quota is a lifetime cap; a ``periodic`` quota resets every
    ``frequency`` window.
    """

    type: QuotaType
    limit: int
    frequency: Optional[QuotaFrequency] = None

    model_config = ConfigDict(use_enum_values=True)

    @model_serializer(mode="wrap")
    def _omit_fixed_frequency(self, handler):
        data = handler(self)
        if data.get("frequency") is None:
            data.pop("frequency", None)
        return data


class APIKeySettings(BaseModel):
    """Access constraints owned by a single API key."""

    rate_limit: RateLimit = Field(default_factory=RateLimit, alias="rateLimit")
    ip_whitelist: IPWhitelist = Field(default_factory=IPWhitelist, alias="ipWhitelist")
    domain_whitelist: DomainWhitelist = Field(
        default_factory=DomainWhitelist, alias="domainWhitelist"
    )
    allowed_methods: List[str] = Field(default_factory=list, alias="allowedMethods")
    metadata: Dict[str, Any] = Field(default_factory=dict)
    quota: Optional[Quota] = None

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def to_dict(self) -> Dict[str, Any]:
        """Deep-copied plain dict in the persisted (camelCase) shape."""
        return copy.deepcopy(self.model_dump(by_alias=True))


class APIKeyRecord(BaseModel):
    """Storable projection of an APIKey."""

    id: str
    owner_id: str
    name: str
    api_key: str = Field(..., description="Base64 SHA-256 hash of the secret")
    timestamp: str = Field(..., description="ISO 8601 time of creation or last rotation")
    restricted: bool
    valid_until: Optional[str] = Field(None, description="ISO 8601 expiry, or None")
    settings: APIKeySettings

    model_config = ConfigDict(extra="forbid")

    def to_dict(self) -> Dict[str, Any]:
        return copy.deepcopy(self.model_dump(by_alias=True))


# Python-style names accepted alongside the persisted camelCase keys
_SETTINGS_KEY_ALIASES = {
    "rate_limit": "rateLimit",
    "ip_whitelist": "ipWhitelist",
    "domain_whitelist": "domainWhitelist",
    "allowed_methods": "allowedMethods",
}


def _overrides_as_dict(overrides: Any) -> Dict[str, Any]:
    if overrides is None:
        return {}
    if isinstance(overrides, APIKeySettings):
        return overrides.to_dict()
    if not isinstance(overrides, Mapping):
        raise type_mismatch("settings", overrides, "an object")
    normalized = {}
    for key, value in overrides.items():
        if isinstance(value, BaseModel):
            value = value.model_dump()
        normalized[_SETTINGS_KEY_ALIASES.get(key, key)] = copy.deepcopy(value)
    return normalized


def _or_default(value: Any, default: Any) -> Any:
    """Fall back to default only for a missing value; other falsy values get validated."""
    return default if value is None else value


def _merged(defaults: Dict[str, Any], override: Any, label: str) -> Dict[str, Any]:
    if override is None:
        return defaults
    assert_mapping(override, label)
    return {**defaults, **override}


def build_default_settings(overrides: Any = None) -> Dict[str, Any]:
    """
    Merge partial settings overrides onto the defaults.

    Nested sections (rateLimit, ipWhitelist, domainWhitelist) are merged one
    level deep, so ``{"rateLimit": {"amount": 10}}`` keeps the default
    frequency. The result is not validated; pass it to validate_settings().

    Args:
        overrides: Partial settings mapping (camelCase or snake_case keys),
            an APIKeySettings instance, or None

    Returns:
        Plain settings dict in the persisted shape
    """
    overrides = _overrides_as_dict(overrides)
    defaults = APIKeySettings().to_dict()

    return {
        "rateLimit": _merged(
            defaults["rateLimit"], overrides.get("rateLimit"), "settings.rateLimit"
        ),
        "ipWhitelist": _merged(
            defaults["ipWhitelist"], overrides.get("ipWhitelist"), "settings.ipWhitelist"
        ),
        "domainWhitelist": _merged(
            defaults["domainWhitelist"],
            overrides.get("domainWhitelist"),
            "settings.domainWhitelist",
        ),
        "allowedMethods": _or_default(overrides.get("allowedMethods"), []),
        "metadata": _or_default(overrides.get("metadata"), {}),
        "quota": overrides.get("quota"),
    }


def validate_quota(quota: Any, label: str = "settings.quota") -> Optional[Quota]:
    """Check a quota mapping; None means no quota."""
    if quota is None:
        return None
    if isinstance(quota, Quota):
        quota = quota.model_dump()
    assert_mapping(quota, label)

    quota_type = quota.get("type")
    try:
        quota_type = QuotaType(quota_type)
    except ValueError:
        raise type_mismatch(f"{label}.type", quota_type, "one of: fixed, periodic")

    limit = assert_positive_integer(quota.get("limit"), f"{label}.limit")
    if quota_type == QuotaType.FIXED:
        return Quota(type=quota_type, limit=limit)

    frequency = assert_quota_frequency(quota.get("frequency"), f"{label}.frequency")
    return Quota(type=quota_type, limit=limit, frequency=frequency)


def validate_settings(settings: Any) -> APIKeySettings:
    """
    Validate a complete settings mapping and build the aggregate.

    Runs after every construction path (create, from_json) so that a
    corrupted or hand-edited record cannot be loaded. Whitelist entries are
    trimmed and de-duplicated; methods are uppercased.

    Raises:
        ShapeError: On a missing section, wrong type or unknown enum value
        FormatError: On a malformed IP address, CIDR block or domain
        PolicyError: On a non-positive amount or unknown HTTP method
    """
    assert_mapping(settings, "settings")

    rate_limit = settings.get("rateLimit")
    assert_mapping(rate_limit, "settings.rateLimit")
    amount = assert_positive_integer(rate_limit.get("amount"), "settings.rateLimit.amount")
    frequency = assert_rate_limit_frequency(
        rate_limit.get("frequency"), "settings.rateLimit.frequency"
    )

    ip_whitelist = settings.get("ipWhitelist")
    assert_mapping(ip_whitelist, "settings.ipWhitelist")
    ip_enabled = assert_boolean(ip_whitelist.get("enabled"), "settings.ipWhitelist.enabled")
    addresses = [
        validate_ip(ip, "settings.ipWhitelist.addresses")
        for ip in assert_string_list(
            ip_whitelist.get("addresses"), "settings.ipWhitelist.addresses"
        )
    ]

    domain_whitelist = settings.get("domainWhitelist")
    assert_mapping(domain_whitelist, "settings.domainWhitelist")
    domain_enabled = assert_boolean(
        domain_whitelist.get("enabled"), "settings.domainWhitelist.enabled"
    )
    domains = [
        validate_domain(domain, "settings.domainWhitelist.domains")
        for domain in assert_string_list(
            domain_whitelist.get("domains"), "settings.domainWhitelist.domains"
        )
    ]

    methods = canonicalize_methods(
        _or_default(settings.get("allowedMethods"), []), "settings.allowedMethods"
    )

    metadata = _or_default(settings.get("metadata"), {})
    assert_mapping(metadata, "settings.metadata")
    for key in metadata:
        assert_non_empty_string(key, "settings.metadata key")

    quota = validate_quota(settings.get("quota"))

    return APIKeySettings(
        rate_limit=RateLimit(amount=amount, frequency=frequency),
        ip_whitelist=IPWhitelist(enabled=ip_enabled, addresses=unique(addresses)),
        domain_whitelist=DomainWhitelist(enabled=domain_enabled, domains=unique(domains)),
        allowed_methods=methods,
        metadata=copy.deepcopy(metadata),
        quota=quota,
    )
