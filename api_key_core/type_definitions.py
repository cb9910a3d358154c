"""
Type definitions for the API Key Core package.

TypedDicts describing the plain mappings callers pass in and get back.
"""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional, Union

from typing_extensions import NotRequired, TypedDict

RateLimitFrequencyLiteral = Literal["seconds", "minutes", "hours"]


class RateLimitData(TypedDict):
    amount: int
    frequency: RateLimitFrequencyLiteral


class IPWhitelistData(TypedDict):
    enabled: bool
    addresses: List[str]


class DomainWhitelistData(TypedDict):
    enabled: bool
    domains: List[str]


class QuotaData(TypedDict):
    type: Literal["fixed", "periodic"]
    limit: int
    frequency: NotRequired[str]


class SettingsData(TypedDict):
    """Serialized settings, keyed the way the persisted record stores them."""

    rateLimit: RateLimitData
    ipWhitelist: IPWhitelistData
    domainWhitelist: DomainWhitelistData
    allowedMethods: NotRequired[List[str]]
    metadata: NotRequired[Dict[str, Any]]
    quota: NotRequired[Optional[QuotaData]]


class APIKeyRecordData(TypedDict):
    """The storable record. It has no plaintext secret field."""

    id: str
    owner_id: str
    name: str
    api_key: str
    timestamp: str
    restricted: bool
    valid_until: Optional[str]
    settings: SettingsData


class APIKeyCreateOptions(TypedDict, total=False):
    """Optional arguments to APIKey.create()."""

    name: str
    restricted: bool
    valid_until: Optional[Union[datetime, str]]
    settings: Dict[str, Any]
    bypass_safe_limit: bool
