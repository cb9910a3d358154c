"""
The APIKey entity.

An APIKey holds a stable identity, the hash of its current secret, its
lifecycle flags and the access constraints (rate limit, IP and domain
whitelists, allowed methods, metadata, quota) that an enforcement layer
applies to incoming requests.

Instances come from two factories:

- ``APIKey.create()`` mints a new key. The returned instance exposes the
  plaintext secret through ``plaintext_secret``; show it to the caller once
  and discard it.
- ``APIKey.from_json()`` rebuilds a key from its stored record. The
  plaintext secret is never available on these instances.

``to_json()`` reduces an instance back to the storable record. After
``rotate()`` the caller must persist the new record and drop any cache entry
keyed by the old ``secret_hash``.
"""

import copy
from datetime import datetime, timedelta
from typing import Any, Dict, List, Mapping, Optional, Union

from .config import get_config
from .constants import (
    DEFAULT_RATE_LIMIT_AMOUNT,
    DEFAULT_RATE_LIMIT_FREQUENCY,
    EPOCH_SENTINEL,
    KeyStatus,
    QuotaType,
    RateLimitFrequency,
)
from .exceptions import invalid_format, policy_violation, type_mismatch
from .schemas.api_key_schemas import (
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
from .type_definitions import APIKeyCreateOptions, APIKeyRecordData
from .utils import time_utils
from .utils.hash_utils import generate_id, is_sha256_text, secrets_match, sha256_text
from .utils.logger import get_logger
from .utils.validation import (
    assert_boolean,
    assert_mapping,
    assert_non_empty_string,
    assert_positive_integer,
    assert_rate_limit_frequency,
    assert_string_list,
    canonicalize_methods,
    check_rate_limit_ceiling,
    unique,
    validate_domain,
    validate_ip,
)

_CREATE_OPTIONS = frozenset(APIKeyCreateOptions.__annotations__)

DateInput = Union[datetime, str]


def _resolve_secret(text: Optional[str], label: str) -> str:
    """Use the caller's text, trimmed, or generate a fresh secret."""
    if text is None:
        return generate_id()
    return assert_non_empty_string(text, label).strip()


class APIKey:
    """An API credential: identity, hashed secret, status and access settings."""

    def __init__(
        self,
        *,
        id: str,
        owner_id: str,
        name: str,
        secret_hash: str,
        timestamp: datetime,
        restricted: bool,
        valid_until: Optional[datetime],
        settings: APIKeySettings,
        plaintext_secret: Optional[str] = None,
    ):
        """Use create() or from_json() instead of calling this directly."""
        self._id = id
        self._owner_id = owner_id
        self._name = name
        self._secret_hash = secret_hash
        self._timestamp = timestamp
        self._restricted = restricted
        self._valid_until = valid_until
        self._settings = settings
        self._plaintext_secret = plaintext_secret

    # ==================== FACTORIES ====================

    @classmethod
    def create(
        cls,
        owner_id: str,
        text: Optional[str] = None,
        options: Optional[APIKeyCreateOptions] = None,
    ) -> "APIKey":
        """
        Create a brand-new API key.

        Args:
            owner_id: Identifier of the owning principal
            text: Plaintext secret to use. A random UUID is generated when omitted.
            options: name, restricted, valid_until, settings overrides and
                bypass_safe_limit (skip the rate-limit ceiling for the overrides)

        Returns:
            A new APIKey whose ``plaintext_secret`` holds the secret. This is
            the only place the plaintext can be read.

        Raises:
            ShapeError: On a missing or mistyped argument
            FormatError: On a malformed date, IP address or domain
            PolicyError: On a past expiry or a rate limit above the ceiling
        """
        assert_non_empty_string(owner_id, "owner_id")
        raw_secret = _resolve_secret(text, "text")

        if options is None:
            options = {}
        if not isinstance(options, Mapping):
            raise type_mismatch("options", options, "an object")
        unknown = sorted(set(options) - _CREATE_OPTIONS)
        if unknown:
            raise type_mismatch(
                "options", unknown, f"an object with keys from {sorted(_CREATE_OPTIONS)}"
            )

        name = options.get("name")
        if name is None:
            name = get_config().policy.default_key_name
        assert_non_empty_string(name, "options.name")

        restricted = options.get("restricted")
        restricted = False if restricted is None else assert_boolean(restricted, "options.restricted")
        bypass_safe_limit = options.get("bypass_safe_limit")
        bypass_safe_limit = (
            False
            if bypass_safe_limit is None
            else assert_boolean(bypass_safe_limit, "options.bypass_safe_limit")
        )

        valid_until = None
        if options.get("valid_until") is not None:
            valid_until = cls._parse_future_date(options["valid_until"], "options.valid_until")

        settings = validate_settings(build_default_settings(options.get("settings")))
        if not bypass_safe_limit:
            check_rate_limit_ceiling(settings.rate_limit.amount, settings.rate_limit.frequency)

        api_key = cls(
            id=generate_id(),
            owner_id=owner_id.strip(),
            name=name.strip(),
            secret_hash=sha256_text(raw_secret),
            timestamp=time_utils.utc_now(),
            restricted=restricted,
            valid_until=valid_until,
            settings=settings,
            plaintext_secret=raw_secret,
        )
        api_key._log("API key created", level="info")
        return api_key

    @classmethod
    def from_json(cls, record: Mapping[str, Any]) -> "APIKey":
        """
        Rebuild an APIKey from its stored record.

        Accepts the output of to_json(), a database row converted with
        APIKeyRow.to_record(), or a cache hit. Unknown top-level keys are
        ignored. The plaintext secret is never restored.

        Raises:
            ShapeError: Naming the first missing or mistyped field
            FormatError: On a malformed hash, date, IP address or domain
        """
        if not isinstance(record, Mapping):
            raise type_mismatch("record", record, "an object")

        for field in ("id", "owner_id", "name", "api_key", "timestamp"):
            assert_non_empty_string(record.get(field), field)

        if not is_sha256_text(record["api_key"]):
            raise invalid_format("api_key", record["api_key"], "SHA-256 hash")

        timestamp = time_utils.parse_datetime(record["timestamp"], "timestamp")
        restricted = assert_boolean(record.get("restricted"), "restricted")

        valid_until = None
        if record.get("valid_until") is not None:
            assert_non_empty_string(record["valid_until"], "valid_until")
            valid_until = time_utils.parse_datetime(record["valid_until"], "valid_until")

        settings = validate_settings(
            build_default_settings(assert_mapping(record.get("settings"), "settings"))
        )

        return cls(
            id=record["id"],
            owner_id=record["owner_id"],
            name=record["name"],
            secret_hash=record["api_key"],
            timestamp=timestamp,
            restricted=restricted,
            valid_until=valid_until,
            settings=settings,
        )

    # ==================== SERIALIZATION ====================

    def to_record(self) -> APIKeyRecord:
        """Project this key onto the storable record model."""
        return APIKeyRecord(
            id=self._id,
            owner_id=self._owner_id,
            name=self._name,
            api_key=self._secret_hash,
            timestamp=time_utils.format_iso(self._timestamp),
            restricted=self._restricted,
            valid_until=(
                time_utils.format_iso(self._valid_until) if self._valid_until else None
            ),
            settings=self._settings.model_copy(deep=True),
        )

    def to_json(self) -> APIKeyRecordData:
        """
        Serialize to a plain dict safe to store or cache.

        The plaintext secret is never included.
        """
        return self.to_record().to_dict()  # type: ignore[return-value]

    def validate(self) -> None:
        """
        Assert the integrity of every field on this instance.

        Raises the error for the first field that fails.
        """
        for field, value in (
            ("id", self._id),
            ("owner_id", self._owner_id),
            ("name", self._name),
            ("api_key", self._secret_hash),
        ):
            assert_non_empty_string(value, field)
        if not is_sha256_text(self._secret_hash):
            raise invalid_format("api_key", self._secret_hash, "SHA-256 hash")

        if not isinstance(self._timestamp, datetime):
            raise type_mismatch("timestamp", self._timestamp, "a datetime")
        assert_boolean(self._restricted, "restricted")
        if self._valid_until is not None and not isinstance(self._valid_until, datetime):
            raise type_mismatch("valid_until", self._valid_until, "a datetime or None")

        validate_settings(self._settings.to_dict())

    # ==================== VERIFICATION ====================

    def verify(self, text: str) -> bool:
        """
        Check a presented secret against the stored hash.

        The input is trimmed before hashing and compared in constant time.
        Returns False on a mismatch.

        Raises:
            ShapeError: If text is not a non-empty string
        """
        assert_non_empty_string(text, "text")
        return secrets_match(text.strip(), self._secret_hash)

    def matches(self, text: str) -> bool:
        """Alias for verify()."""
        return self.verify(text)

    # ==================== ROTATION ====================

    def rotate(self, text: Optional[str] = None) -> None:
        """
        Replace the secret, keeping ``id`` and ``owner_id``.

        Afterwards ``plaintext_secret`` holds the new secret and the old
        secret no longer verifies.
        """
        raw_secret = _resolve_secret(text, "text")
        self._secret_hash = sha256_text(raw_secret)
        self._timestamp = time_utils.utc_now()
        self._plaintext_secret = raw_secret
        self._log("API key rotated", level="info")

    # ==================== LIFECYCLE ====================

    def rename(self, name: str) -> None:
        assert_non_empty_string(name, "name")
        self._name = name.strip()

    def set_expiry(self, date: Optional[DateInput]) -> None:
        """
        Set or clear the expiry. None means the key never expires.

        Raises:
            FormatError: If the date text is not ISO 8601
            PolicyError: If the date is not in the future, or the key is revoked
        """
        if self.is_revoked():
            raise policy_violation("valid_until", date, "cannot be changed on a revoked key")
        if date is None:
            self._valid_until = None
        else:
            self._valid_until = self._parse_future_date(date, "valid_until")
        self._log("API key expiry changed", valid_until=self._valid_until)

    def restrict(self) -> None:
        """Disable this key without deleting it."""
        self._restricted = True
        self._log("API key restricted")

    def unrestrict(self) -> None:
        self._restricted = False
        self._log("API key unrestricted")

    def revoke(self) -> None:
        """
        Permanently revoke this key.

        Sets ``valid_until`` to the Unix epoch and marks the key restricted.
        There is no operation that undoes this; issue a new key instead.
        """
        self._valid_until = EPOCH_SENTINEL
        self._restricted = True
        self._log("API key revoked", level="info")

    # ==================== STATUS ====================

    def is_expired(self) -> bool:
        """True if an expiry is set and has passed."""
        if self._valid_until is None:
            return False
        return time_utils.utc_now() > self._valid_until

    def is_revoked(self) -> bool:
        return self._valid_until is not None and time_utils.is_epoch_sentinel(self._valid_until)

    def is_active(self) -> bool:
        """True only if the key is neither expired nor restricted."""
        return self.status == KeyStatus.ACTIVE

    @property
    def status(self) -> KeyStatus:
        """Lifecycle status; revoked beats expired beats restricted."""
        if self.is_revoked():
            return KeyStatus.REVOKED
        if self.is_expired():
            return KeyStatus.EXPIRED
        if self._restricted:
            return KeyStatus.RESTRICTED
        return KeyStatus.ACTIVE

    @property
    def ms_until_expiry(self) -> int:
        """Milliseconds until expiry; -1 if the key never expires, 0 once expired."""
        if self._valid_until is None:
            return -1
        remaining = self._valid_until - time_utils.utc_now()
        return max(0, remaining // timedelta(milliseconds=1))

    # ==================== RATE LIMIT ====================

    def set_rate_limit(
        self,
        amount: int,
        frequency: Union[RateLimitFrequency, str],
        bypass_safe_limit: bool = False,
    ) -> None:
        """
        Set the rate limit.

        The rate, normalized to requests per minute, may not exceed the
        500 req/min ceiling unless bypass_safe_limit is True.

        Raises:
            ShapeError: On a non-integer amount or unknown frequency
            PolicyError: On a non-positive amount or a rate above the ceiling
        """
        assert_positive_integer(amount, "amount")
        frequency = assert_rate_limit_frequency(frequency, "frequency")
        assert_boolean(bypass_safe_limit, "bypass_safe_limit")

        if not bypass_safe_limit:
            check_rate_limit_ceiling(amount, frequency)

        self._settings.rate_limit = RateLimit(amount=amount, frequency=frequency)
        self._log("API key rate limit changed", amount=amount, frequency=frequency.value)

    def reset_rate_limit(self) -> None:
        self._settings.rate_limit = RateLimit(
            amount=DEFAULT_RATE_LIMIT_AMOUNT, frequency=DEFAULT_RATE_LIMIT_FREQUENCY
        )

    # ==================== IP WHITELIST ====================

    def enable_ip_whitelist(self) -> None:
        self._settings.ip_whitelist.enabled = True

    def disable_ip_whitelist(self) -> None:
        self._settings.ip_whitelist.enabled = False

    def add_ip(self, ip: str) -> None:
        """Add an IPv4/IPv6 address or CIDR block. Adding twice is a no-op."""
        trimmed = validate_ip(ip, "ip")
        if trimmed not in self._settings.ip_whitelist.addresses:
            self._settings.ip_whitelist.addresses.append(trimmed)

    def remove_ip(self, ip: str) -> None:
        assert_non_empty_string(ip, "ip")
        self._settings.ip_whitelist.addresses = [
            a for a in self._settings.ip_whitelist.addresses if a != ip.strip()
        ]

    def set_ip_whitelist(self, addresses: List[str]) -> None:
        """Replace every address; nothing changes unless all entries are valid."""
        validated = [validate_ip(a, "addresses") for a in assert_string_list(addresses, "addresses")]
        self._settings.ip_whitelist.addresses = unique(validated)

    def clear_ip_whitelist(self) -> None:
        self._settings.ip_whitelist.addresses = []

    # ==================== DOMAIN WHITELIST ====================

    def enable_domain_whitelist(self) -> None:
        self._settings.domain_whitelist.enabled = True

    def disable_domain_whitelist(self) -> None:
        self._settings.domain_whitelist.enabled = False

    def add_domain(self, domain: str) -> None:
        """Add a domain, ``*.`` wildcard domain, or ``*``. Adding twice is a no-op."""
        trimmed = validate_domain(domain, "domain")
        if trimmed not in self._settings.domain_whitelist.domains:
            self._settings.domain_whitelist.domains.append(trimmed)

    def remove_domain(self, domain: str) -> None:
        assert_non_empty_string(domain, "domain")
        self._settings.domain_whitelist.domains = [
            d for d in self._settings.domain_whitelist.domains if d != domain.strip()
        ]

    def set_domain_whitelist(self, domains: List[str]) -> None:
        """Replace every domain; nothing changes unless all entries are valid."""
        validated = [validate_domain(d, "domains") for d in assert_string_list(domains, "domains")]
        self._settings.domain_whitelist.domains = unique(validated)

    def clear_domain_whitelist(self) -> None:
        self._settings.domain_whitelist.domains = []

    # ==================== ALLOWED METHODS ====================

    def set_allowed_methods(self, methods: List[str]) -> None:
        """
        Restrict the key to the given HTTP methods (case-insensitive).

        An empty list removes the restriction.

        Raises:
            PolicyError: If any entry is not a standard HTTP method
        """
        self._settings.allowed_methods = canonicalize_methods(methods, "methods")

    def clear_allowed_methods(self) -> None:
        self._settings.allowed_methods = []

    # ==================== METADATA ====================

    def get_metadata(self, key: str) -> Any:
        assert_non_empty_string(key, "metadata key")
        return copy.deepcopy(self._settings.metadata.get(key))

    def set_metadata(self, key: str, value: Any) -> None:
        assert_non_empty_string(key, "metadata key")
        self._settings.metadata[key] = copy.deepcopy(value)

    def delete_metadata(self, key: str) -> None:
        assert_non_empty_string(key, "metadata key")
        self._settings.metadata.pop(key, None)

    def clear_metadata(self) -> None:
        self._settings.metadata = {}

    # ==================== QUOTA ====================

    def set_quota(self, limit: int, frequency: Optional[str] = None) -> None:
        """
        Store a quota: a lifetime cap, or a periodic one when frequency is given.

        Quotas are configuration only; nothing here counts requests.
        """
        quota: Dict[str, Any] = {"type": QuotaType.FIXED.value, "limit": limit}
        if frequency is not None:
            quota = {"type": QuotaType.PERIODIC.value, "limit": limit, "frequency": frequency}
        self._settings.quota = validate_quota(quota, "quota")

    def clear_quota(self) -> None:
        self._settings.quota = None

    # ==================== ACCESSORS ====================

    @property
    def id(self) -> str:
        """Stable identifier. Unchanged by rotation."""
        return self._id

    @property
    def owner_id(self) -> str:
        return self._owner_id

    @property
    def name(self) -> str:
        return self._name

    @property
    def secret_hash(self) -> str:
        """Base64 SHA-256 hash of the current secret; the stored ``api_key``."""
        return self._secret_hash

    @property
    def plaintext_secret(self) -> Optional[str]:
        """
        The plaintext secret, set only right after create() or rotate().

        None on any instance built by from_json().
        """
        return self._plaintext_secret

    @property
    def created_at(self) -> datetime:
        return self._timestamp

    @property
    def timestamp(self) -> str:
        return time_utils.format_iso(self._timestamp)

    @property
    def restricted(self) -> bool:
        return self._restricted

    @property
    def valid_until(self) -> Optional[datetime]:
        return self._valid_until

    @property
    def settings(self) -> APIKeySettings:
        """Deep copy; changing it does not affect the key."""
        return self._settings.model_copy(deep=True)

    @property
    def rate_limit(self) -> RateLimit:
        return self._settings.rate_limit.model_copy()

    @property
    def ip_whitelist(self) -> IPWhitelist:
        return self._settings.ip_whitelist.model_copy(deep=True)

    @property
    def domain_whitelist(self) -> DomainWhitelist:
        return self._settings.domain_whitelist.model_copy(deep=True)

    @property
    def allowed_methods(self) -> List[str]:
        return list(self._settings.allowed_methods)

    @property
    def metadata(self) -> Dict[str, Any]:
        return copy.deepcopy(self._settings.metadata)

    @property
    def quota(self) -> Optional[Quota]:
        return self._settings.quota.model_copy() if self._settings.quota else None

    # ==================== INTERNALS ====================

    @staticmethod
    def _parse_future_date(value: DateInput, label: str) -> datetime:
        parsed = time_utils.parse_datetime(value, label)
        if parsed <= time_utils.utc_now():
            raise policy_violation(label, value, "must be a future date")
        return parsed

    def _log(self, message: str, level: str = "debug", **extra: Any) -> None:
        logger = get_logger()
        getattr(logger, level)(
            message, extra={"api_key_id": self._id, "owner_id": self._owner_id, **extra}
        )

    def __str__(self) -> str:
        return (
            f'APIKey(id="{self._id}", owner="{self._owner_id}", '
            f'name="{self._name}", status="{self.status.value}")'
        )

    __repr__ = __str__
