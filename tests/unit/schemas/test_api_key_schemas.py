"""Tests for the settings and record schemas."""

import pytest
from pydantic import ValidationError as PydanticValidationError

from api_key_core.exceptions import FormatError, PolicyError, ShapeError
from api_key_core.schemas import (
    APIKeyRecord,
    APIKeySettings,
    Quota,
    RateLimit,
    build_default_settings,
    validate_quota,
    validate_settings,
)

DEFAULT_SETTINGS = {
    "rateLimit": {"amount": 100, "frequency": "minutes"},
    "ipWhitelist": {"enabled": False, "addresses": []},
    "domainWhitelist": {"enabled": False, "domains": []},
    "allowedMethods": [],
    "metadata": {},
    "quota": None,
}


class TestModels:
    """Test the pydantic models."""

    def test_default_settings_dump(self):
        """Test defaults serialize to the stored camelCase shape."""
        assert APIKeySettings().to_dict() == DEFAULT_SETTINGS

    def test_populate_by_alias_or_name(self):
        """Test both wire and attribute names are accepted."""
        by_alias = APIKeySettings(rateLimit={"amount": 5, "frequency": "hours"})
        by_name = APIKeySettings(rate_limit=RateLimit(amount=5, frequency="hours"))

        assert by_alias == by_name
        assert by_alias.rate_limit.frequency == "hours"

    def test_fixed_quota_omits_frequency(self):
        """Test a fixed quota has no frequency key."""
        assert Quota(type="fixed", limit=10).model_dump() == {"type": "fixed", "limit": 10}
        assert Quota(type="periodic", limit=10, frequency="weeks").model_dump() == {
            "type": "periodic",
            "limit": 10,
            "frequency": "weeks",
        }

    def test_record_forbids_plaintext_field(self, sample_record):
        """Test the record model refuses extra fields such as a raw secret."""
        APIKeyRecord(**sample_record)

        with pytest.raises(PydanticValidationError):
            APIKeyRecord(**sample_record, raw_api_key="stored-secret")

    def test_to_dict_is_a_copy(self):
        """Test to_dict output is detached from the model."""
        settings = APIKeySettings(metadata={"tags": ["a"]})
        dumped = settings.to_dict()
        dumped["metadata"]["tags"].append("b")

        assert settings.metadata == {"tags": ["a"]}


class TestBuildDefaultSettings:
    """Test build_default_settings function."""

    def test_none(self):
        """Test no overrides yields the defaults."""
        assert build_default_settings() == DEFAULT_SETTINGS

    def test_one_level_merge(self):
        """Test nested sections keep unspecified defaults."""
        result = build_default_settings(
            {"rateLimit": {"amount": 10}, "ipWhitelist": {"enabled": True}}
        )

        assert result["rateLimit"] == {"amount": 10, "frequency": "minutes"}
        assert result["ipWhitelist"] == {"enabled": True, "addresses": []}
        assert result["domainWhitelist"] == DEFAULT_SETTINGS["domainWhitelist"]

    def test_snake_case_keys(self):
        """Test Python-style section names are accepted."""
        result = build_default_settings(
            {"allowed_methods": ["GET"], "domain_whitelist": {"domains": ["example.com"]}}
        )

        assert result["allowedMethods"] == ["GET"]
        assert result["domainWhitelist"]["domains"] == ["example.com"]

    def test_model_overrides(self):
        """Test model instances are accepted as overrides."""
        result = build_default_settings({"rateLimit": RateLimit(amount=3, frequency="seconds")})

        assert result["rateLimit"] == {"amount": 3, "frequency": "seconds"}

    def test_overrides_are_copied(self):
        """Test the caller's mapping is not aliased into the result."""
        overrides = {"metadata": {"team": ["a"]}}
        result = build_default_settings(overrides)
        result["metadata"]["team"].append("b")

        assert overrides == {"metadata": {"team": ["a"]}}

    def test_rejects_non_mapping(self):
        """Test invalid override shapes."""
        with pytest.raises(ShapeError):
            build_default_settings(["rateLimit"])
        with pytest.raises(ShapeError):
            build_default_settings({"rateLimit": 100})


class TestValidateSettings:
    """Test validate_settings function."""

    def test_returns_model(self, sample_record):
        """Test a valid mapping becomes an APIKeySettings."""
        settings = validate_settings(sample_record["settings"])

        assert isinstance(settings, APIKeySettings)
        assert settings.to_dict() == sample_record["settings"]

    def test_normalizes_entries(self):
        """Test entries are trimmed, uppercased and de-duplicated."""
        raw = build_default_settings(
            {
                "ipWhitelist": {"addresses": ["10.0.0.1", " 10.0.0.1 "]},
                "domainWhitelist": {"domains": ["example.com", "example.com"]},
                "allowedMethods": ["get", "GET"],
            }
        )

        settings = validate_settings(raw)

        assert settings.ip_whitelist.addresses == ["10.0.0.1"]
        assert settings.domain_whitelist.domains == ["example.com"]
        assert settings.allowed_methods == ["GET"]

    def test_missing_section(self):
        """Test a missing required section names it."""
        raw = build_default_settings()
        del raw["ipWhitelist"]

        with pytest.raises(ShapeError) as exc_info:
            validate_settings(raw)

        assert exc_info.value.context["field"] == "settings.ipWhitelist"

    @pytest.mark.parametrize(
        "overrides,error,field",
        [
            ({"rateLimit": {"amount": -1}}, PolicyError, "settings.rateLimit.amount"),
            ({"rateLimit": {"frequency": "weeks"}}, ShapeError, "settings.rateLimit.frequency"),
            ({"ipWhitelist": {"addresses": ["1.1.1"]}}, FormatError, "settings.ipWhitelist.addresses"),
            ({"domainWhitelist": {"enabled": 1}}, ShapeError, "settings.domainWhitelist.enabled"),
            ({"allowedMethods": ["CONNECT"]}, PolicyError, "settings.allowedMethods"),
            ({"metadata": {"": 1}}, ShapeError, "settings.metadata key"),
            ({"metadata": []}, ShapeError, "settings.metadata"),
            ({"allowedMethods": ""}, ShapeError, "settings.allowedMethods"),
            ({"quota": {"type": "periodic", "limit": 5}}, ShapeError, "settings.quota.frequency"),
        ],
    )
    def test_invalid_values(self, overrides, error, field):
        """Test each section is checked and the failing field named."""
        with pytest.raises(error) as exc_info:
            validate_settings(build_default_settings(overrides))

        assert exc_info.value.context["field"] == field

    def test_does_not_apply_rate_ceiling(self):
        """Test the ceiling is the entity's concern, not the schema's."""
        settings = validate_settings(build_default_settings({"rateLimit": {"amount": 10_000}}))

        assert settings.rate_limit.amount == 10_000


class TestValidateQuota:
    """Test validate_quota function."""

    def test_none(self):
        """Test None means no quota."""
        assert validate_quota(None) is None

    def test_fixed_ignores_frequency(self):
        """Test a fixed quota drops any frequency given."""
        quota = validate_quota({"type": "fixed", "limit": 7, "frequency": "days"})

        assert quota.model_dump() == {"type": "fixed", "limit": 7}

    def test_accepts_model(self):
        """Test an existing Quota is re-validated."""
        quota = validate_quota(Quota(type="periodic", limit=2, frequency="years"))

        assert quota.frequency == "years"

    def test_invalid(self):
        """Test unknown types and bad limits."""
        with pytest.raises(ShapeError):
            validate_quota({"type": "monthly", "limit": 1})
        with pytest.raises(ShapeError):
            validate_quota({"type": "fixed", "limit": "1"})
        with pytest.raises(PolicyError):
            validate_quota({"type": "fixed", "limit": 0})
