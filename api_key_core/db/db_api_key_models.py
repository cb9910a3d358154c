"""
Relational shape of a stored API key.

Just the table mapping and conversion to and from the serialized record;
sessions and queries belong to the calling application.
"""

from typing import Any, Mapping

from sqlalchemy import Boolean, Column, DateTime, Index, String

from ..api_key import APIKey
from ..type_definitions import APIKeyRecordData
from ..utils.time_utils import format_iso, parse_datetime
from .db_base import JSON, Base


class APIKeyRow(Base):
    """One API key per row; ``api_key`` holds the secret hash, never the secret."""

    __tablename__ = "api_keys"

    id = Column(String(36), primary_key=True)
    owner_id = Column(String(100), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    api_key = Column(String(44), nullable=False)
    timestamp = Column(DateTime(timezone=True), nullable=False)
    restricted = Column(Boolean, nullable=False, default=False)
    valid_until = Column(DateTime(timezone=True), nullable=True)
    settings = Column(JSON, nullable=False)

    # Lookups by hash on every authenticated request
    __table_args__ = (Index("ix_api_keys_api_key", "api_key", unique=True),)

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "APIKeyRow":
        """Build a row from APIKey.to_json() output."""
        row = cls(id=record["id"], owner_id=record["owner_id"])
        row.update_from_record(record)
        return row

    @classmethod
    def from_api_key(cls, api_key: APIKey) -> "APIKeyRow":
        return cls.from_record(api_key.to_json())

    def update_from_record(self, record: Mapping[str, Any]) -> None:
        """Copy the mutable fields of a record onto this row (e.g. after rotate())."""
        self.name = record["name"]
        self.api_key = record["api_key"]
        self.timestamp = parse_datetime(record["timestamp"], "timestamp")
        self.restricted = record["restricted"]
        self.valid_until = (
            parse_datetime(record["valid_until"], "valid_until")
            if record.get("valid_until")
            else None
        )
        self.settings = record["settings"]

    def to_record(self) -> APIKeyRecordData:
        """Convert back to the serialized record accepted by APIKey.from_json()."""
        return {
            "id": self.id,
            "owner_id": self.owner_id,
            "name": self.name,
            "api_key": self.api_key,
            "timestamp": format_iso(self.timestamp),
            "restricted": self.restricted,
            "valid_until": format_iso(self.valid_until) if self.valid_until else None,
            "settings": self.settings,
        }

    def to_api_key(self) -> APIKey:
        return APIKey.from_json(self.to_record())
