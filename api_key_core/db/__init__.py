"""
SQLAlchemy models for stored API keys.

This module provides a common entry point for the table definitions.
"""

from .db_api_key_models import APIKeyRow
from .db_base import JSON, Base

__all__ = [
    "Base",
    "JSON",
    "APIKeyRow",
]
