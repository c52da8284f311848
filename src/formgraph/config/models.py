"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, formgraph.toml only contains
overrides. Every model is frozen; policy toggles are fixed once a
materializer is constructed and cannot change mid-flight.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class MaterializerConfig(BaseModel):
    """[materializer] section.

    Attributes:
        allow_load: Permit descriptors carrying an ``identifier`` to load
            stored records. Off by default: untrusted input could otherwise
            read or modify arbitrary existing records.
        empty_string_as_null: Store ``""`` scalar attributes as ``None``.
        filter_empty: Default for dropping empty records from collections.
        max_depth: Deepest input nesting accepted before failing.
    """

    model_config = {"frozen": True}

    allow_load: bool = False
    empty_string_as_null: bool = False
    filter_empty: bool = False
    max_depth: int = Field(default=64, ge=1)

    def with_load_authorization(self, enabled: bool) -> MaterializerConfig:
        """Return a copy with identifier-based loading switched on or off."""
        return self.model_copy(update={"allow_load": bool(enabled)})

    def with_empty_string_normalization(self, enabled: bool) -> MaterializerConfig:
        """Return a copy with empty-string normalization switched on or off."""
        return self.model_copy(update={"empty_string_as_null": bool(enabled)})


class DatabaseConfig(BaseModel):
    """[database] section."""

    model_config = {"frozen": True}

    filename: str = "formgraph.db"
    echo_queries: bool = False

