"""FormGraphSettings — one frozen object for CLI flags, env vars, and TOML.

Sources, highest priority first:

1. keyword arguments (the CLI flags passed by :meth:`FormGraphSettings.from_cli`)
2. ``FORMGRAPH_*`` environment variables, ``__`` for nesting
   (``FORMGRAPH_MATERIALIZER__FILTER_EMPTY=1``)
3. the ``formgraph.toml`` found by :func:`~formgraph.config.discovery.find_config`
4. the defaults in :mod:`formgraph.config.models`

Sections merge key by key, so an env var for ``materializer.allow_load``
leaves the TOML value of ``materializer.max_depth`` in place.
"""

from __future__ import annotations

from contextvars import ContextVar
from pathlib import Path
from typing import Any

import click
from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from formgraph.config.discovery import find_config, read_toml
from formgraph.config.models import DatabaseConfig, MaterializerConfig

# Parsed TOML for the settings object currently being built.
_toml_data: ContextVar[dict[str, Any] | None] = ContextVar("formgraph_toml_data", default=None)


class TomlSettingsSource(PydanticBaseSettingsSource):
    """Settings values already parsed from ``formgraph.toml``."""

    def __init__(self, settings_cls: type[BaseSettings], data: dict[str, Any]) -> None:
        super().__init__(settings_cls)
        self._data = data

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:
        return self._data.get(field_name), field_name, False

    def __call__(self) -> dict[str, Any]:
        fields = self.settings_cls.model_fields
        return {name: value for name, value in self._data.items() if name in fields}


class FormGraphSettings(BaseSettings):
    """Resolved configuration for one CLI invocation.

    Attributes:
        root: Workspace directory. The database lives under
            ``root/.formgraph``. Defaults to the directory holding the
            config file, else the current directory.
        config_path: The config file that was read, if any.
    """

    model_config = {
        "frozen": True,
        "env_prefix": "FORMGRAPH_",
        "env_nested_delimiter": "__",
    }

    root: Path = Field(default_factory=Path.cwd)
    config_path: Path | None = None

    json_output: bool = False
    quiet: bool = False
    verbose: bool = False
    log_json: bool = False

    materializer: MaterializerConfig = Field(default_factory=MaterializerConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            TomlSettingsSource(settings_cls, _toml_data.get() or {}),
        )

    @classmethod
    def from_cli(
        cls,
        *,
        config_path: str | None = None,
        root: Path | None = None,
        allow_load: bool = False,
        empty_as_null: bool = False,
        **cli_flags: Any,
    ) -> FormGraphSettings:
        """Build settings for a CLI invocation.

        ``--allow-load`` and ``--empty-as-null`` can only switch their
        policy on. Without them the TOML or environment value stands.

        Raises:
            click.ClickException: *config_path* does not exist, or the
                config file is not valid TOML.
        """
        if config_path:
            toml_path: Path | None = Path(config_path)
            if not toml_path.is_file():
                raise click.ClickException(f"Config file not found: {config_path}")
        else:
            toml_path = find_config(root)

        if root is None:
            root = toml_path.parent if toml_path else Path.cwd()

        token = _toml_data.set(read_toml(toml_path) if toml_path else {})
        try:
            settings = cls(root=root, config_path=toml_path, **cli_flags)
        finally:
            _toml_data.reset(token)

        policy = settings.materializer
        if allow_load:
            policy = policy.with_load_authorization(True)
        if empty_as_null:
            policy = policy.with_empty_string_normalization(True)
        if policy is settings.materializer:
            return settings
        return settings.model_copy(update={"materializer": policy})
