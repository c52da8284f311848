"""Locate and read ``formgraph.toml``.

Lookup order: the ``FORMGRAPH_CONFIG`` environment variable, then the
nearest ``formgraph.toml`` in the start directory or any ancestor. An
environment override that points at a missing file disables the walk-up.
"""

from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import TYPE_CHECKING, Any

import click

if TYPE_CHECKING:
    from collections.abc import Iterator

CONFIG_FILENAME = "formgraph.toml"
CONFIG_ENV_VAR = "FORMGRAPH_CONFIG"


def config_override() -> Path | None:
    """The path named by ``FORMGRAPH_CONFIG``, if the variable is set."""
    value = os.environ.get(CONFIG_ENV_VAR, "").strip()
    return Path(value) if value else None


def _candidates(start: Path) -> Iterator[Path]:
    directory = start.resolve()
    yield directory / CONFIG_FILENAME
    for parent in directory.parents:
        yield parent / CONFIG_FILENAME


def find_config(start: Path | None = None) -> Path | None:
    """Return the config file that applies to *start* (default: cwd), or None."""
    override = config_override()
    if override is not None:
        return override if override.is_file() else None
    return next((c for c in _candidates(start or Path.cwd()) if c.is_file()), None)


def read_toml(path: Path) -> dict[str, Any]:
    """Parse *path* as TOML.

    Raises:
        click.ClickException: The file is not valid TOML.
    """
    try:
        return tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        raise click.ClickException(f"Invalid TOML in {path}: {exc}") from exc

