"""Shared pytest fixtures and test helpers for formgraph tests."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest
from click.testing import CliRunner
from sqlalchemy.engine import Engine

from formgraph.config.settings import FormGraphSettings
from formgraph.domain.errors import RecordNotFound
from formgraph.domain.records import Record
from formgraph.infrastructure.database.engine import init_database
from formgraph.infrastructure.workspace import Workspace


class RecordingFactory:
    """In-memory record factory that logs every dispense/load call.

    Records seeded via :meth:`seed` can be loaded back; unknown ones raise
    :class:`RecordNotFound` like the SQL repository does.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[str, ...]] = []
        self._stored: dict[tuple[str, int], Record] = {}

    def seed(self, kind: str, identifier: int, **attributes: object) -> Record:
        record = Record(kind, identifier)
        for name, value in attributes.items():
            record.set_attribute(name, value)
        self._stored[(kind, identifier)] = record
        return record

    def dispense(self, kind: str) -> Record:
        self.calls.append(("dispense", kind))
        return Record(kind)

    def load(self, kind: str, identifier: int) -> Record:
        self.calls.append(("load", kind, identifier))
        try:
            return self._stored[(kind, identifier)]
        except KeyError:
            raise RecordNotFound(kind, identifier) from None


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep developer environment overrides out of the tests."""
    monkeypatch.delenv("FORMGRAPH_CONFIG", raising=False)
    monkeypatch.delenv("FORMGRAPH_MATERIALIZER__ALLOW_LOAD", raising=False)
    monkeypatch.delenv("FORMGRAPH_MATERIALIZER__EMPTY_STRING_AS_NULL", raising=False)


@pytest.fixture
def cli_runner() -> CliRunner:
    """Provide a Click CLI test runner."""
    return CliRunner()


@pytest.fixture
def factory() -> RecordingFactory:
    """Fresh recording factory."""
    return RecordingFactory()


@pytest.fixture
def db_engine(tmp_path: Path) -> Iterator[Engine]:
    """Initialized SQLite engine with all tables created."""
    engine = init_database(tmp_path)
    try:
        yield engine
    finally:
        engine.dispose()


def make_workspace(root: Path, **cli_flags: object) -> Workspace:
    """Build a Workspace rooted at *root* with the given CLI-level flags."""
    return Workspace(FormGraphSettings.from_cli(root=root, **cli_flags))


@pytest.fixture
def workspace(tmp_path: Path) -> Iterator[Workspace]:
    """Workspace on a temp directory with default (locked-down) policy."""
    ws = make_workspace(tmp_path)
    try:
        yield ws
    finally:
        ws.close()


@pytest.fixture
def trusted_workspace(tmp_path: Path) -> Iterator[Workspace]:
    """Workspace that allows identifier loads and nulls empty strings."""
    ws = make_workspace(tmp_path, allow_load=True, empty_as_null=True)
    try:
        yield ws
    finally:
        ws.close()


@pytest.fixture
def _isolated_workspace(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Change CWD to a temp directory so the CLI creates an isolated workspace.

    Use via ``@pytest.mark.usefixtures("_isolated_workspace")`` on command
    test classes.
    """
    monkeypatch.chdir(tmp_path)
