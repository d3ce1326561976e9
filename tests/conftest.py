# tests/conftest.py

import json
from pathlib import Path
from typing import Any

import pytest

from Questporter.adventure import AdventureConfig, load_adventure_config
from Questporter.config import Settings
from Questporter.interfaces import FileFetchError, SourceDocument
from Questporter.metrics import reset_counters

FIXTURES = Path(__file__).parent / "fixtures"


class FakeFiles:
    """In-memory FileBrowser that records every call."""

    def __init__(self, files: dict[str, str] | None = None, broken: set[str] | None = None):
        self.files = dict(files or {})
        self.broken = set(broken or ())
        self.calls: list[tuple[str, str]] = []

    async def list_files(self, path: str) -> list[str]:
        self.calls.append(("list", path))
        prefix = path.rstrip("/") + "/"
        listed = [p for p in self.files if p.startswith(prefix) and "/" not in p[len(prefix):]]
        if not listed:
            raise FileFetchError(f"Directory not found: {path}")
        return sorted(listed)

    async def fetch_text(self, path: str) -> str:
        self.calls.append(("text", path))
        if path in self.broken or path not in self.files:
            raise FileFetchError(path)
        return self.files[path]

    async def fetch_json(self, path: str) -> Any:
        self.calls.append(("json", path))
        if path in self.broken or path not in self.files:
            raise FileFetchError(path)
        return json.loads(self.files[path])


class FakeStore:
    """DocumentStore resolving sources from a dict; records everything else."""

    def __init__(self, sources: dict[str, SourceDocument] | None = None, existing: dict | None = None):
        self.sources = dict(sources or {})
        self.existing: dict[str, set[str]] = {k: set(v) for k, v in (existing or {}).items()}
        self.resolved: list[str] = []
        self.committed: list[tuple[dict, dict]] = []
        self.updates: list[tuple[str, list[dict]]] = []
        self.activated: list[str] = []
        self.rendered: list[tuple[str, str]] = []
        self.world_updates: list[dict] = []
        self.fail_commit = False

    async def resolve_source(self, source_id: str) -> SourceDocument | None:
        self.resolved.append(source_id)
        return self.sources.get(source_id)

    async def commit(self, to_create, to_update):
        if self.fail_commit:
            raise RuntimeError("database is locked")
        self.committed.append((to_create, to_update))
        return {"ok": True}

    async def has_document(self, document_name: str, document_id: str) -> bool:
        return document_id in self.existing.get(document_name, set())

    async def update_documents(self, document_name: str, updates: list[dict]) -> None:
        self.updates.append((document_name, updates))

    async def activate_scene(self, scene_id: str) -> None:
        self.activated.append(scene_id)

    async def render_document(self, document_name: str, document_id: str) -> None:
        self.rendered.append((document_name, document_id))

    async def update_world(self, data: dict) -> None:
        self.world_updates.append(data)


class FakeState:
    def __init__(self, imported: bool = False):
        self.imported = imported

    async def get_imported(self) -> bool:
        return self.imported

    async def set_imported(self, value: bool) -> None:
        self.imported = value


@pytest.fixture(autouse=True)
def _reset_metrics():
    reset_counters()
    yield
    reset_counters()


@pytest.fixture
def adventure_config() -> AdventureConfig:
    return load_adventure_config(FIXTURES / "adventure.json")


@pytest.fixture
def settings(tmp_path, monkeypatch) -> Settings:
    # Keep any developer config.toml/.env out of the picture
    monkeypatch.chdir(tmp_path)
    return Settings(locale="ru", logging_enabled=False)


@pytest.fixture
def files() -> FakeFiles:
    return FakeFiles()


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def state() -> FakeState:
    return FakeState()
