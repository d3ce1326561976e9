"""Filesystem and in-memory adapters.

These back the CLI and the test-suite: a data directory laid out like the
host's ``Data`` folder, compendium packs exported as JSON, and a world that
keeps its documents in memory.
"""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any

import orjson
import structlog

from Questporter.interfaces import FileFetchError, SourceDocument
from Questporter.merge import merge_object

log = structlog.get_logger()


class LocalFileBrowser:
    """FileBrowser over a local data root; paths are relative, ``/``-separated.

    Reads are blocking despite the async signatures; meant for the CLI and tests,
    not a live event loop.
    """

    def __init__(self, data_root: Path):
        self.data_root = Path(data_root)

    def _resolve(self, path: str) -> Path:
        return self.data_root / path.strip("/")

    async def list_files(self, path: str) -> list[str]:
        directory = self._resolve(path)
        if not directory.is_dir():
            raise FileFetchError(f"Directory not found: {path}")
        prefix = path.rstrip("/")
        return sorted(f"{prefix}/{p.name}" for p in directory.iterdir() if p.is_file())

    async def fetch_text(self, path: str) -> str:
        try:
            return self._resolve(path).read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise FileFetchError(f"Failed to read {path}: {exc}") from exc

    async def fetch_json(self, path: str) -> Any:
        try:
            return orjson.loads(self._resolve(path).read_bytes())
        except (OSError, orjson.JSONDecodeError) as exc:
            raise FileFetchError(f"Failed to load {path}: {exc}") from exc


class JsonCompendium:
    """Compendium packs exported as ``<scope>.<pack>.json`` files.

    A pack file holds ``{"type": "Actor", "documents": [...]}`` or a bare list
    of Actor documents. References resolve by their trailing document id, and
    the resolved uuid is always the canonical ``Compendium.<scope>.<pack>.<Type>.<id>``.
    Pack files are read synchronously on first use.
    """

    def __init__(self, root: Path):
        self.root = Path(root)
        self._packs: dict[str, tuple[str, dict[str, dict[str, Any]]]] = {}

    def _load_pack(self, collection: str) -> tuple[str, dict[str, dict[str, Any]]] | None:
        if collection in self._packs:
            return self._packs[collection]
        path = self.root / f"{collection}.json"
        if not path.exists():
            return None
        raw = orjson.loads(path.read_bytes())
        if isinstance(raw, list):
            doc_type, documents = "Actor", raw
        else:
            doc_type, documents = raw.get("type", "Actor"), raw.get("documents", [])
        pack = (doc_type, {d["_id"]: d for d in documents if "_id" in d})
        self._packs[collection] = pack
        return pack

    async def resolve_source(self, source_id: str) -> SourceDocument | None:
        parts = source_id.split(".")
        if len(parts) < 4 or parts[0] != "Compendium":
            return None
        collection = f"{parts[1]}.{parts[2]}"
        pack = self._load_pack(collection)
        if pack is None:
            return None
        doc_type, documents = pack
        doc = documents.get(parts[-1])
        if doc is None:
            return None
        return SourceDocument(
            uuid=f"Compendium.{collection}.{doc_type}.{doc['_id']}",
            data=copy.deepcopy(doc),
        )


class InMemoryWorld:
    """A world held in memory: DocumentStore plus the imported flag."""

    def __init__(self, compendium: JsonCompendium | None = None, imported: bool = False):
        self.compendium = compendium
        self.imported = imported
        self.documents: dict[str, dict[str, dict[str, Any]]] = {}
        self.world: dict[str, Any] = {}
        self.active_scene_id: str | None = None
        self.rendered: list[tuple[str, str]] = []
        self.updates: list[tuple[str, list[dict[str, Any]]]] = []

    async def resolve_source(self, source_id: str) -> SourceDocument | None:
        if self.compendium is None:
            return None
        return await self.compendium.resolve_source(source_id)

    async def commit(self, to_create: dict[str, list[dict]], to_update: dict[str, list[dict]]) -> dict[str, int]:
        created = updated = 0
        for doc_type, docs in to_create.items():
            bucket = self.documents.setdefault(doc_type, {})
            for doc in docs:
                bucket[doc["_id"]] = copy.deepcopy(doc)
                created += 1
        for doc_type, docs in to_update.items():
            bucket = self.documents.setdefault(doc_type, {})
            for doc in docs:
                merge_object(bucket.setdefault(doc["_id"], {}), doc)
                updated += 1
        log.debug("world.committed", created=created, updated=updated)
        return {"created": created, "updated": updated}

    async def has_document(self, document_name: str, document_id: str) -> bool:
        return document_id in self.documents.get(document_name, {})

    async def update_documents(self, document_name: str, updates: list[dict[str, Any]]) -> None:
        bucket = self.documents.setdefault(document_name, {})
        for update in updates:
            if update["_id"] not in bucket:
                raise KeyError(f"{document_name} {update['_id']} does not exist")
            merge_object(bucket[update["_id"]], update)
        self.updates.append((document_name, updates))

    async def activate_scene(self, scene_id: str) -> None:
        if not await self.has_document("Scene", scene_id):
            raise KeyError(f"Scene {scene_id} does not exist")
        for sid, scene in self.documents["Scene"].items():
            scene["active"] = sid == scene_id
        self.active_scene_id = scene_id

    async def render_document(self, document_name: str, document_id: str) -> None:
        self.rendered.append((document_name, document_id))

    async def update_world(self, data: dict[str, Any]) -> None:
        merge_object(self.world, data)

    async def get_imported(self) -> bool:
        return self.imported

    async def set_imported(self, value: bool) -> None:
        self.imported = value
