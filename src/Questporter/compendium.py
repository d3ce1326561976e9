"""Merge adventure actors with their authoritative compendium source."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

import structlog

from Questporter.batch import AdventureBatch, Document
from Questporter.interfaces import DocumentStore, SourceDocument
from Questporter.merge import get_path, merge_object
from Questporter.metrics import inc_counter

log = structlog.get_logger()

SOURCE_ID_PATH = "flags.core.sourceId"
PORTABLE_FIELDS = ("system", "items", "effects")


def source_pack(source_id: str) -> str:
    """Return ``scope.pack`` of a ``Compendium.<scope>.<pack>.<Type>.<id>`` reference."""
    parts = source_id.split(".")
    scope = parts[1] if len(parts) > 1 else None
    pack = parts[2] if len(parts) > 2 else None
    return f"{scope}.{pack}"


def source_update_data(source: SourceDocument) -> dict[str, Any]:
    update: dict[str, Any] = {f: source.data[f] for f in PORTABLE_FIELDS if f in source.data}
    update[SOURCE_ID_PATH] = source.uuid
    return update


async def merge_compendium_actor(
    actor: Document,
    store: DocumentStore,
    overrides: Sequence[str] = (),
) -> bool:
    """Merge one actor with its compendium source. Returns True when merged."""
    source_id = get_path(actor, SOURCE_ID_PATH)
    if not source_id:
        inc_counter("importer.compendium.missing_reference")
        log.warning(
            "compendium.missing_reference",
            actor_id=actor.get("_id"),
            actor_name=actor.get("name"),
        )
        return False

    try:
        source = await store.resolve_source(source_id)
    except Exception as exc:
        log.debug("compendium.resolve_failed", source_id=source_id, error=str(exc))
        source = None
    if source is None:
        inc_counter("importer.compendium.unresolved_reference")
        log.warning(
            "compendium.unresolved_reference",
            actor_id=actor.get("_id"),
            actor_name=actor.get("name"),
            pack=source_pack(source_id),
        )
        return False

    merge_object(actor, source_update_data(source), exclude=overrides)
    inc_counter("importer.compendium.merged")
    return True


async def merge_compendium_actors(
    batch: AdventureBatch,
    store: DocumentStore,
    overrides: Mapping[str, Sequence[str]],
) -> int:
    """Merge every Actor in both collections. Returns the number merged."""
    merged = 0
    for actor in batch.documents("Actor"):
        if await merge_compendium_actor(actor, store, overrides.get(actor.get("_id"), ())):
            merged += 1
    return merged
