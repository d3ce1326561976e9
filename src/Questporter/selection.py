"""User import choices and the filters they drive.

Two filters narrow the batch before anything is merged:

* the type filter drops content types the user unchecked on re-import,
  always keeping folders for the types that remain;
* the scene variant filter keeps exactly one of the original or enhanced
  renditions of each mapped scene.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

import structlog
from pydantic import BaseModel, Field, field_validator

from Questporter.adventure import AdventureConfig, SceneVariantMap
from Questporter.batch import AdventureBatch
from Questporter.interfaces import ContentTypeTable
from Questporter.metrics import inc_counter

log = structlog.get_logger()

IMPORT_ALL = "all"
FOLDERS = "folders"


class ImportSelection(BaseModel):
    """Choices submitted with the import form."""

    import_fields: list[str] = Field(default_factory=list)
    options: dict[str, bool] = Field(default_factory=dict)

    model_config = dict(frozen=True)

    @field_validator("import_fields", mode="before")
    @classmethod
    def _coerce_fields(cls, v: Any) -> list[str]:
        if v is None:
            return []
        if isinstance(v, str):
            v = [v]
        # Unchecked boxes arrive as null/empty entries
        return [str(f) for f in v if f]

    @classmethod
    def from_form(cls, form_data: Mapping[str, Any], config: AdventureConfig) -> ImportSelection:
        """Build a selection from raw form data, defaulting options the form omitted."""
        options: dict[str, Any] = {}
        for name, option in config.import_options.items():
            value = form_data.get(name)
            options[name] = option.default if value is None else value
        return cls(import_fields=form_data.get("importFields"), options=options)

    def enabled(self, name: str, default: bool = False) -> bool:
        return self.options.get(name, default)

    def imports_everything(self) -> bool:
        return not self.import_fields or IMPORT_ALL in self.import_fields


def resolve_keep_types(tokens: Iterable[str], table: ContentTypeTable) -> set[str]:
    """Resolve form tokens to document type names; unknown tokens are ignored."""
    keep: set[str] = set()
    for token in tokens:
        field = table.get(token)
        if field is None:
            inc_counter("importer.selection.unknown_token")
            log.warning("selection.unknown_token", token=token)
            continue
        keep.add(field.document_name)
    return keep


def apply_import_controls(
    batch: AdventureBatch,
    selection: ImportSelection,
    table: ContentTypeTable,
    *,
    previously_imported: bool,
) -> set[str] | None:
    """Remove content types the user chose not to import.

    Only applies on re-import. The Folder group always survives, pruned down
    to folders holding a kept type. Returns the keep-set, or None when no
    filtering happened.
    """
    if not previously_imported or selection.imports_everything():
        return None
    chosen = [f for f in selection.import_fields if f != FOLDERS]
    keep = resolve_keep_types(chosen, table)
    if not keep:
        log.info("selection.no_valid_tokens", tokens=selection.import_fields)
        return None
    keep |= resolve_keep_types([FOLDERS], table)

    for groups in batch.collections():
        for doc_type in list(groups):
            if doc_type not in keep:
                del groups[doc_type]
        if "Folder" in groups:
            groups["Folder"] = [f for f in groups["Folder"] if f.get("type") in keep]
    log.info("selection.types_filtered", keep=sorted(keep), document_count=batch.document_count)
    return keep


def apply_scene_variant_preference(
    batch: AdventureBatch,
    variants: SceneVariantMap,
    use_enhanced: bool,
) -> int:
    """Keep one rendition per mapped scene. Returns the number of scenes dropped."""
    dropped = 0
    for groups in batch.collections():
        if "Scene" not in groups:
            continue
        kept = [s for s in groups["Scene"] if variants.keeps(s.get("_id"), use_enhanced)]
        dropped += len(groups["Scene"]) - len(kept)
        groups["Scene"] = kept
    if dropped:
        inc_counter("importer.selection.scenes_dropped", dropped)
    return dropped


def apply_selection(
    batch: AdventureBatch,
    selection: ImportSelection,
    config: AdventureConfig,
    table: ContentTypeTable,
    *,
    previously_imported: bool,
) -> None:
    apply_import_controls(batch, selection, table, previously_imported=previously_imported)
    variant = config.scene_variant_option()
    if variant is not None:
        name, option = variant
        apply_scene_variant_preference(batch, option.scene_ids, selection.enabled(name, option.default))
