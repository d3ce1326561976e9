"""Localized overlays for adventure documents.

Translations live under ``{module_root}/lang/{locale}/{slug}/``:

* ``{slug}.json`` maps document type names to lists of partial documents,
  matched to batch documents by ``_id``.
* ``{page_id}-{page-slug}.html`` files replace the text of journal pages.

Nothing here is fatal: missing directories, unreadable manifests, and
unfetchable pages all fall back to the bundled text.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import structlog

from Questporter.batch import AdventureBatch, DocumentGroups
from Questporter.interfaces import FileBrowser, FileFetchError
from Questporter.merge import merge_object, strict_slug
from Questporter.metrics import inc_counter

log = structlog.get_logger()


@dataclass(frozen=True)
class LocalizationBundle:
    base_path: str
    translations: Mapping[str, list[dict[str, Any]]] = field(default_factory=dict)
    override_files: frozenset[str] = frozenset()

    @property
    def is_empty(self) -> bool:
        return not self.translations and not self.override_files


def localization_path(module_root: str, locale: str, slug: str) -> str:
    return f"{module_root.rstrip('/')}/lang/{locale}/{slug}"


def page_override_path(base_path: str, page: Mapping[str, Any], extension: str = ".html") -> str:
    return f"{base_path}/{page.get('_id')}-{strict_slug(page.get('name') or '')}{extension}"


def _translation_entries(raw: Mapping[str, Any], manifest: str) -> dict[str, list[dict[str, Any]]]:
    """Keep the list-valued types of a manifest and, within them, only object entries."""
    translations: dict[str, list[dict[str, Any]]] = {}
    for doc_type, entries in raw.items():
        if not isinstance(entries, list):
            log.warning("localization.manifest_invalid", path=manifest, document_type=doc_type)
            continue
        kept = [e for e in entries if isinstance(e, Mapping)]
        if len(kept) != len(entries):
            inc_counter("importer.localization.invalid_entries", len(entries) - len(kept))
            log.warning(
                "localization.manifest_invalid",
                path=manifest,
                document_type=doc_type,
                dropped=len(entries) - len(kept),
            )
        translations[str(doc_type)] = kept
    return translations


async def prepare_localization(
    files: FileBrowser,
    *,
    module_root: str,
    slug: str,
    locale: str,
    default_locale: str = "en",
    extension: str = ".html",
) -> LocalizationBundle:
    """Collect the translation manifest and page override index for a locale."""
    base_path = localization_path(module_root, locale, slug)
    if locale == default_locale:
        return LocalizationBundle(base_path)

    try:
        listed = await files.list_files(base_path)
    except FileFetchError as exc:
        inc_counter("importer.localization.unavailable")
        log.info("localization.unavailable", path=base_path, locale=locale, error=str(exc))
        return LocalizationBundle(base_path)

    manifest = f"{base_path}/{slug}.json"
    translations: dict[str, list[dict[str, Any]]] = {}
    if manifest in listed:
        try:
            raw = await files.fetch_json(manifest)
        except FileFetchError as exc:
            inc_counter("importer.localization.manifest_unavailable")
            log.info("localization.manifest_unavailable", path=manifest, error=str(exc))
        else:
            if isinstance(raw, Mapping):
                translations = _translation_entries(raw, manifest)
            else:
                log.warning("localization.manifest_invalid", path=manifest)

    override_files = frozenset(f for f in listed if f.endswith(extension))
    log.debug(
        "localization.prepared",
        path=base_path,
        locale=locale,
        translated_types=sorted(translations),
        override_files=len(override_files),
    )
    return LocalizationBundle(base_path, translations, override_files)


async def merge_journal_content(
    batch: AdventureBatch,
    files: FileBrowser,
    bundle: LocalizationBundle,
    extension: str = ".html",
) -> int:
    """Replace journal page text with localized override files.

    Returns the number of pages replaced.
    """
    if not bundle.override_files:
        return 0
    replaced = 0
    for entry in batch.documents("JournalEntry"):
        for page in entry.get("pages") or []:
            path = page_override_path(bundle.base_path, page, extension)
            if path not in bundle.override_files:
                continue
            try:
                content = await files.fetch_text(path)
            except FileFetchError as exc:
                inc_counter("importer.localization.override_missing")
                log.debug("localization.override_missing", path=path, error=str(exc))
                continue
            if content:
                merge_object(page, {"text.content": content})
                replaced += 1
    return replaced


def apply_translations(groups: DocumentGroups, bundle: LocalizationBundle) -> int:
    """Merge translation entries into matching documents of one collection.

    Returns the number of documents translated.
    """
    translated = 0
    for document_name, documents in groups.items():
        translations = bundle.translations.get(document_name) or []
        if not translations:
            continue
        for document in documents:
            match = next(
                (t for t in translations if isinstance(t, Mapping) and t.get("_id") == document.get("_id")),
                None,
            )
            if match is not None:
                merge_object(document, match)
                translated += 1
    return translated
