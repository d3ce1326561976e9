"""Adventure importer: reconcile a bundled adventure batch before it is persisted.

The pipeline runs strictly in order, each stage mutating the batch in place:

1. Type filter: drop content types unchecked on re-import (folders kept).
2. Scene variant filter: keep original or enhanced maps, never both.
3. Compendium merge: refresh actors from their authoritative source.
4. Localization: build the locale bundle once.
5. Content overlay: swap journal page text for localized files.
6. Translation overlay: merge localized fields by document id.

After the host commits the batch the adventure is flagged as imported and the
post-import option handlers run.

None of the reconciliation problems (missing compendium sources, absent
translations, unreadable override files, failing option handlers) abort an
import. A failed commit does.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import structlog
from structlog.contextvars import bound_contextvars

from Questporter.adventure import AdventureConfig
from Questporter.batch import AdventureBatch
from Questporter.compendium import merge_compendium_actors
from Questporter.config import Settings, load_settings
from Questporter.interfaces import (
    ContentTypeTable,
    DocumentStore,
    FileBrowser,
    ImportState,
    StaticContentTypeTable,
    WorldClient,
)
from Questporter.localization import (
    LocalizationBundle,
    apply_translations,
    merge_journal_content,
    prepare_localization,
)
from Questporter.metrics import inc_counter, timed
from Questporter.options import OptionContext, run_import_options
from Questporter.selection import ImportSelection, apply_selection

log = structlog.get_logger()


@dataclass
class ImportCollaborators:
    """Host services the importer depends on."""

    store: DocumentStore
    files: FileBrowser
    state: ImportState
    table: ContentTypeTable = field(default_factory=StaticContentTypeTable)
    world: WorldClient | None = None
    world_id: str | None = None


@dataclass
class ImportResult:
    batch: AdventureBatch
    commit_result: Any = None
    option_outcomes: dict[str, str] = field(default_factory=dict)


class AdventureImporter:
    def __init__(
        self,
        config: AdventureConfig,
        collaborators: ImportCollaborators,
        settings: Settings | None = None,
    ):
        self.config = config
        self.collaborators = collaborators
        self.settings = settings or load_settings()

    async def prepare_localization(self) -> LocalizationBundle:
        s = self.settings
        return await prepare_localization(
            self.collaborators.files,
            module_root=s.module_root_for(self.config.module_id),
            slug=self.config.slug,
            locale=s.locale,
            default_locale=s.default_locale,
            extension=s.override_file_extension,
        )

    async def previously_imported(self) -> bool:
        """Whether this adventure was imported into the world before.

        The persisted flag decides; worlds imported before the flag existed are
        recognised by their getting-started journal entry.
        """
        c = self.collaborators
        if await c.state.get_imported():
            return True
        entry_id = self.config.getting_started_id
        return bool(entry_id) and await c.store.has_document("JournalEntry", entry_id)

    async def prepare_import_data(self, batch: AdventureBatch, selection: ImportSelection) -> AdventureBatch:
        """Run the reconciliation stages over ``batch`` in place and return it."""
        c = self.collaborators
        with bound_contextvars(adventure=self.config.slug), timed("importer.prepare_ms"):
            previously_imported = await self.previously_imported()
            apply_selection(batch, selection, self.config, c.table, previously_imported=previously_imported)

            merged = await merge_compendium_actors(batch, c.store, self.config.actor_overrides)

            bundle = await self.prepare_localization()
            pages = await merge_journal_content(batch, c.files, bundle, self.settings.override_file_extension)
            translated = sum(apply_translations(groups, bundle) for groups in batch.collections())

            log.info(
                "importer.prepared",
                previously_imported=previously_imported,
                document_count=batch.document_count,
                actors_merged=merged,
                pages_localized=pages,
                documents_translated=translated,
                locale=self.settings.locale,
            )
        return batch

    async def import_content(self, batch: AdventureBatch, selection: ImportSelection) -> ImportResult:
        """Commit the prepared batch, then run the post-import option handlers.

        Commit failures propagate unchanged.
        """
        c = self.collaborators
        with bound_contextvars(adventure=self.config.slug):
            commit_result = await c.store.commit(batch.to_create, batch.to_update)
            inc_counter("importer.committed")
            inc_counter("importer.documents", batch.document_count)

            try:
                await c.state.set_imported(True)
            except Exception as exc:
                log.error("importer.mark_imported_failed", error=str(exc))

            ctx = OptionContext(self.config, c.store, c.world, c.world_id)
            outcomes = await run_import_options(ctx, selection)
            log.info("importer.completed", document_count=batch.document_count, options=outcomes)
        return ImportResult(batch, commit_result, outcomes)

    async def run(self, batch: AdventureBatch, form_data: Mapping[str, Any]) -> ImportResult:
        """Prepare and import ``batch`` using a raw form submission."""
        selection = ImportSelection.from_form(form_data, self.config)
        await self.prepare_import_data(batch, selection)
        return await self.import_content(batch, selection)
