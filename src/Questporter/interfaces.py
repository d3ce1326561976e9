"""Host collaborators consumed by the importer.

The importer never reaches into host globals; every document, file, and
configuration lookup goes through one of these interfaces.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol


class FileFetchError(Exception):
    """Raised by a FileBrowser when a path cannot be listed or fetched."""


@dataclass(frozen=True)
class SourceDocument:
    """Snapshot of an authoritative compendium document."""

    uuid: str
    data: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ContentField:
    """One content type an adventure bundle may carry."""

    document_name: str
    label: str
    label_plural: str
    icon: str = ""


class DocumentStore(Protocol):
    """Document persistence of the live world."""

    async def resolve_source(self, source_id: str) -> SourceDocument | None:
        """Resolve a compendium reference; None when it does not exist."""

    async def commit(self, to_create: dict[str, list[dict]], to_update: dict[str, list[dict]]) -> Any:
        """Create and update the finalized batch."""

    async def has_document(self, document_name: str, document_id: str) -> bool:
        """Whether a document of that type exists in the world."""

    async def update_documents(self, document_name: str, updates: list[dict[str, Any]]) -> None:
        """Apply partial updates keyed by ``_id``."""

    async def activate_scene(self, scene_id: str) -> None:
        """Make a scene the active one."""

    async def render_document(self, document_name: str, document_id: str) -> None:
        """Open a document's sheet for the user."""

    async def update_world(self, data: dict[str, Any]) -> None:
        """Update the local world record."""


class FileBrowser(Protocol):
    """File listing and fetching relative to the host data root."""

    async def list_files(self, path: str) -> list[str]:
        """List file paths directly under ``path``; raises FileFetchError."""

    async def fetch_text(self, path: str) -> str:
        """Read a file as text; raises FileFetchError."""

    async def fetch_json(self, path: str) -> Any:
        """Read and parse a JSON file; raises FileFetchError."""


class ContentTypeTable(Protocol):
    """Maps import-form tokens (``actors``, ``scenes``...) to content fields."""

    def get(self, token: str) -> ContentField | None:
        ...

    def content_fields(self) -> dict[str, ContentField]:
        ...


class ImportState(Protocol):
    """The persisted "adventure has been imported before" flag."""

    async def get_imported(self) -> bool:
        ...

    async def set_imported(self, value: bool) -> None:
        ...


class WorldClient(Protocol):
    """Host setup endpoint used to rewrite world metadata."""

    async def edit_world(self, data: dict[str, Any]) -> None:
        ...


DEFAULT_CONTENT_FIELDS: dict[str, ContentField] = {
    "folders": ContentField("Folder", "Folder", "Folders", "fas fa-folder"),
    "actors": ContentField("Actor", "Actor", "Actors", "fas fa-user"),
    "combats": ContentField("Combat", "Combat Encounter", "Combat Encounters", "fas fa-swords"),
    "items": ContentField("Item", "Item", "Items", "fas fa-suitcase"),
    "journal": ContentField("JournalEntry", "Journal Entry", "Journal Entries", "fas fa-book-open"),
    "scenes": ContentField("Scene", "Scene", "Scenes", "fas fa-map"),
    "tables": ContentField("RollTable", "Rollable Table", "Rollable Tables", "fas fa-th-list"),
    "macros": ContentField("Macro", "Macro", "Macros", "fas fa-code"),
    "cards": ContentField("Cards", "Card Stack", "Card Stacks", "fa-solid fa-cards"),
    "playlists": ContentField("Playlist", "Playlist", "Playlists", "fas fa-music"),
}


class StaticContentTypeTable:
    def __init__(self, fields: dict[str, ContentField] | None = None) -> None:
        self._fields = dict(DEFAULT_CONTENT_FIELDS if fields is None else fields)

    def get(self, token: str) -> ContentField | None:
        return self._fields.get(token)

    def content_fields(self) -> dict[str, ContentField]:
        return dict(self._fields)
