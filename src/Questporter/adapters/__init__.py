"""Host adapters for running the importer outside a live world."""

from .local import InMemoryWorld, JsonCompendium, LocalFileBrowser
from .world import HttpWorldClient

__all__ = [
    "HttpWorldClient",
    "InMemoryWorld",
    "JsonCompendium",
    "LocalFileBrowser",
]
