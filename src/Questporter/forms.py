"""Data describing the import form: content controls and option checkboxes."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from Questporter.adventure import AdventureConfig
from Questporter.interfaces import ContentTypeTable
from Questporter.selection import FOLDERS, IMPORT_ALL


@dataclass(frozen=True)
class ContentControl:
    field: str
    label: str
    count: int = 0
    icon: str = ""
    # Field checkboxes stay disabled while "import all" is checked, except folders
    toggles_with_all: bool = True


@dataclass(frozen=True)
class OptionControl:
    name: str
    label: str
    default: bool


@dataclass(frozen=True)
class ImportForm:
    content: list[ContentControl]
    options: list[OptionControl]


def describe_import_form(
    contents: Mapping[str, int],
    config: AdventureConfig,
    table: ContentTypeTable,
    *,
    previously_imported: bool,
) -> ImportForm:
    """Describe the import form for an adventure.

    Args:
        contents: Document count per content field token of the bundle.
        config: The adventure configuration.
        table: Content type table used for labels and icons.
        previously_imported: Content controls are only offered on re-import.
    """
    options = [
        OptionControl(name, option.label, option.default)
        for name, option in config.import_options.items()
    ]
    if not previously_imported:
        return ImportForm(content=[], options=options)

    content = [ContentControl(IMPORT_ALL, "Import All", toggles_with_all=False)]
    for token, cf in table.content_fields().items():
        count = contents.get(token, 0)
        if not count:
            continue
        label = cf.label_plural if count > 1 else cf.label
        content.append(
            ContentControl(token, label, count, cf.icon, toggles_with_all=token != FOLDERS)
        )
    return ImportForm(content=content, options=options)
