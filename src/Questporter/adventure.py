"""Adventure configuration models.

An adventure module declares which compendium fields each actor keeps, the
post-import options offered on the import form, and the locales it ships
translations for. Configurations are authored as JSON and validated here.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Literal

import orjson
from pydantic import BaseModel, Field, ValidationError, model_validator


class AdventureConfigError(ValueError):
    """Raised when an adventure configuration cannot be loaded or is invalid."""


class SceneVariantMap(BaseModel):
    """Two congruent sets of scenes rendering the same locations two ways."""

    original: list[str] = Field(default_factory=list)
    enhanced: list[str] = Field(default_factory=list)

    model_config = dict(frozen=True, extra="forbid")

    @model_validator(mode="after")
    def _disjoint(self) -> SceneVariantMap:
        shared = set(self.original) & set(self.enhanced)
        if shared:
            raise ValueError(f"scene ids present in both variants: {sorted(shared)}")
        return self

    def affected(self) -> list[str]:
        return [*self.original, *self.enhanced]

    def keeps(self, scene_id: str, use_enhanced: bool) -> bool:
        """Whether a scene survives the variant choice; unmapped scenes always do."""
        if scene_id in self.enhanced:
            return use_enhanced
        if scene_id in self.original:
            return not use_enhanced
        return True


class _OptionBase(BaseModel):
    label: str
    default: bool = False

    model_config = dict(frozen=True, extra="forbid")


class SceneVariantsOption(_OptionBase):
    """Choose between original and enhanced maps."""

    kind: Literal["scene_variants"] = "scene_variants"
    scene_ids: SceneVariantMap


class ActivateSceneOption(_OptionBase):
    kind: Literal["activate_scene"] = "activate_scene"
    scene_id: str


class DisplayJournalOption(_OptionBase):
    kind: Literal["display_journal"] = "display_journal"
    entry_id: str


class CustomizeWorldOption(_OptionBase):
    """Rewrite the world's description and login background."""

    kind: Literal["customize_world"] = "customize_world"
    background: str


ImportOption = Annotated[
    SceneVariantsOption | ActivateSceneOption | DisplayJournalOption | CustomizeWorldOption,
    Field(discriminator="kind"),
]


class AdventureConfig(BaseModel):
    module_id: str
    slug: str
    title: str
    description: str = ""
    actor_overrides: dict[str, list[str]] = Field(default_factory=dict)
    # Ordered: handlers run in declaration order after import
    import_options: dict[str, ImportOption] = Field(default_factory=dict)
    # Journal entry whose presence marks the adventure as imported before
    getting_started_id: str | None = None
    languages: list[str] = Field(default_factory=list)

    model_config = dict(frozen=True, extra="forbid")

    def scene_variant_option(self) -> tuple[str, SceneVariantsOption] | None:
        for name, option in self.import_options.items():
            if isinstance(option, SceneVariantsOption):
                return name, option
        return None

    def option_defaults(self) -> dict[str, bool]:
        return {name: option.default for name, option in self.import_options.items()}


def load_adventure_config(path: Path) -> AdventureConfig:
    """Load and validate an adventure configuration JSON file.

    Raises:
        AdventureConfigError: If the file is unreadable, not JSON, or invalid.
    """
    try:
        raw = orjson.loads(path.read_bytes())
    except (OSError, orjson.JSONDecodeError) as exc:
        raise AdventureConfigError(f"Failed to load adventure config from {path}: {exc}") from exc
    try:
        return AdventureConfig.model_validate(raw)
    except ValidationError as exc:
        raise AdventureConfigError(f"Invalid adventure config {path}: {exc}") from exc
