"""Post-import option handlers.

Each option declared by the adventure runs once the batch has been committed,
in declaration order, with the boolean the user chose for it. A failing
handler is logged and the remaining handlers still run.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

import structlog

from Questporter.adventure import (
    ActivateSceneOption,
    AdventureConfig,
    CustomizeWorldOption,
    DisplayJournalOption,
    ImportOption,
    SceneVariantsOption,
)
from Questporter.interfaces import DocumentStore, WorldClient
from Questporter.metrics import inc_counter
from Questporter.selection import ImportSelection

log = structlog.get_logger()


@dataclass
class OptionContext:
    """Collaborators handed to every option handler."""

    config: AdventureConfig
    store: DocumentStore
    world: WorldClient | None = None
    world_id: str | None = None


OptionHandler = Callable[[OptionContext, Any, bool], Awaitable[None]]


async def update_scene_navigation(ctx: OptionContext, option: SceneVariantsOption, enabled: bool) -> None:
    """Show the chosen map variant in scene navigation and hide the other.

    Applies for both answers; only scenes already in the world are touched.
    """
    variants = option.scene_ids
    updates = []
    for scene_id in variants.affected():
        if await ctx.store.has_document("Scene", scene_id):
            updates.append({"_id": scene_id, "navigation": variants.keeps(scene_id, enabled)})
    if updates:
        await ctx.store.update_documents("Scene", updates)


async def activate_scene(ctx: OptionContext, option: ActivateSceneOption, enabled: bool) -> None:
    if not enabled:
        return
    if await ctx.store.has_document("Scene", option.scene_id):
        await ctx.store.activate_scene(option.scene_id)


async def display_journal(ctx: OptionContext, option: DisplayJournalOption, enabled: bool) -> None:
    if not enabled:
        return
    if await ctx.store.has_document("JournalEntry", option.entry_id):
        await ctx.store.render_document("JournalEntry", option.entry_id)


async def customize_world(ctx: OptionContext, option: CustomizeWorldOption, enabled: bool) -> None:
    if not enabled:
        return
    if ctx.world is None or ctx.world_id is None:
        raise RuntimeError("customize_world requires a world client and world id")
    world_data = {
        "action": "editWorld",
        "id": ctx.world_id,
        "description": ctx.config.description,
        "background": option.background,
    }
    await ctx.world.edit_world(world_data)
    await ctx.store.update_world(world_data)


HANDLERS: dict[type, OptionHandler] = {
    SceneVariantsOption: update_scene_navigation,
    ActivateSceneOption: activate_scene,
    DisplayJournalOption: display_journal,
    CustomizeWorldOption: customize_world,
}


def handler_for(option: ImportOption) -> OptionHandler:
    return HANDLERS[type(option)]


async def run_import_options(ctx: OptionContext, selection: ImportSelection) -> dict[str, str]:
    """Run every declared option handler; returns the outcome per option name."""
    outcomes: dict[str, str] = {}
    for name, option in ctx.config.import_options.items():
        enabled = selection.enabled(name, option.default)
        try:
            await handler_for(option)(ctx, option, enabled)
        except Exception as exc:
            inc_counter("importer.options.failed")
            log.error("import_option.failed", option=name, kind=option.kind, error=str(exc), exc_info=True)
            outcomes[name] = "failed"
            continue
        outcomes[name] = "enabled" if enabled else "disabled"
    return outcomes
