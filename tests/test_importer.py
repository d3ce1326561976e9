"""End-to-end importer tests over the in-memory world and local files."""

import json

import pytest

from Questporter.adapters import InMemoryWorld, JsonCompendium, LocalFileBrowser
from Questporter.batch import AdventureBatch
from Questporter.importer import AdventureImporter, ImportCollaborators
from Questporter.metrics import get_counter
from Questporter.selection import ImportSelection

BESTIARY = "Compendium.pf2e.pathfinder-bestiary.Actor"


def _raw_batch() -> dict:
    return {
        "toCreate": {
            "Actor": [
                {"_id": "A1", "name": "Orc", "flags": {"core": {"sourceId": f"{BESTIARY}.orc1"}}},
                {
                    "_id": "HBRz8BVLVN9u9Odp",
                    "name": "Corpselight",
                    "items": [{"_id": "custom-bite"}],
                    "flags": {"core": {"sourceId": f"{BESTIARY}.will-o-wisp"}},
                },
                {"_id": "A3", "name": "Wanderer"},
            ],
            "Scene": [
                {"_id": "MSHO9s465zhZIuH7", "name": "Gauntlight Keep"},
                {"_id": "2dHU2g8WUOc4NZlq", "name": "Level 1 (original)"},
                {"_id": "lQkXSdxvO9CRxohD", "name": "Level 1 (enhanced)"},
            ],
            "JournalEntry": [
                {
                    "_id": "3iU3rV1nbiW2OYXM",
                    "name": "Getting Started",
                    "pages": [{"_id": "p1", "name": "Introduction", "text": {"content": "<p>Welcome</p>"}}],
                }
            ],
            "Folder": [{"_id": "F1", "type": "Actor"}, {"_id": "F2", "type": "Scene"}],
        },
        "toUpdate": {},
    }


@pytest.fixture
def host(tmp_path):
    data = tmp_path / "Data"
    lang = data / "modules" / "pf2e-ts-adv-abomination-vaults" / "lang" / "ru" / "abomination-vaults"
    lang.mkdir(parents=True)
    (lang / "abomination-vaults.json").write_text(
        json.dumps({"Actor": [{"_id": "A1", "name": "Орк"}], "Scene": [{"_id": "MSHO9s465zhZIuH7", "name": "Крепость"}]}),
        encoding="utf-8",
    )
    (lang / "p1-introduction.html").write_text("<p>Добро пожаловать</p>", encoding="utf-8")

    packs = tmp_path / "packs"
    packs.mkdir()
    (packs / "pf2e.pathfinder-bestiary.json").write_text(
        json.dumps(
            {
                "type": "Actor",
                "documents": [
                    {"_id": "orc1", "system": {"hp": 15}, "items": [{"_id": "axe"}], "effects": []},
                    {"_id": "will-o-wisp", "system": {"hp": 50}, "items": [{"_id": "shock"}], "effects": []},
                ],
            }
        )
    )
    world = InMemoryWorld(compendium=JsonCompendium(packs))
    return data, world


def _importer(adventure_config, settings, host, **settings_update):
    data, world = host
    settings = settings.model_copy(update=settings_update)
    collaborators = ImportCollaborators(store=world, files=LocalFileBrowser(data), state=world, world_id="av")
    return AdventureImporter(adventure_config, collaborators, settings)


@pytest.mark.asyncio
async def test_prepare_import_data_reconciles_all_sources(adventure_config, settings, host):
    importer = _importer(adventure_config, settings, host)
    batch = AdventureBatch.from_dict(_raw_batch())

    await importer.prepare_import_data(batch, ImportSelection(options={"enhancedMaps": True}))

    actors = {a["_id"]: a for a in batch.to_create["Actor"]}
    assert actors["A1"]["name"] == "Орк"
    assert actors["A1"]["system"] == {"hp": 15}
    assert actors["HBRz8BVLVN9u9Odp"]["items"] == [{"_id": "custom-bite"}]
    assert actors["HBRz8BVLVN9u9Odp"]["system"] == {"hp": 50}
    assert actors["A3"] == {"_id": "A3", "name": "Wanderer"}

    assert [s["_id"] for s in batch.to_create["Scene"]] == ["MSHO9s465zhZIuH7", "lQkXSdxvO9CRxohD"]
    assert batch.to_create["Scene"][0]["name"] == "Крепость"

    page = batch.to_create["JournalEntry"][0]["pages"][0]
    assert page["text"]["content"] == "<p>Добро пожаловать</p>"
    assert get_counter("importer.compendium.missing_reference") == 1


@pytest.mark.asyncio
async def test_default_locale_skips_localization(adventure_config, settings, host):
    importer = _importer(adventure_config, settings, host, locale="en")
    batch = AdventureBatch.from_dict(_raw_batch())

    await importer.prepare_import_data(batch, ImportSelection())

    assert batch.to_create["Actor"][0]["name"] == "Orc"
    assert batch.to_create["JournalEntry"][0]["pages"][0]["text"]["content"] == "<p>Welcome</p>"


@pytest.mark.asyncio
async def test_reimport_applies_type_filter(adventure_config, settings, host):
    _, world = host
    world.imported = True
    importer = _importer(adventure_config, settings, host)
    batch = AdventureBatch.from_dict(_raw_batch())

    await importer.prepare_import_data(batch, ImportSelection(import_fields=["scenes"], options={"enhancedMaps": False}))

    assert set(batch.to_create) == {"Scene", "Folder"}
    assert batch.to_create["Folder"] == [{"_id": "F2", "type": "Scene"}]
    assert [s["_id"] for s in batch.to_create["Scene"]] == ["MSHO9s465zhZIuH7", "2dHU2g8WUOc4NZlq"]


@pytest.mark.asyncio
async def test_run_commits_marks_imported_and_runs_options(adventure_config, settings, host):
    _, world = host
    importer = _importer(adventure_config, settings, host)
    batch = AdventureBatch.from_dict(_raw_batch())

    result = await importer.run(batch, {"importFields": ["all"], "enhancedMaps": True, "customizeJoin": False})

    assert result.commit_result == {"created": 8, "updated": 0}
    assert world.imported is True
    assert world.active_scene_id == "MSHO9s465zhZIuH7"
    assert world.rendered == [("JournalEntry", "3iU3rV1nbiW2OYXM")]
    assert world.documents["Scene"]["lQkXSdxvO9CRxohD"]["navigation"] is True
    assert "2dHU2g8WUOc4NZlq" not in world.documents["Scene"]
    assert result.option_outcomes == {
        "enhancedMaps": "enabled",
        "activateScene": "enabled",
        "displayJournal": "enabled",
        "customizeJoin": "disabled",
    }


@pytest.mark.asyncio
async def test_commit_failure_propagates(adventure_config, settings, store, files, state):
    store.fail_commit = True
    importer = AdventureImporter(
        adventure_config, ImportCollaborators(store=store, files=files, state=state), settings
    )
    with pytest.raises(RuntimeError, match="database is locked"):
        await importer.import_content(AdventureBatch(), ImportSelection())
    assert state.imported is False
    assert store.activated == []


@pytest.mark.asyncio
async def test_getting_started_entry_marks_world_as_imported(adventure_config, settings, store, files, state):
    store.existing["JournalEntry"] = {"3iU3rV1nbiW2OYXM"}
    importer = AdventureImporter(
        adventure_config, ImportCollaborators(store=store, files=files, state=state), settings
    )
    assert await importer.previously_imported() is True

    batch = AdventureBatch.from_dict(_raw_batch())
    await importer.prepare_import_data(batch, ImportSelection(import_fields=["actors"]))
    assert set(batch.to_create) == {"Actor", "Folder"}


@pytest.mark.asyncio
async def test_fresh_world_is_not_previously_imported(adventure_config, settings, store, files, state):
    importer = AdventureImporter(
        adventure_config, ImportCollaborators(store=store, files=files, state=state), settings
    )
    assert await importer.previously_imported() is False
