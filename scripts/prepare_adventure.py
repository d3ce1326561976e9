#!/usr/bin/env python3
"""Run the adventure reconciliation stages over exported JSON and write the result.

Usage:
  python scripts/prepare_adventure.py --adventure adventure.json --batch batch.json \
      --data-root Data --compendium packs/ [--locale ru] [--fields actors scenes] \
      [--option enhancedMaps=false] [--previously-imported] [--out prepared.json]
"""
from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

import orjson

# Ensure src is on the import path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from Questporter.adapters import InMemoryWorld, JsonCompendium, LocalFileBrowser  # type: ignore
from Questporter.adventure import AdventureConfigError, load_adventure_config  # type: ignore
from Questporter.batch import AdventureBatch, BatchError  # type: ignore
from Questporter.config import load_settings  # type: ignore
from Questporter.importer import AdventureImporter, ImportCollaborators  # type: ignore
from Questporter.logging import setup_logging  # type: ignore
from Questporter.selection import ImportSelection  # type: ignore


def _parse_option(raw: str) -> tuple[str, bool]:
    name, _, value = raw.partition("=")
    if not name or value.lower() not in ("true", "false", "1", "0", "on", "off"):
        raise argparse.ArgumentTypeError(f"expected NAME=true|false, got {raw!r}")
    return name, value.lower() in ("true", "1", "on")


def main() -> int:
    ap = argparse.ArgumentParser(description="Prepare an adventure batch for import")
    ap.add_argument("--adventure", type=Path, required=True, help="Adventure configuration JSON")
    ap.add_argument("--batch", type=Path, required=True, help='Raw {"toCreate", "toUpdate"} JSON')
    ap.add_argument("--data-root", type=Path, default=None)
    ap.add_argument("--compendium", type=Path, default=None, help="Directory of <scope>.<pack>.json files")
    ap.add_argument("--locale", default=None)
    ap.add_argument("--fields", nargs="*", default=["all"], help="Content tokens to import")
    ap.add_argument("--option", type=_parse_option, action="append", default=[])
    ap.add_argument("--previously-imported", action="store_true")
    ap.add_argument("--out", type=Path, default=None, help="Output path (default: stdout)")
    args = ap.parse_args()

    settings = load_settings()
    overrides = {}
    if args.locale:
        overrides["locale"] = args.locale
    if args.data_root:
        overrides["data_root"] = str(args.data_root)
    if overrides:
        settings = settings.model_copy(update=overrides)
    setup_logging(settings)

    try:
        config = load_adventure_config(args.adventure)
        batch = AdventureBatch.from_dict(orjson.loads(args.batch.read_bytes()))
    except (AdventureConfigError, BatchError, OSError, orjson.JSONDecodeError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 2

    compendium = JsonCompendium(args.compendium) if args.compendium else None
    world = InMemoryWorld(compendium=compendium, imported=args.previously_imported)
    importer = AdventureImporter(
        config,
        ImportCollaborators(store=world, files=LocalFileBrowser(Path(settings.data_root)), state=world),
        settings,
    )
    form = {"importFields": args.fields, **dict(args.option)}
    selection = ImportSelection.from_form(form, config)
    asyncio.run(importer.prepare_import_data(batch, selection))

    payload = orjson.dumps(batch.to_dict(), option=orjson.OPT_INDENT_2 | orjson.OPT_SORT_KEYS)
    if args.out:
        args.out.write_bytes(payload + b"\n")
    else:
        sys.stdout.write(payload.decode("utf-8") + "\n")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
