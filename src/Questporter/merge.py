"""Document merge helpers shared by the reconciliation stages.

Documents are plain JSON-like dicts. ``merge_object`` is an in-place deep
merge with the semantics adventure data expects:

- keys missing from the update are left alone (nothing is ever removed);
- nested mappings merge recursively;
- any other value (scalars and lists alike) replaces the target wholesale;
- keys written in dot notation (``"text.content"``) address nested paths;
- paths listed in ``exclude`` are skipped, keeping the target's own value.
"""

from __future__ import annotations

import copy
import re
import unicodedata
from collections.abc import Iterable, Mapping
from typing import Any

_WHITESPACE_RE = re.compile(r"\s+")
_NON_SLUG_RE = re.compile(r"[^a-zA-Z0-9-]")


def expand_object(data: Mapping[str, Any]) -> dict[str, Any]:
    """Expand dot-notation keys into nested dicts.

    ``{"flags.core.sourceId": "x", "name": "y"}`` becomes
    ``{"flags": {"core": {"sourceId": "x"}}, "name": "y"}``.
    """
    out: dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, Mapping):
            value = expand_object(value)
        parts = key.split(".")
        node = out
        for part in parts[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = {}
                node[part] = child
            node = child
        leaf = parts[-1]
        if isinstance(value, dict) and isinstance(node.get(leaf), dict):
            merge_object(node[leaf], value)
        else:
            node[leaf] = value
    return out


def merge_object(
    target: dict[str, Any],
    update: Mapping[str, Any],
    *,
    exclude: Iterable[str] = (),
) -> dict[str, Any]:
    """Deep-merge ``update`` into ``target`` in place and return ``target``.

    Args:
        target: Document to mutate.
        update: Values to merge; dot-notation keys are expanded first.
        exclude: Dotted paths (relative to the document root) that must not be
            written. ``"items"`` protects the whole field, ``"system.details"``
            protects one nested branch while the rest of ``system`` merges.
    """
    _merge(target, expand_object(update), frozenset(exclude), "")
    return target


def _merge(target: dict[str, Any], update: Mapping[str, Any], exclude: frozenset[str], prefix: str) -> None:
    for key, value in update.items():
        path = f"{prefix}.{key}" if prefix else key
        if path in exclude:
            continue
        current = target.get(key)
        if isinstance(value, Mapping) and isinstance(current, dict):
            _merge(current, value, exclude, path)
        elif isinstance(value, Mapping) and _has_excluded_child(exclude, path):
            target[key] = {}
            _merge(target[key], value, exclude, path)
        else:
            target[key] = copy.deepcopy(value)


def _has_excluded_child(exclude: frozenset[str], path: str) -> bool:
    marker = path + "."
    return any(p.startswith(marker) for p in exclude)


def get_path(data: Mapping[str, Any], path: str, default: Any = None) -> Any:
    """Read a dotted path from nested mappings, returning ``default`` when absent."""
    node: Any = data
    for part in path.split("."):
        if not isinstance(node, Mapping) or part not in node:
            return default
        node = node[part]
    return node


def strict_slug(value: str) -> str:
    """Slugify a page name for override file lookup.

    Accents are stripped, each run of whitespace becomes one ``-`` while
    existing dashes stay, and anything outside ``[a-z0-9-]`` is dropped.
    """
    slug = unicodedata.normalize("NFD", value.strip().lower())
    slug = "".join(ch for ch in slug if not unicodedata.combining(ch))
    slug = _WHITESPACE_RE.sub("-", slug)
    return _NON_SLUG_RE.sub("", slug)
