from __future__ import annotations

from typing import Any, Dict, Iterable, Optional, Set

from registry.paths import SEPARATOR


def child_name(key: str, prefix: str) -> str:
    """First path segment of key below prefix ("" when key is the prefix itself)."""
    remainder = key[len(prefix):] if key.startswith(prefix) else key
    return remainder.split(SEPARATOR)[0]


def synthesize_listing(entries: Optional[Iterable[Dict[str, Any]]], prefix: str) -> Set[str]:
    """
    Collapse every key under prefix into the set of immediate child names.

    Nested keys contribute their first segment only, so the listing is
    always one level deep. Entries without a key are skipped.
    """
    names: Set[str] = set()
    for entry in entries or []:
        key = entry.get("Key") if entry else None
        if not key:
            continue
        name = child_name(key, prefix)
        if name:
            names.add(name)
    return names
