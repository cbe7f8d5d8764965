"""Interpretation of ``nix flake show --json`` output."""

from __future__ import annotations

import json
from typing import Any, Dict, List

from .errors import UnexpectedShowOutputShape


def interpret_show_output(text: str, platform_id: str) -> Dict[str, List[str]]:
    """Group the flake outputs for ``platform_id`` by category.

    The document is expected to look like
    ``{category: {platform: {entry: {"name": ...}}}}``. Every category is
    kept, even when nothing in it applies to ``platform_id``. Entries
    without a ``name`` are skipped.
    """
    try:
        document = json.loads(text.strip())
    except json.JSONDecodeError as exc:
        raise UnexpectedShowOutputShape(f"flake show output is not valid JSON: {exc}") from exc
    if not isinstance(document, dict):
        raise UnexpectedShowOutputShape(
            f"flake show output must be a JSON object, got {type(document).__name__}"
        )

    listing: Dict[str, List[str]] = {}
    for category, platforms in document.items():
        entries: List[str] = []
        listing[category] = entries
        if not isinstance(platforms, dict):
            continue
        for platform_name, outputs in platforms.items():
            if platform_name != platform_id or not isinstance(outputs, dict):
                continue
            for entry_id, metadata in outputs.items():
                name = _entry_name(metadata)
                if name is None:
                    continue
                entries.append(f"{category}.{platform_name}.{entry_id}: {name}")
    return listing


def format_listing(listing: Dict[str, List[str]]) -> str:
    lines: List[str] = []
    for category, entries in listing.items():
        lines.append(category)
        lines.extend(f"  {entry}" for entry in entries)
    return "\n".join(lines)


def _entry_name(metadata: Any) -> str | None:
    if not isinstance(metadata, dict):
        return None
    name = metadata.get("name")
    # An explicit null is treated the same as a missing name.
    if name is None:
        return None
    return str(name)


__all__ = ["format_listing", "interpret_show_output"]
