"""Discovery of the flake project root by ancestor search."""

from __future__ import annotations

from pathlib import Path

from .errors import AnchorNotFound
from .logging import get_logger

ANCHOR_FILE = "flake.nix"

_LOGGER = get_logger("locator")


def back_search(start: Path, filename: str) -> Path:
    """Return the first ``filename`` found in ``start`` or one of its parents."""
    candidate = start
    while True:
        test = candidate / filename
        if test.is_file():
            return test
        parent = candidate.parent
        if parent == candidate:
            break
        candidate = parent
    raise AnchorNotFound(f"Unable to find a {filename} in the directory ancestry of {start}")


def find_project_root(start: Path | None = None, *, anchor: str = ANCHOR_FILE) -> Path:
    """Locate the directory holding the flake manifest.

    A root without a ``.git`` directory is accepted with a warning.
    """
    origin = (start if start is not None else Path.cwd()).resolve()
    root = back_search(origin, anchor).parent
    _LOGGER.debug("Found %s in %s", anchor, root)
    if not (root / ".git").is_dir():
        _LOGGER.warning("Flake is not a git repo")
    return root


__all__ = ["ANCHOR_FILE", "back_search", "find_project_root"]
