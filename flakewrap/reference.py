"""Parsing and resolution of flake target references.

Three forms are accepted, tried in this order:

* ``.#name`` - an attribute of the local flake, passed through as is.
* ``proto:path`` - a remote flake reference, passed through as is.
* ``name`` - a bare name, expanded to ``.#<category>.<system>.<name>``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Sequence, Union

from .errors import ReferenceParseFailure

_WORD = r"[A-Za-z0-9_-]+"
LOCAL_SIGIL = ".#"


class TargetCategory(str, Enum):
    """Flake output attribute a bare name is expanded into."""

    BUILDABLE = "packages"
    CHECKABLE = "checks"


@dataclass(frozen=True)
class LocalReference:
    path: str

    def __str__(self) -> str:
        return f"{LOCAL_SIGIL}{self.path}"


@dataclass(frozen=True)
class RemoteReference:
    protocol: str
    path: str

    def __str__(self) -> str:
        return f"{self.protocol}:{self.path}"


@dataclass(frozen=True)
class PartialReference:
    name: str

    def expand(self, category: str, platform_id: str) -> str:
        return f"{LOCAL_SIGIL}{category}.{platform_id}.{self.name}"

    def __str__(self) -> str:
        return self.name


Reference = Union[LocalReference, RemoteReference, PartialReference]


def _local(text: str) -> Optional[Reference]:
    match = re.fullmatch(re.escape(LOCAL_SIGIL) + f"({_WORD})", text)
    return LocalReference(path=match.group(1)) if match else None


def _remote(text: str) -> Optional[Reference]:
    match = re.fullmatch(f"({_WORD}):({_WORD})", text)
    return RemoteReference(protocol=match.group(1), path=match.group(2)) if match else None


def _partial(text: str) -> Optional[Reference]:
    match = re.fullmatch(_WORD, text)
    return PartialReference(name=match.group(0)) if match else None


_ALTERNATIVES: Sequence[Callable[[str], Optional[Reference]]] = (_local, _remote, _partial)


def parse_reference(text: str) -> Reference:
    """Parse ``text`` into the first reference form that matches all of it."""
    for alternative in _ALTERNATIVES:
        reference = alternative(text)
        if reference is not None:
            return reference
    raise ReferenceParseFailure(f"unable to parse reference {text!r}")


def resolve_reference(
    reference: Reference, category: Union[TargetCategory, str], platform_id: str
) -> str:
    """Return the installable string nix expects for ``reference``."""
    if isinstance(reference, PartialReference):
        category_name = category.value if isinstance(category, TargetCategory) else category
        return reference.expand(category_name, platform_id)
    return str(reference)


__all__ = [
    "LOCAL_SIGIL",
    "LocalReference",
    "PartialReference",
    "Reference",
    "RemoteReference",
    "TargetCategory",
    "parse_reference",
    "resolve_reference",
]
