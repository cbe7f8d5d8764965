"""Platform identifier detection for flake attribute paths."""

from __future__ import annotations

import platform
from typing import Dict, Optional, Tuple

UNKNOWN_SYSTEM = "unknown"

_SYSTEMS: Dict[Tuple[str, str], str] = {
    ("x86_64", "linux"): "x86_64-linux",
    ("aarch64", "linux"): "aarch64-linux",
    ("x86_64", "macos"): "x86_64-darwin",
    ("aarch64", "macos"): "aarch64-darwin",
    ("x86", "windows"): "i686-windows",
    ("x86_64", "windows"): "x86_64-windows",
    ("aarch64", "windows"): "aarch64-windows",
}

_ARCH_ALIASES = {
    "amd64": "x86_64",
    "x64": "x86_64",
    "arm64": "aarch64",
    "i386": "x86",
    "i686": "x86",
}

_OS_ALIASES = {
    "darwin": "macos",
    "win32": "windows",
}


def detect_system(machine: Optional[str] = None, os_name: Optional[str] = None) -> str:
    """Return the Nix system string for the given (or running) architecture and OS."""
    arch = _normalise(machine if machine is not None else platform.machine(), _ARCH_ALIASES)
    system = _normalise(os_name if os_name is not None else platform.system(), _OS_ALIASES)
    return _SYSTEMS.get((arch, system), UNKNOWN_SYSTEM)


def _normalise(value: str, aliases: Dict[str, str]) -> str:
    lowered = value.strip().lower()
    return aliases.get(lowered, lowered)


__all__ = ["UNKNOWN_SYSTEM", "detect_system"]
