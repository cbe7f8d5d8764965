"""Error types raised by flakewrap components."""

from __future__ import annotations


class FlakeWrapError(RuntimeError):
    """Base class for fatal flakewrap failures."""


class ConfigError(FlakeWrapError):
    """Raised when the configuration file cannot be parsed."""


class AnchorNotFound(FlakeWrapError):
    """Raised when no ancestor directory holds the anchor file."""


class ReferenceParseFailure(FlakeWrapError, ValueError):
    """Raised when a target reference matches none of the accepted forms."""


class ToolNotFound(FlakeWrapError):
    """Raised when the external executable is not on the search path."""


class ProcessSpawnFailure(FlakeWrapError):
    """Raised when the operating system refuses to start the child."""


class OutputStreamError(FlakeWrapError):
    """Raised when child output cannot be read or echoed."""


class ProcessDidNotExitNormally(FlakeWrapError):
    """Raised when the child is terminated by a signal."""


class UnexpectedShowOutputShape(FlakeWrapError):
    """Raised when `nix flake show --json` output is not a JSON object."""


__all__ = [
    "AnchorNotFound",
    "ConfigError",
    "FlakeWrapError",
    "OutputStreamError",
    "ProcessDidNotExitNormally",
    "ProcessSpawnFailure",
    "ReferenceParseFailure",
    "ToolNotFound",
    "UnexpectedShowOutputShape",
]
