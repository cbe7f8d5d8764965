"""Configuration loading for flakewrap (.flakewrap.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

from .errors import ConfigError

CONFIG_FILENAME = ".flakewrap.yml"


@dataclass
class NixConfig:
    """How the nix executable is invoked."""

    executable: str = "nix"
    extra_args: List[str] = field(default_factory=list)


@dataclass
class EchoConfig:
    """Which child streams are echoed live for build/check/run."""

    stdout: bool = True
    stderr: bool = True
    prefix: bool = False


@dataclass
class FlakeWrapConfig:
    """Represents the settings defined in .flakewrap.yml."""

    root: Path
    nix: NixConfig = field(default_factory=NixConfig)
    echo: EchoConfig = field(default_factory=EchoConfig)


def load_config(config_path: Path) -> FlakeWrapConfig:
    """Load configuration from disk, falling back to defaults when absent."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return FlakeWrapConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    nix = NixConfig()
    nix_data = _as_dict(data.get("nix"))
    if nix_data:
        nix.executable = _as_str(nix_data.get("executable")) or nix.executable
        nix.extra_args = _as_str_list(nix_data.get("extra_args"))

    echo = EchoConfig()
    echo_data = _as_dict(data.get("echo"))
    if echo_data:
        stdout = _as_bool(echo_data.get("stdout"))
        stderr = _as_bool(echo_data.get("stderr"))
        prefix = _as_bool(echo_data.get("prefix"))
        echo.stdout = echo.stdout if stdout is None else stdout
        echo.stderr = echo.stderr if stderr is None else stderr
        echo.prefix = echo.prefix if prefix is None else prefix

    return FlakeWrapConfig(root=root, nix=nix, echo=echo)


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.name != CONFIG_FILENAME:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return {} if loaded is None else loaded


def _is_scalar(value: Any) -> bool:
    # YAML booleans are not valid command-line words.
    return isinstance(value, (str, int, float)) and not isinstance(value, bool)


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if _is_scalar(value) else None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if _is_scalar(item)]
    return []


__all__ = ["CONFIG_FILENAME", "EchoConfig", "FlakeWrapConfig", "NixConfig", "load_config"]
