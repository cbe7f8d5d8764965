"""Flake commands: build, check, run and show."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

from .config import FlakeWrapConfig, load_config
from .locator import find_project_root
from .logging import get_logger
from .process import ProcessResult, prefixed_echo_chunk, run_process
from .reference import Reference, TargetCategory, resolve_reference
from .show import format_listing, interpret_show_output
from .system import detect_system

_LOGGER = get_logger("flake")

Runner = Callable[..., ProcessResult]


@dataclass(frozen=True)
class ExecutionContext:
    """Facts computed once per invocation and shared by every command."""

    platform_id: str
    project_root: Path

    @classmethod
    def discover(cls, start: Path | None = None) -> "ExecutionContext":
        root = find_project_root(start)
        return cls(platform_id=detect_system(), project_root=root)


class Flake:
    """Runs nix commands against the flake at ``context.project_root``."""

    def __init__(
        self,
        context: ExecutionContext,
        config: FlakeWrapConfig | None = None,
        runner: Runner | None = None,
    ) -> None:
        self.context = context
        self.config = config or load_config(context.project_root)
        self._runner = runner or run_process

    @classmethod
    def discover(cls, start: Path | None = None, runner: Runner | None = None) -> "Flake":
        return cls(ExecutionContext.discover(start), runner=runner)

    def build(self, reference: Optional[Reference] = None) -> ProcessResult:
        args = self._command(["build"], reference, TargetCategory.BUILDABLE)
        return self._nix(args)

    def check(self, reference: Optional[Reference] = None) -> ProcessResult:
        args = self._command(["flake", "check"], reference, TargetCategory.CHECKABLE)
        return self._nix(args)

    def run(self, reference: Optional[Reference] = None) -> ProcessResult:
        args = self._command(["run"], reference, TargetCategory.BUILDABLE)
        return self._nix(args)

    def show(self) -> Dict[str, List[str]]:
        """Return the flake outputs for this platform, grouped by category."""
        args = self._command(["flake", "show", "--json"], None, TargetCategory.BUILDABLE)
        result = self._nix(args, echo_stdout=False)
        return interpret_show_output(result.stdout, self.context.platform_id)

    def render_show(self) -> str:
        return format_listing(self.show())

    # ------------------------------------------------------------------
    # Helpers

    def _command(
        self,
        words: Sequence[str],
        reference: Optional[Reference],
        category: TargetCategory,
    ) -> List[str]:
        args = [*words, *self.config.nix.extra_args]
        if reference is not None:
            args.append(resolve_reference(reference, category, self.context.platform_id))
        return args

    def _nix(self, args: Sequence[str], *, echo_stdout: bool | None = None) -> ProcessResult:
        echo = self.config.echo
        result = self._runner(
            self.config.nix.executable,
            list(args),
            echo_stdout=echo.stdout if echo_stdout is None else echo_stdout,
            echo_stderr=echo.stderr,
            cwd=self.context.project_root,
            echo=prefixed_echo_chunk if echo.prefix else None,
        )
        if result.exit_code != 0:
            _LOGGER.warning(
                "%s %s exited with status %d",
                self.config.nix.executable,
                " ".join(args),
                result.exit_code,
            )
        return result


__all__ = ["ExecutionContext", "Flake"]
