from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator

import pytest


@pytest.fixture
def flake_project(tmp_path: Path) -> Path:
    """Provide a throwaway flake repository with a nested working directory."""
    root = tmp_path / "project"
    (root / ".git").mkdir(parents=True)
    (root / "flake.nix").write_text("{ outputs = { self }: { }; }\n", encoding="utf-8")
    (root / "src" / "deep").mkdir(parents=True)
    return root


@pytest.fixture
def propagate_logs(monkeypatch: pytest.MonkeyPatch) -> None:
    """Let caplog see flakewrap records even after configure_logging ran."""
    monkeypatch.setattr(logging.getLogger("flakewrap"), "propagate", True)


@pytest.fixture(autouse=True)
def reset_flakewrap_logger() -> Iterator[None]:
    """Drop handlers installed by configure_logging between tests."""
    logger = logging.getLogger("flakewrap")
    propagate = logger.propagate
    yield
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = propagate
