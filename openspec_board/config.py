"""Board configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path


def _default_state_dir() -> Path:
    return Path.home() / ".local" / "share" / "openspec-board"


@dataclass
class BoardConfig:
    """Where the change proposals, generated dataset and saved board live."""

    changes_dir: Path = Path("openspec/changes")
    dataset_path: Path = Path("openspec-board.dataset.json")
    state_dir: Path = field(default_factory=_default_state_dir)

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> BoardConfig:
        env = os.environ if environ is None else environ
        config = cls()
        if env.get("OPENSPEC_PATH"):
            config.changes_dir = Path(env["OPENSPEC_PATH"])
        if env.get("OPENSPEC_BOARD_DATASET"):
            config.dataset_path = Path(env["OPENSPEC_BOARD_DATASET"])
        if env.get("OPENSPEC_BOARD_STATE_DIR"):
            config.state_dir = Path(env["OPENSPEC_BOARD_STATE_DIR"])
        return config
