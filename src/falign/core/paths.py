# src/falign/core/paths.py
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


def _repo_root() -> Path:
    """
    Heuristically find the repo root:
    - Walk up from this file until we find a directory containing 'src'.
    - Fallback to 4 levels up (…/src/falign/core/paths.py -> parents[3]).
    - Final fallback: current working directory.
    """
    here = Path(__file__).resolve()
    for p in here.parents:
        if (p / "src").exists():
            return p
    try:
        return here.parents[3]
    except IndexError:
        return Path.cwd()


def _env_path(name: str, default: Path) -> Path:
    """
    Read a path from env; treat missing or blank values as 'unset'.
    Always expanduser() and resolve() to avoid surprises.
    """
    v = os.getenv(name)
    if v is None or v.strip() == "":
        return default
    return Path(v).expanduser().resolve()


@dataclass(frozen=True)
class FalignPaths:
    repo_root: Path
    falign_root: Path
    logs: Path


def get_paths() -> FalignPaths:
    root = _repo_root()
    falign_root = _env_path("FALIGN_HOME", root / ".falign")
    return FalignPaths(
        repo_root=root,
        falign_root=falign_root,
        logs=_env_path("FALIGN_LOGS_DIR", falign_root / "logs"),
    )
