"""
Environment + project-root helpers.

The CLI, the API server and test runs start from different working directories,
but all of them read `data/...` paths and an optional repo-local `.env`.

- `get_project_root()`: `ERRANZA_PROJECT_ROOT`, else the first ancestor that looks like the repo
- `load_dotenv_if_present()`: load `.env` once, never overriding the process environment
- `resolve_project_path()`: anchor relative paths at the project root
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

PROJECT_ROOT_ENV = "ERRANZA_PROJECT_ROOT"
ENV_FILE_ENV = "ERRANZA_ENV_FILE"


def _is_repo_root(path: Path) -> bool:
    if (path / ".env").is_file() or (path / ".git").exists():
        return True
    # Checkout layout without VCS metadata (sdist, container image).
    return all((path / name).is_dir() for name in ("src", "data"))


def _search_up(start: Path) -> Path | None:
    start = start.resolve()
    return next((p for p in (start, *start.parents) if _is_repo_root(p)), None)


@lru_cache
def get_project_root() -> Path:
    """Return the project root directory (cached for the process lifetime)."""
    configured = os.getenv(PROJECT_ROOT_ENV)
    if configured:
        return Path(configured).expanduser().resolve()

    env_file = os.getenv(ENV_FILE_ENV)
    if env_file:
        return Path(env_file).expanduser().resolve().parent

    return _search_up(Path.cwd()) or _search_up(Path(__file__).parent) or Path.cwd().resolve()


@lru_cache
def load_dotenv_if_present() -> Path | None:
    """Load the `.env` file once; returns its path, or None when there is none."""
    explicit = os.getenv(ENV_FILE_ENV)
    env_path = Path(explicit).expanduser().resolve() if explicit else get_project_root() / ".env"
    if not env_path.is_file():
        return None
    load_dotenv(dotenv_path=env_path, override=False)
    return env_path


def resolve_project_path(path: str | Path) -> Path:
    p = Path(path).expanduser()
    return p if p.is_absolute() else (get_project_root() / p).resolve()
