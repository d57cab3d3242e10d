"""On-disk locations used by the web backend.

Every location can be overridden from the environment:

- `MEDIAFLOW_RUNTIME_DIR`:  root for backend state (default below)
- `MEDIAFLOW_FLOWS_DIR`:    saved flow JSON files (default `<runtime>/flows`)
- `MEDIAFLOW_FRONTEND_DIR`: built editor bundle to serve (default `web/frontend/dist`)
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

_BACKEND_DIR = Path(__file__).resolve().parents[1]
_WEB_DIR = _BACKEND_DIR.parent
_REPO_ROOT = _WEB_DIR.parent


def _env_path(name: str) -> Optional[Path]:
    raw = (os.getenv(name) or "").strip()
    return Path(raw).expanduser() if raw else None


def _ensure_dir(path: Path) -> Path:
    path = path.resolve()
    path.mkdir(parents=True, exist_ok=True)
    return path


def default_runtime_dir() -> Path:
    """`web/runtime` in a source checkout, `~/.mediaflow/runtime` otherwise."""
    if (_REPO_ROOT / "pyproject.toml").is_file():
        return _WEB_DIR / "runtime"
    return Path.home() / ".mediaflow" / "runtime"


def resolve_runtime_dir() -> Path:
    return _ensure_dir(_env_path("MEDIAFLOW_RUNTIME_DIR") or default_runtime_dir())


def resolve_flows_dir() -> Path:
    return _ensure_dir(_env_path("MEDIAFLOW_FLOWS_DIR") or resolve_runtime_dir() / "flows")


def resolve_frontend_dir() -> Path:
    """Location of the editor bundle (may not exist; nothing is created)."""
    return (_env_path("MEDIAFLOW_FRONTEND_DIR") or _WEB_DIR / "frontend" / "dist").resolve()
