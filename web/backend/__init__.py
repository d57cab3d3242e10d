"""MediaFlow Web Backend.

Dev convenience:
When running via `cd web && PYTHONPATH=. uvicorn backend.main:app`, the Python
import root is `web/`, so the sibling `mediaflow` package at the repository
root is not importable unless it's installed in the active venv.

To keep the local dev command stable, we add the repository root to
`sys.path` when the package is not already importable.
"""

__version__ = "0.1.0"

from importlib.util import find_spec
from pathlib import Path
import sys

repo_root = Path(__file__).resolve().parents[2]

if find_spec("mediaflow") is None and (repo_root / "mediaflow").is_dir():
    sys.path.insert(0, str(repo_root))
