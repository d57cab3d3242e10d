"""MediaFlow test bootstrap.

Why this exists:
- Tests import both the `mediaflow` package and the web backend
  (`web.backend`), which lives next to it in the source checkout and is not
  installed. The repository root must be on `sys.path` for either to resolve
  when pytest is invoked from another directory.
- The backend's flow store reads and writes `MEDIAFLOW_FLOWS_DIR` at import
  time; point it at a throwaway directory so tests never touch real flows.
"""

from __future__ import annotations

import os
import sys
import tempfile
from pathlib import Path


def _prepend_sys_path(path: Path) -> None:
    p = str(path)
    if p and p not in sys.path:
        sys.path.insert(0, p)


HERE = Path(__file__).resolve()
REPO_ROOT = HERE.parents[1]

_prepend_sys_path(REPO_ROOT)

os.environ.setdefault("MEDIAFLOW_FLOWS_DIR", tempfile.mkdtemp(prefix="mediaflow-test-flows-"))
