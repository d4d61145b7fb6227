"""CLI entry point for the backend HTML dev proxy."""

from __future__ import annotations

import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
PY_DIR = PROJECT_ROOT / "py"
if str(PY_DIR) not in sys.path:
    sys.path.insert(0, str(PY_DIR))

from backend_proxy.main import main  # noqa: E402

if __name__ == "__main__":
    main()
