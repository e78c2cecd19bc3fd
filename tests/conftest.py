"""Pytest bootstrap for local source imports.

The ``pytest`` console script can run with a sys.path that excludes the
repository root. Ensure ``import stashtree`` resolves to the local package and
that the shared fakes in ``tests/`` are importable from nested test folders.
"""

from __future__ import annotations

import sys
from pathlib import Path


PROJECT_ROOT = Path(__file__).resolve().parent.parent
PROJECT_ROOT_STR = str(PROJECT_ROOT)
TESTS_DIR_STR = str(Path(__file__).resolve().parent)

for path in (PROJECT_ROOT_STR, TESTS_DIR_STR):
    if path not in sys.path:
        sys.path.insert(0, path)
