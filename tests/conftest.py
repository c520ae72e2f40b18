"""Make the checkout's ``filemarks`` package importable under pytest.

Tests run against the working tree, not an installed copy, so the
repository root goes first on ``sys.path``.
"""

from __future__ import annotations

import sys
from pathlib import Path

REPO_ROOT = str(Path(__file__).resolve().parent.parent)

if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)
