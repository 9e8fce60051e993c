"""Root-level conftest.py: make the checkout's actions_dash importable.

Puts the repository root first on sys.path so tests run against this
checkout (and ``tests.helpers`` resolves) without an editable install.
"""

import sys
from pathlib import Path

_root = str(Path(__file__).parent)
if _root not in sys.path:
    sys.path.insert(0, _root)
