"""Test package initialisation.

The project packages (``notifications`` and ``utils``) live one directory
above this package. When the repository is not installed they are not
importable from the tests, so the repository root is appended to
``sys.path`` here instead of in every test module.
"""

from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.append(str(ROOT))
