#!/usr/bin/env python
from __future__ import annotations

import pathlib
import sys

p = str(pathlib.Path(__file__).resolve().parents[1])
sys.path.insert(0, p) if p not in sys.path else None

from covgate.cli import main  # noqa: E402

if __name__ == "__main__":
    raise SystemExit(main())
