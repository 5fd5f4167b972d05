"""Coverage gate for CI builds.

Runs the build and coverage tooling, reads the aggregate line-rate from the
report and fails the build on a low floor or a regression against the
stored baseline.
"""
from __future__ import annotations

__version__ = "0.1.0"
