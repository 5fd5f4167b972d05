from __future__ import annotations

import logging
import os
import tempfile
from decimal import Decimal, InvalidOperation
from pathlib import Path

from covgate.errors import BaselineCorrupt

logger = logging.getLogger("covgate.baseline")

_ZERO = Decimal("0")
_ONE = Decimal("1")


class BaselineStore:
    """Last measured coverage ratio, one decimal per file."""

    def __init__(self, path: Path | str):
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.is_file()

    def load(self) -> Decimal | None:
        if not self.exists():
            return None
        raw = self.path.read_bytes()
        try:
            content = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise BaselineCorrupt(self.path, repr(raw)) from exc
        try:
            value = Decimal(content.strip())
        except InvalidOperation as exc:
            raise BaselineCorrupt(self.path, content) from exc
        if not value.is_finite() or not _ZERO <= value <= _ONE:
            raise BaselineCorrupt(self.path, content)
        return value

    def save(self, ratio: Decimal) -> Path:
        value = Decimal(ratio)
        if not value.is_finite() or not _ZERO <= value <= _ONE:
            raise ValueError(f"Coverage ratio must be within [0, 1], got {ratio}")
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(f"{value}\n")
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.debug("Stored baseline %s in %s", value, self.path)
        return self.path


__all__ = ["BaselineStore"]
