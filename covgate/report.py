from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Literal

from covgate.errors import ReportMissing, ReportUnparseable

logger = logging.getLogger("covgate.report")

ReportFormat = Literal["cobertura", "lcov"]

LINE_RATE_ATTR = "line-rate"
LCOV_SUFFIXES = {".info", ".lcov"}

ZERO = Decimal("0")
ONE = Decimal("1")


@dataclass(frozen=True)
class CoverageReport:
    path: Path
    format: ReportFormat
    ratios: tuple[Decimal, ...]

    @property
    def aggregate(self) -> Decimal:
        # The first marker is the project total: Cobertura writes it on the root element.
        return self.ratios[0]


def detect_format(path: Path | str) -> ReportFormat:
    return "lcov" if Path(path).suffix.lower() in LCOV_SUFFIXES else "cobertura"


def _parse_ratio(path: Path, raw: str) -> Decimal:
    try:
        value = Decimal(raw.strip())
    except InvalidOperation as exc:
        raise ReportUnparseable(path, f"{LINE_RATE_ATTR}={raw!r} is not a decimal") from exc
    if not value.is_finite() or not ZERO <= value <= ONE:
        raise ReportUnparseable(path, f"{LINE_RATE_ATTR}={raw!r} is outside [0, 1]")
    return value


def _read_cobertura(path: Path) -> tuple[Decimal, ...]:
    try:
        root = ET.parse(path).getroot()
    except ET.ParseError as exc:
        raise ReportUnparseable(path, f"malformed XML ({exc})") from exc
    raw_rates = [
        element.attrib[LINE_RATE_ATTR]
        for element in root.iter()
        if LINE_RATE_ATTR in element.attrib
    ]
    if not raw_rates:
        raise ReportUnparseable(path, f"no {LINE_RATE_ATTR} marker found")
    # Only the first marker has to be valid; per-package rates are informational.
    first = _parse_ratio(path, raw_rates[0])
    rest: list[Decimal] = []
    for raw in raw_rates[1:]:
        try:
            rest.append(_parse_ratio(path, raw))
        except ReportUnparseable:
            logger.debug("Ignoring malformed secondary %s=%r in %s", LINE_RATE_ATTR, raw, path)
    return (first, *rest)


def _lcov_counter(path: Path, line: str) -> int:
    try:
        return int(line.split(":", 1)[1])
    except ValueError as exc:
        raise ReportUnparseable(path, f"bad LCOV counter {line!r}") from exc


def _read_lcov(path: Path) -> tuple[Decimal, ...]:
    found = 0
    hit = 0
    seen_records = False
    with path.open("r", encoding="utf-8", errors="ignore") as handle:
        for raw_line in handle:
            line = raw_line.strip()
            if line.startswith("LF:"):
                found += _lcov_counter(path, line)
                seen_records = True
            elif line.startswith("LH:"):
                hit += _lcov_counter(path, line)
    if not seen_records:
        raise ReportUnparseable(path, "no LF: records found")
    if found == 0:
        return (ZERO,)
    ratio = Decimal(hit) / Decimal(found)
    if ratio > ONE:
        raise ReportUnparseable(path, f"LH total {hit} exceeds LF total {found}")
    return (ratio,)


def read_report(path: Path | str, fmt: ReportFormat | None = None) -> CoverageReport:
    report_path = Path(path)
    if not report_path.is_file():
        raise ReportMissing(report_path)
    resolved = fmt or detect_format(report_path)
    if resolved == "lcov":
        ratios = _read_lcov(report_path)
    else:
        ratios = _read_cobertura(report_path)
    logger.debug("Parsed %s report %s: %d ratio(s)", resolved, report_path, len(ratios))
    return CoverageReport(path=report_path, format=resolved, ratios=ratios)


def parse_coverage_ratio(path: Path | str, fmt: ReportFormat | None = None) -> Decimal:
    return read_report(path, fmt).aggregate


__all__ = [
    "CoverageReport",
    "detect_format",
    "parse_coverage_ratio",
    "read_report",
]
