from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Sequence

from pydantic import ValidationError

from covgate.config import BASELINE_POLICIES, ENGINES, Settings
from covgate.gate import CoverageGate

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s - %(message)s"


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="covgate",
        description="Build, test and fail if line coverage is too low or regressed",
    )
    parser.add_argument("--minimum", type=int, help="Minimum coverage percentage (default 20)")
    parser.add_argument(
        "--max-drop",
        type=float,
        help="Maximum allowed drop from baseline in percentage points (default 10)",
    )
    parser.add_argument("--report", help="Path to coverage report (Cobertura XML or LCOV)")
    parser.add_argument("--baseline", help="Path to baseline file (default <output-dir>/baseline.txt)")
    parser.add_argument("--engine", choices=sorted(ENGINES), help="Coverage tool used to produce the report")
    parser.add_argument("--output-dir", help="Directory the coverage tool writes into (default coverage)")
    parser.add_argument("--coverage-timeout", type=int, help="Timeout in seconds passed to the coverage tool")
    parser.add_argument(
        "--baseline-policy",
        choices=sorted(BASELINE_POLICIES),
        help="Update the baseline after every measured run, or only after a passing one",
    )
    parser.add_argument(
        "--report-only",
        action="store_true",
        help="Skip build/test/coverage commands and gate an existing report",
    )
    parser.add_argument("--project-dir", help="Directory the build commands run in")
    parser.add_argument("--log-level", help="Logging level (default INFO)")
    parser.add_argument("--log-file", help="Also write diagnostics to this file")
    return parser.parse_args(argv)


def build_settings(args: argparse.Namespace) -> Settings:
    overrides: dict[str, Any] = {
        "min_coverage": args.minimum,
        "max_drop": args.max_drop,
        "report_path": args.report,
        "baseline_path": args.baseline,
        "engine": args.engine,
        "output_dir": args.output_dir,
        "coverage_timeout": args.coverage_timeout,
        "baseline_policy": args.baseline_policy,
        "project_dir": args.project_dir,
        "log_level": args.log_level,
    }
    values = {key: value for key, value in overrides.items() if value is not None}
    if args.report_only:
        values["skip_pipeline"] = True
    return Settings(**values)


def configure_logging(level: str, log_file: str | None = None) -> None:
    logger = logging.getLogger("covgate")
    logger.setLevel(level)
    for existing in list(logger.handlers):
        logger.removeHandler(existing)
        existing.close()
    formatter = logging.Formatter(LOG_FORMAT)
    stream = logging.StreamHandler(sys.stderr)
    stream.setFormatter(formatter)
    logger.addHandler(stream)
    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(path, encoding="utf-8")
        handler.setFormatter(formatter)
        logger.addHandler(handler)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    try:
        settings = build_settings(args)
    except (ValidationError, ValueError) as exc:
        print(f"covgate: invalid configuration\n{exc}", file=sys.stderr)
        return 2
    configure_logging(settings.log_level, args.log_file)
    outcome = CoverageGate(settings).run()
    return outcome.exit_code


if __name__ == "__main__":
    raise SystemExit(main())
