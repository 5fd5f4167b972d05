from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum


class GateVerdict(str, Enum):
    PASS = "pass"
    FAIL_BELOW_MINIMUM = "fail_below_minimum"
    FAIL_REGRESSION = "fail_regression"
    FAIL_REPORT_MISSING = "fail_report_missing"
    FAIL_REPORT_UNPARSEABLE = "fail_report_unparseable"
    FAIL_TOOL_MISSING = "fail_tool_missing"
    FAIL_STEP_FAILED = "fail_step_failed"

    @property
    def passed(self) -> bool:
        return self is GateVerdict.PASS


class GateState(str, Enum):
    START = "start"
    BUILD_AND_TEST = "build_and_test"
    GENERATE_REPORT = "generate_report"
    PARSE = "parse"
    CHECK_THRESHOLD = "check_threshold"
    CHECK_REGRESSION = "check_regression"
    UPDATE_BASELINE = "update_baseline"
    EXIT = "exit"


@dataclass
class GateOutcome:
    """Result of one gate run.

    ``ratio`` and ``percent`` are only set once the report was parsed;
    ``drop`` only when a baseline was available to compare against.
    """

    verdict: GateVerdict
    reason: str
    ratio: Decimal | None = None
    percent: int | None = None
    baseline: Decimal | None = None
    drop: float | None = None
    baseline_updated: bool = False
    states: list[GateState] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return self.verdict.passed

    @property
    def exit_code(self) -> int:
        return 0 if self.passed else 1


__all__ = ["GateOutcome", "GateState", "GateVerdict"]
