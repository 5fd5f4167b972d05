from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_DOWN, Decimal

D = Decimal

_HUNDRED = D("100")


@dataclass(frozen=True)
class ThresholdResult:
    passed: bool
    percent: int
    minimum: int


@dataclass(frozen=True)
class RegressionResult:
    passed: bool
    current_percent: int
    baseline_percent: int | None
    drop: float | None
    max_drop: float


def to_percent(ratio: D) -> int:
    """Whole percentage points, truncated toward zero (0.459 -> 45)."""
    return int((D(ratio) * _HUNDRED).to_integral_value(rounding=ROUND_DOWN))


def check_threshold(ratio: D, minimum: int) -> ThresholdResult:
    percent = to_percent(ratio)
    return ThresholdResult(passed=percent >= minimum, percent=percent, minimum=minimum)


def check_regression(current: D, baseline: D | None, max_drop: float) -> RegressionResult:
    current_percent = to_percent(current)
    if baseline is None:
        return RegressionResult(
            passed=True,
            current_percent=current_percent,
            baseline_percent=None,
            drop=None,
            max_drop=max_drop,
        )
    baseline_percent = to_percent(baseline)
    drop = float(baseline_percent - current_percent)
    return RegressionResult(
        passed=drop <= max_drop,
        current_percent=current_percent,
        baseline_percent=baseline_percent,
        drop=drop,
        max_drop=max_drop,
    )


__all__ = [
    "RegressionResult",
    "ThresholdResult",
    "check_regression",
    "check_threshold",
    "to_percent",
]
