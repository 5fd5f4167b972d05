from decimal import Decimal

import pytest

from covgate.policy import check_regression, check_threshold, to_percent

D = Decimal


@pytest.mark.parametrize(
    "ratio, expected",
    [("0", 0), ("0.05", 5), ("0.199", 19), ("0.29", 29), ("0.45", 45), ("0.999", 99), ("1", 100)],
)
def test_to_percent_truncates(ratio, expected):
    assert to_percent(D(ratio)) == expected


def test_threshold_scenario_a():
    result = check_threshold(D("0.45"), 20)
    assert result.passed is True
    assert result.percent == 45


def test_threshold_scenario_b():
    result = check_threshold(D("0.10"), 20)
    assert result.passed is False
    assert result.percent == 10
    assert result.minimum == 20


def test_threshold_boundaries():
    assert check_threshold(D("0.20"), 20).passed is True
    assert check_threshold(D("0.1999"), 20).passed is False
    assert check_threshold(D("0"), 0).passed is True


def test_regression_without_baseline_passes():
    result = check_regression(D("0.05"), None, 10)
    assert result.passed is True
    assert result.drop is None
    assert result.baseline_percent is None


def test_regression_scenario_c():
    result = check_regression(D("0.38"), D("0.50"), 10)
    assert result.passed is False
    assert result.drop == 12.0
    assert result.baseline_percent == 50
    assert result.current_percent == 38


def test_regression_boundary_passes():
    assert check_regression(D("0.40"), D("0.50"), 10).passed is True
    assert check_regression(D("0.39"), D("0.50"), 10).passed is False


def test_regression_uses_truncated_percentages():
    # 0.509 -> 50 and 0.401 -> 40: ten points, not 10.8
    result = check_regression(D("0.401"), D("0.509"), 10)
    assert result.drop == 10.0
    assert result.passed is True


def test_improvement_reports_negative_drop():
    result = check_regression(D("0.70"), D("0.50"), 10)
    assert result.passed is True
    assert result.drop == -20.0
