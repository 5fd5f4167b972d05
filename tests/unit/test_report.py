from decimal import Decimal

import pytest

from covgate.errors import ReportMissing, ReportUnparseable
from covgate.report import detect_format, parse_coverage_ratio, read_report
from tests.fixtures.reports import write_cobertura


@pytest.mark.parametrize("raw", ["0", "0.0", "0.45", "0.8571428571", "1", "1.0"])
def test_cobertura_returns_marker_value(tmp_path, raw):
    path = write_cobertura(tmp_path / "cobertura.xml", raw)
    assert parse_coverage_ratio(path) == Decimal(raw)


def test_first_marker_is_aggregate(tmp_path):
    path = write_cobertura(tmp_path / "cobertura.xml", "0.45", "0.9", "0.1")
    report = read_report(path)
    assert report.format == "cobertura"
    assert report.ratios == (Decimal("0.45"), Decimal("0.9"), Decimal("0.1"))
    assert report.aggregate == Decimal("0.45")


def test_missing_report(tmp_path):
    with pytest.raises(ReportMissing) as exc:
        parse_coverage_ratio(tmp_path / "cobertura.xml")
    assert "was not produced" in str(exc.value)


@pytest.mark.parametrize(
    "content",
    [
        '<coverage branch-rate="0.5"></coverage>',
        '<coverage line-rate="abc"></coverage>',
        '<coverage line-rate=""></coverage>',
        '<coverage line-rate="1.5"></coverage>',
        '<coverage line-rate="-0.1"></coverage>',
        '<coverage line-rate="NaN"></coverage>',
        "<coverage line-rate=",
    ],
)
def test_unparseable_cobertura(tmp_path, content):
    path = tmp_path / "cobertura.xml"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(ReportUnparseable):
        parse_coverage_ratio(path)


def test_bad_secondary_marker_is_ignored(tmp_path):
    path = tmp_path / "cobertura.xml"
    path.write_text('<coverage line-rate="0.6"><package line-rate="oops"/></coverage>', encoding="utf-8")
    assert read_report(path).ratios == (Decimal("0.6"),)


def test_lcov_sums_records(tmp_path):
    path = tmp_path / "lcov.info"
    path.write_text(
        "SF:src/a.rs\nDA:1,1\nLF:10\nLH:5\nend_of_record\n"
        "SF:src/b.rs\nLF:10\nLH:10\nend_of_record\n",
        encoding="utf-8",
    )
    report = read_report(path)
    assert report.format == "lcov"
    assert report.aggregate == Decimal("0.75")


def test_lcov_without_lines_is_zero(tmp_path):
    path = tmp_path / "lcov.info"
    path.write_text("SF:src/a.rs\nLF:0\nLH:0\nend_of_record\n", encoding="utf-8")
    assert parse_coverage_ratio(path) == Decimal("0")


@pytest.mark.parametrize("content", ["SF:src/a.rs\nend_of_record\n", "LF:ten\nLH:1\n", "LF:2\nLH:3\n"])
def test_unparseable_lcov(tmp_path, content):
    path = tmp_path / "lcov.info"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(ReportUnparseable):
        parse_coverage_ratio(path)


def test_detect_format():
    assert detect_format("coverage/lcov.info") == "lcov"
    assert detect_format("coverage/total.LCOV") == "lcov"
    assert detect_format("coverage/cobertura.xml") == "cobertura"


def test_explicit_format_overrides_suffix(tmp_path):
    path = tmp_path / "report.txt"
    path.write_text("LF:4\nLH:1\n", encoding="utf-8")
    assert parse_coverage_ratio(path, "lcov") == Decimal("0.25")
