from covgate.runner import LLVM_COV_IGNORE_REGEX, SubprocessRunner, default_pipeline, required_tools
from tests.fixtures.reports import make_settings


def test_tarpaulin_pipeline(tmp_path):
    settings = make_settings(tmp_path, coverage_timeout=120)
    steps = default_pipeline(settings)
    assert [step.stage for step in steps] == ["build"] * 4 + ["report"]
    coverage = steps[-1]
    assert coverage.argv[:3] == ("cargo", "tarpaulin", "--workspace")
    assert "120" in coverage.argv
    assert str(tmp_path / "coverage") in coverage.argv
    assert steps[3].argv[-2:] == ("-D", "warnings")


def test_llvm_cov_pipeline(tmp_path):
    settings = make_settings(tmp_path, engine="llvm-cov")
    steps = default_pipeline(settings)
    report_step = steps[-1]
    assert str(tmp_path / "coverage" / "lcov.info") in report_step.argv
    assert LLVM_COV_IGNORE_REGEX in report_step.argv


def test_required_tools_are_unique_and_ordered(tmp_path):
    tools = required_tools(default_pipeline(make_settings(tmp_path)))
    assert tools == [
        ("cargo", "https://rustup.rs"),
        ("cargo-tarpaulin", "cargo install cargo-tarpaulin"),
    ]


def test_subprocess_runner_which(monkeypatch):
    monkeypatch.setattr("covgate.runner.shutil.which", lambda tool: None)
    assert SubprocessRunner().which("cargo") is None


def test_subprocess_runner_returns_exit_code(monkeypatch):
    seen = {}

    class _Completed:
        returncode = 3

    def fake_run(argv, cwd=None, check=False):
        seen["argv"] = argv
        seen["check"] = check
        return _Completed()

    monkeypatch.setattr("covgate.runner.subprocess.run", fake_run)
    assert SubprocessRunner().run(("cargo", "build")) == 3
    assert seen == {"argv": ["cargo", "build"], "check": False}
