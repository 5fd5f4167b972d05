from __future__ import annotations

import logging
from decimal import Decimal
from typing import Callable, Iterable

from covgate.baseline import BaselineStore
from covgate.config import Settings, get_settings
from covgate.errors import BaselineCorrupt, GateError, ReportMissing, ReportUnparseable, StepFailed, ToolMissing
from covgate.models import GateOutcome, GateState, GateVerdict
from covgate.policy import check_regression, check_threshold, to_percent
from covgate.report import parse_coverage_ratio
from covgate.runner import CommandRunner, PipelineStep, SubprocessRunner, default_pipeline, required_tools

logger = logging.getLogger("covgate.gate")

Echo = Callable[[str], None]

_ABORT_VERDICTS: dict[type[GateError], GateVerdict] = {
    ToolMissing: GateVerdict.FAIL_TOOL_MISSING,
    StepFailed: GateVerdict.FAIL_STEP_FAILED,
    ReportMissing: GateVerdict.FAIL_REPORT_MISSING,
    ReportUnparseable: GateVerdict.FAIL_REPORT_UNPARSEABLE,
}


class CoverageGate:
    """Runs the pipeline once and turns the coverage report into a verdict.

    States are visited strictly in order:
    start -> build_and_test -> generate_report -> parse -> check_threshold
    -> check_regression -> update_baseline -> exit.
    A failing external step or an unreadable report aborts straight to exit
    without touching the baseline. A failed threshold skips the regression
    check but still records the measured ratio.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        runner: CommandRunner | None = None,
        store: BaselineStore | None = None,
        steps: Iterable[PipelineStep] | None = None,
        echo: Echo = print,
    ) -> None:
        self.settings = settings or get_settings()
        self.paths = self.settings.paths()
        self.runner = runner or SubprocessRunner()
        self.store = store or BaselineStore(self.paths.baseline)
        self.steps = list(steps) if steps is not None else default_pipeline(self.settings)
        self.echo = echo
        self.states: list[GateState] = []

    def _enter(self, state: GateState) -> None:
        self.states.append(state)
        logger.debug("Gate state -> %s", state.value)

    def _load_baseline(self) -> Decimal | None:
        try:
            return self.store.load()
        except BaselineCorrupt as exc:
            logger.warning("%s; treating as no baseline", exc)
            return None

    def _check_tools(self) -> None:
        for tool, hint in required_tools(self.steps):
            if self.runner.which(tool) is None:
                raise ToolMissing(tool, hint)

    def _run_stage(self, stage: str) -> None:
        for step in self.steps:
            if step.stage != stage:
                continue
            self.echo(f"==> {step.name}")
            returncode = self.runner.run(step.argv, cwd=self.paths.project_dir)
            if returncode != 0:
                raise StepFailed(step.name, returncode)

    def _generate_report(self) -> None:
        report = self.paths.report
        if report.exists():
            logger.debug("Removing stale report %s", report)
            report.unlink()
        report.parent.mkdir(parents=True, exist_ok=True)
        self._run_stage("report")

    def _abort(self, exc: GateError, baseline: Decimal | None) -> GateOutcome:
        verdict = _ABORT_VERDICTS[type(exc)]
        self.echo(str(exc))
        logger.error("Coverage gate aborted (%s): %s", verdict.value, exc)
        self._enter(GateState.EXIT)
        self.echo(f"Coverage gate FAILED [{verdict.value}]")
        return GateOutcome(verdict=verdict, reason=str(exc), baseline=baseline, states=list(self.states))

    def run(self) -> GateOutcome:
        self.states = []
        settings = self.settings

        self._enter(GateState.START)
        baseline = self._load_baseline()
        try:
            if not settings.skip_pipeline:
                self._check_tools()
            self._enter(GateState.BUILD_AND_TEST)
            if not settings.skip_pipeline:
                self._run_stage("build")
            self._enter(GateState.GENERATE_REPORT)
            if not settings.skip_pipeline:
                self._generate_report()
            self._enter(GateState.PARSE)
            self.echo("==> Coverage threshold check")
            ratio = parse_coverage_ratio(self.paths.report)
        except (ToolMissing, StepFailed, ReportMissing, ReportUnparseable) as exc:
            return self._abort(exc, baseline)

        percent = to_percent(ratio)
        self.echo(f"Current coverage: {percent}%")

        self._enter(GateState.CHECK_THRESHOLD)
        threshold = check_threshold(ratio, settings.min_coverage)
        drop: float | None = None
        if not threshold.passed:
            verdict = GateVerdict.FAIL_BELOW_MINIMUM
            reason = (
                f"Coverage {threshold.percent}% is below minimum threshold of {threshold.minimum}% "
                f"(line-rate {ratio})"
            )
            self.echo(reason)
        else:
            self.echo("Coverage meets minimum threshold")
            self._enter(GateState.CHECK_REGRESSION)
            regression = check_regression(ratio, baseline, settings.max_drop)
            drop = regression.drop
            if regression.baseline_percent is None:
                self.echo("No baseline coverage found, setting current coverage as baseline")
                verdict = GateVerdict.PASS
                reason = f"Coverage {percent}% meets minimum {settings.min_coverage}%; no baseline yet"
            else:
                self.echo(f"Baseline coverage: {regression.baseline_percent}%")
                self.echo(f"Coverage drop: {drop:+.1f} points (max {settings.max_drop:g})")
                if regression.passed:
                    verdict = GateVerdict.PASS
                    reason = (
                        f"Coverage {percent}% meets minimum {settings.min_coverage}% and is within "
                        f"{settings.max_drop:g} points of baseline {regression.baseline_percent}%"
                    )
                    self.echo("Coverage change is within acceptable range")
                else:
                    verdict = GateVerdict.FAIL_REGRESSION
                    reason = (
                        f"Coverage dropped by {drop:g} points, more than {settings.max_drop:g} "
                        f"(from {regression.baseline_percent}% to {percent}%)"
                    )
                    self.echo(reason)

        self._enter(GateState.UPDATE_BASELINE)
        updated = False
        if settings.baseline_policy == "always" or verdict.passed:
            self.store.save(ratio)
            updated = True
            logger.info("Baseline %s updated to %s", self.store.path, ratio)
        else:
            logger.info("Baseline left at %s (policy %s)", baseline, settings.baseline_policy)

        self._enter(GateState.EXIT)
        if verdict.passed:
            self.echo(f"Coverage gate PASSED: {reason}")
        else:
            self.echo(f"Coverage gate FAILED [{verdict.value}]: {reason}")
        return GateOutcome(
            verdict=verdict,
            reason=reason,
            ratio=ratio,
            percent=percent,
            baseline=baseline,
            drop=drop,
            baseline_updated=updated,
            states=list(self.states),
        )


def run_gate(
    settings: Settings | None = None,
    *,
    runner: CommandRunner | None = None,
    echo: Echo = print,
) -> GateOutcome:
    return CoverageGate(settings, runner=runner, echo=echo).run()


__all__ = ["CoverageGate", "run_gate"]
