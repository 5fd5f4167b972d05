from __future__ import annotations

import logging
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Literal, Protocol, Sequence

from covgate.config import Settings

logger = logging.getLogger("covgate.runner")

Stage = Literal["build", "report"]

# Keep third-party and toolchain sources out of the LCOV totals.
LLVM_COV_IGNORE_REGEX = r"([\\/]\.cargo[\\/]registry[\\/]|[\\/]target[\\/]|[\\/]rustc[\\/])"


class CommandRunner(Protocol):
    def run(self, argv: Sequence[str], cwd: Path | None = None) -> int: ...

    def which(self, tool: str) -> str | None: ...


class SubprocessRunner:
    def run(self, argv: Sequence[str], cwd: Path | None = None) -> int:
        logger.debug("Running %s (cwd=%s)", " ".join(argv), cwd or ".")
        completed = subprocess.run(list(argv), cwd=cwd, check=False)
        return completed.returncode

    def which(self, tool: str) -> str | None:
        return shutil.which(tool)


@dataclass(frozen=True)
class PipelineStep:
    name: str
    argv: tuple[str, ...]
    stage: Stage
    requires: str | None = None
    install_hint: str | None = None


def _build_steps() -> list[PipelineStep]:
    cargo = dict(requires="cargo", install_hint="https://rustup.rs")
    return [
        PipelineStep("Build (workspace)", ("cargo", "build", "--workspace"), "build", **cargo),
        PipelineStep("Test (workspace)", ("cargo", "test", "--workspace"), "build", **cargo),
        PipelineStep("Format check", ("cargo", "fmt", "--all", "--", "--check"), "build", **cargo),
        PipelineStep(
            "Clippy (workspace, all-targets, all-features, deny warnings)",
            ("cargo", "clippy", "--workspace", "--all-targets", "--all-features", "--", "-D", "warnings"),
            "build",
            **cargo,
        ),
    ]


def _tarpaulin_steps(settings: Settings) -> list[PipelineStep]:
    output_dir = str(settings.paths().output_dir)
    return [
        PipelineStep(
            "Coverage (tarpaulin)",
            (
                "cargo", "tarpaulin", "--workspace",
                "--timeout", str(settings.coverage_timeout),
                "--out", "xml",
                "--output-dir", output_dir,
            ),
            "report",
            requires="cargo-tarpaulin",
            install_hint="cargo install cargo-tarpaulin",
        ),
    ]


def _llvm_cov_steps(settings: Settings) -> list[PipelineStep]:
    tool = dict(requires="cargo-llvm-cov", install_hint="cargo install cargo-llvm-cov")
    report = str(settings.paths().report)
    return [
        PipelineStep("Clean llvm-cov state", ("cargo", "llvm-cov", "clean", "--workspace"), "report", **tool),
        PipelineStep(
            "Coverage (llvm-cov)",
            ("cargo", "llvm-cov", "--workspace", "--all-targets", "--no-report"),
            "report",
            **tool,
        ),
        PipelineStep(
            "LCOV report",
            (
                "cargo", "llvm-cov", "report", "--lcov",
                "--output-path", report,
                "--ignore-filename-regex", LLVM_COV_IGNORE_REGEX,
            ),
            "report",
            **tool,
        ),
    ]


def default_pipeline(settings: Settings) -> list[PipelineStep]:
    if settings.engine == "llvm-cov":
        return _build_steps() + _llvm_cov_steps(settings)
    return _build_steps() + _tarpaulin_steps(settings)


def required_tools(steps: Iterable[PipelineStep]) -> list[tuple[str, str | None]]:
    seen: dict[str, str | None] = {}
    for step in steps:
        if step.requires and step.requires not in seen:
            seen[step.requires] = step.install_hint
    return list(seen.items())


__all__ = [
    "CommandRunner",
    "LLVM_COV_IGNORE_REGEX",
    "PipelineStep",
    "SubprocessRunner",
    "default_pipeline",
    "required_tools",
]
