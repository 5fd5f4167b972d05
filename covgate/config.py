from __future__ import annotations

import math
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Literal, cast

from pydantic import BaseModel, Field
from pydantic import ConfigDict, field_validator

Engine = Literal["tarpaulin", "llvm-cov"]
BaselinePolicy = Literal["always", "pass-only"]

ENGINES: frozenset[str] = frozenset({"tarpaulin", "llvm-cov"})
BASELINE_POLICIES: frozenset[str] = frozenset({"always", "pass-only"})
LOG_LEVELS: frozenset[str] = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})

REPORT_FILENAMES: dict[str, str] = {
    "tarpaulin": "cobertura.xml",
    "llvm-cov": "lcov.info",
}


def _env_engine() -> Engine:
    value = os.getenv("COVGATE_ENGINE", "tarpaulin").lower()
    normalized = value if value in ENGINES else "tarpaulin"
    return cast(Engine, normalized)


def _env_policy() -> BaselinePolicy:
    value = os.getenv("COVGATE_BASELINE_POLICY", "always").lower()
    normalized = value if value in BASELINE_POLICIES else "always"
    return cast(BaselinePolicy, normalized)


@dataclass(frozen=True)
class GatePaths:
    project_dir: Path
    output_dir: Path
    report: Path
    baseline: Path


class Settings(BaseModel):
    min_coverage: int = Field(default_factory=lambda: int(os.getenv("COVGATE_MIN_COVERAGE", "20")))
    max_drop: float = Field(default_factory=lambda: float(os.getenv("COVGATE_MAX_DROP", "10")))
    engine: Engine = Field(default_factory=_env_engine)
    project_dir: str = Field(default_factory=lambda: os.getenv("COVGATE_PROJECT_DIR", "."))
    output_dir: str = Field(default_factory=lambda: os.getenv("COVGATE_OUTPUT_DIR", "coverage"))
    report_path: str | None = Field(default_factory=lambda: os.getenv("COVGATE_REPORT_PATH"))
    baseline_path: str | None = Field(default_factory=lambda: os.getenv("COVGATE_BASELINE_PATH"))
    coverage_timeout: int = Field(default_factory=lambda: int(os.getenv("COVGATE_COVERAGE_TIMEOUT", "300")))
    baseline_policy: BaselinePolicy = Field(default_factory=_env_policy)
    skip_pipeline: bool = False
    log_level: str = Field(default_factory=lambda: os.getenv("COVGATE_LOG_LEVEL", "INFO"))

    model_config = ConfigDict(frozen=True)

    @field_validator("engine", "baseline_policy", mode="before")
    @classmethod
    def _normalize_choice(cls, value: str) -> str:
        return (value or "").lower()

    @field_validator("min_coverage")
    @classmethod
    def _validate_minimum(cls, value: int) -> int:
        if not 0 <= value <= 100:
            raise ValueError(f"COVGATE_MIN_COVERAGE must be between 0 and 100, got {value}")
        return value

    @field_validator("max_drop")
    @classmethod
    def _validate_max_drop(cls, value: float) -> float:
        if not math.isfinite(value) or value < 0:
            raise ValueError(f"COVGATE_MAX_DROP must be a finite, non-negative number, got {value}")
        return value

    @field_validator("coverage_timeout")
    @classmethod
    def _validate_timeout(cls, value: int) -> int:
        return max(1, value)

    @field_validator("log_level")
    @classmethod
    def _normalize_level(cls, value: str) -> str:
        upper = (value or "INFO").upper()
        if upper not in LOG_LEVELS:
            raise ValueError(f"COVGATE_LOG_LEVEL must be one of {sorted(LOG_LEVELS)}, got {upper}")
        return upper

    def paths(self) -> GatePaths:
        project = Path(self.project_dir)
        output = Path(self.output_dir)
        if not output.is_absolute():
            output = project / output
        if self.report_path:
            report = Path(self.report_path)
            if not report.is_absolute():
                report = project / report
        else:
            report = output / REPORT_FILENAMES[self.engine]
        if self.baseline_path:
            baseline = Path(self.baseline_path)
            if not baseline.is_absolute():
                baseline = project / baseline
        else:
            baseline = output / "baseline.txt"
        return GatePaths(project_dir=project, output_dir=output, report=report, baseline=baseline)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


__all__ = [
    "BASELINE_POLICIES",
    "ENGINES",
    "GatePaths",
    "Settings",
    "get_settings",
]
