from __future__ import annotations

from pathlib import Path


class GateError(Exception):
    pass


class ToolMissing(GateError):
    def __init__(self, tool: str, hint: str | None = None) -> None:
        message = f"{tool} not found."
        if hint:
            message += f" Install with: {hint}"
        super().__init__(message)
        self.tool = tool
        self.hint = hint


class StepFailed(GateError):
    def __init__(self, step: str, returncode: int) -> None:
        super().__init__(f"Step '{step}' failed with exit code {returncode}")
        self.step = step
        self.returncode = returncode


class ReportError(GateError):
    def __init__(self, path: Path | str, message: str) -> None:
        super().__init__(message)
        self.path = Path(path)


class ReportMissing(ReportError):
    def __init__(self, path: Path | str) -> None:
        super().__init__(path, f"Expected {path} but it was not produced.")


class ReportUnparseable(ReportError):
    def __init__(self, path: Path | str, detail: str) -> None:
        super().__init__(path, f"Could not extract coverage from {path}: {detail}")
        self.detail = detail


class BaselineCorrupt(GateError):
    def __init__(self, path: Path | str, content: str) -> None:
        super().__init__(f"Baseline file {path} does not hold a coverage ratio: {content!r}")
        self.path = Path(path)
        self.content = content


__all__ = [
    "BaselineCorrupt",
    "GateError",
    "ReportError",
    "ReportMissing",
    "ReportUnparseable",
    "StepFailed",
    "ToolMissing",
]
