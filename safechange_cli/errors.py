"""SafeChange error hierarchy."""

from __future__ import annotations

from typing import Optional


class SafeChangeError(Exception):
    """Base error for all SafeChange exceptions."""


class PlanTargetNotFound(SafeChangeError):
    """The target path is absent from a freshly built dependency graph."""

    def __init__(self, file_path: str) -> None:
        super().__init__(f"File not found in dependency graph: {file_path}")
        self.file_path = file_path


class PlanNotFound(SafeChangeError):
    """No change plan is registered under the requested id."""

    def __init__(self, plan_id: str) -> None:
        super().__init__(f"Change plan not found: {plan_id}")
        self.plan_id = plan_id


class ScanIOError(SafeChangeError):
    """A directory or file could not be read during scanning."""

    def __init__(self, path: str, cause: Optional[BaseException] = None) -> None:
        detail = f": {cause}" if cause else ""
        super().__init__(f"Cannot access {path}{detail}")
        self.path = path
        self.cause = cause


class PlanStepError(SafeChangeError):
    """A step handler could not complete its work."""

    def __init__(self, step: str, message: str) -> None:
        super().__init__(f"{step} step failed: {message}")
        self.step = step
