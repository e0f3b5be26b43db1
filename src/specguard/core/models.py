"""Result value objects implemented with Pydantic v2."""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .enums import ChangeKind, Impact, Severity


class SpecGuardBaseModel(BaseModel):
    """Base model enforcing strict, immutable value objects across the codebase."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True, frozen=True)


class ValidationIssue(SpecGuardBaseModel):
    """Single finding produced by a check."""

    path: str
    message: str
    severity: Severity = Severity.ERROR
    line: Optional[int] = Field(default=None, ge=1)
    column: Optional[int] = Field(default=None, ge=1)

    @property
    def is_error(self) -> bool:
        return self.severity is Severity.ERROR

    def __str__(self) -> str:
        position = f" (line {self.line}, column {self.column})" if self.line else ""
        return f"{self.severity.value}: {self.path}: {self.message}{position}"


class BreakingChange(SpecGuardBaseModel):
    """Classified structural difference between two revisions of a document."""

    kind: ChangeKind
    path: str
    description: str
    old: Any = None
    new: Any = None
    impact: Impact = Impact.INFORMATIONAL

    @model_validator(mode="before")
    @classmethod
    def _derive_impact(cls, data: Any) -> Any:
        # impact is a function of kind; callers never choose it
        if isinstance(data, dict) and "kind" in data:
            data = dict(data)
            data["impact"] = ChangeKind(data["kind"]).impact
        return data

    @property
    def is_breaking(self) -> bool:
        return self.impact is Impact.BREAKING


class CircularReference(SpecGuardBaseModel):
    """Cycle in the schema reference graph."""

    root_path: str
    chain: Tuple[str, ...] = Field(min_length=1)
    description: str


class CheckResult(SpecGuardBaseModel):
    """Outcome of one named check; ``passed`` is derived from the error list."""

    name: str
    passed: bool = True
    summary: str = ""
    errors: Tuple[ValidationIssue, ...] = ()
    warnings: Tuple[ValidationIssue, ...] = ()
    diagnostics: Dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _derive_passed(cls, data: Any) -> Any:
        if isinstance(data, dict):
            data = dict(data)
            data["passed"] = not data.get("errors")
        return data

    @classmethod
    def from_issues(
        cls,
        name: str,
        issues: List[ValidationIssue],
        summary: str = "",
        diagnostics: Optional[Dict[str, Any]] = None,
    ) -> "CheckResult":
        """Split accumulated issues by severity into a result."""
        return cls(
            name=name,
            summary=summary,
            errors=tuple(issue for issue in issues if issue.severity is Severity.ERROR),
            warnings=tuple(issue for issue in issues if issue.severity is Severity.WARNING),
            diagnostics=diagnostics or {},
        )

    @property
    def issues(self) -> Tuple[ValidationIssue, ...]:
        return self.errors + self.warnings


class SuiteResult(SpecGuardBaseModel):
    """Ordered check results of one suite run."""

    results: Tuple[CheckResult, ...] = ()
    passed: bool = True

    @model_validator(mode="before")
    @classmethod
    def _derive_passed(cls, data: Any) -> Any:
        if isinstance(data, dict):
            data = dict(data)
            data["passed"] = all(
                (r.passed if isinstance(r, CheckResult) else not r.get("errors"))
                for r in data.get("results", ())
            )
        return data

    def result_for(self, name: str) -> Optional[CheckResult]:
        for result in self.results:
            if result.name == name:
                return result
        return None


__all__ = [
    "SpecGuardBaseModel",
    "ValidationIssue",
    "BreakingChange",
    "CircularReference",
    "CheckResult",
    "SuiteResult",
]
