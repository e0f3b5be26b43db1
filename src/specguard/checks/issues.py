"""Accumulates findings for a check, attaching source positions."""
from __future__ import annotations

from typing import List, Optional

from ..core.enums import Severity
from ..core.models import ValidationIssue
from ..exceptions import UnresolvedReferenceError
from ..spec.model import PathParts, SpecDocument, format_path


class IssueCollector:
    """Never short-circuits: every finding is kept in traversal order."""

    def __init__(self, document: Optional[SpecDocument] = None):
        self.document = document
        self.issues: List[ValidationIssue] = []
        self.unresolved_count = 0

    def add(self, parts: PathParts, message: str, severity: Severity = Severity.ERROR) -> None:
        position = self.document.position_of(parts) if self.document is not None else None
        self.issues.append(
            ValidationIssue(
                path=format_path(parts) or "$",
                message=message,
                severity=severity,
                line=position[0] if position else None,
                column=position[1] if position else None,
            )
        )

    def error(self, parts: PathParts, message: str) -> None:
        self.add(parts, message, Severity.ERROR)

    def warning(self, parts: PathParts, message: str) -> None:
        self.add(parts, message, Severity.WARNING)

    def unresolved_reference(self, parts: PathParts, exc: UnresolvedReferenceError) -> None:
        self.unresolved_count += 1
        self.error(parts, exc.message)

    @property
    def error_count(self) -> int:
        return sum(1 for issue in self.issues if issue.severity is Severity.ERROR)

    @property
    def warning_count(self) -> int:
        return sum(1 for issue in self.issues if issue.severity is Severity.WARNING)

    def summary(self, subject: str) -> str:
        return f"{subject}: {self.error_count} error(s), {self.warning_count} warning(s)"


__all__ = ["IssueCollector"]
