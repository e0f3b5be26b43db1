"""Named checks composed into immutable, ordered suites."""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Optional, Tuple, Union

from .checks import breaking, cycles, structural
from .checks.breaking import Fetcher
from .core.cancellation import CancellationToken
from .core.models import CheckResult, SuiteResult, ValidationIssue
from .exceptions import OperationCancelled, ParseError, SchemaShapeError
from .spec.loader import load
from .spec.model import SpecDocument

logger = logging.getLogger(__name__)


class Check(ABC):
    """One named, self-contained check over a loaded document."""

    name: str = "check"

    @abstractmethod
    def run(self, document: SpecDocument, cancel: Optional[CancellationToken] = None) -> CheckResult:
        """Run the check and return a fresh result."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


class ValidationCheck(Check):
    name = structural.CHECK_NAME

    def __init__(self, warn_missing_examples: bool = True):
        self.warn_missing_examples = warn_missing_examples

    def run(self, document: SpecDocument, cancel: Optional[CancellationToken] = None) -> CheckResult:
        return structural.validate_document(
            document, warn_missing_examples=self.warn_missing_examples, cancel=cancel
        )


class CircularReferenceCheck(Check):
    name = cycles.CHECK_NAME

    def run(self, document: SpecDocument, cancel: Optional[CancellationToken] = None) -> CheckResult:
        result, _ = cycles.detect_cycles(document, cancel)
        return result


class BreakingChangeCheck(Check):
    """Compares the document with its content at ``revision_ref``."""

    name = breaking.CHECK_NAME

    def __init__(
        self,
        revision_ref: str,
        fetch: Fetcher,
        file_path: Optional[str] = None,
        enforce_semver: bool = False,
    ):
        self.revision_ref = revision_ref
        self.fetch = fetch
        self.file_path = file_path
        self.enforce_semver = enforce_semver

    def run(self, document: SpecDocument, cancel: Optional[CancellationToken] = None) -> CheckResult:
        return breaking.compare_against_revision(
            document,
            self.revision_ref,
            self.fetch,
            self.file_path,
            enforce_semver=self.enforce_semver,
            cancel=cancel,
        )


# validation -> circular-reference -> breaking-change
_ORDER = (ValidationCheck, CircularReferenceCheck, BreakingChangeCheck)


def _rank(check: Check) -> int:
    for index, kind in enumerate(_ORDER):
        if isinstance(check, kind):
            return index
    return len(_ORDER)


class Suite:
    """Immutable, deterministically ordered set of checks."""

    __slots__ = ("_checks",)

    def __init__(self, checks: Tuple[Check, ...] = ()):
        ordered = tuple(sorted(checks, key=_rank))
        object.__setattr__(self, "_checks", ordered)

    def __setattr__(self, name, value):
        raise AttributeError("Suite is immutable; use SuiteBuilder to configure a new one")

    @property
    def checks(self) -> Tuple[Check, ...]:
        return self._checks

    @property
    def check_names(self) -> Tuple[str, ...]:
        return tuple(check.name for check in self._checks)

    def run(self, document: SpecDocument, cancel: Optional[CancellationToken] = None) -> SuiteResult:
        """Run every check in order; one check failing never stops the next."""
        results = []
        for check in self._checks:
            logger.debug("Running check %s", check.name)
            try:
                results.append(check.run(document, cancel))
            except OperationCancelled:
                logger.info("Suite cancelled during %s; discarding %d completed result(s)", check.name, len(results))
                raise
        suite_result = SuiteResult(results=tuple(results))
        logger.info(
            "Suite %s: %s",
            "passed" if suite_result.passed else "failed",
            ", ".join(f"{r.name}={'ok' if r.passed else 'fail'}" for r in results) or "no checks",
        )
        return suite_result

    def run_source(
        self,
        content: Union[bytes, str],
        format_hint: Optional[str] = None,
        source_path: Optional[str] = None,
        cancel: Optional[CancellationToken] = None,
    ) -> SuiteResult:
        """Load ``content`` and run the suite over it.

        A document that cannot be loaded yields one error finding per selected
        check instead of an exception.
        """
        try:
            document = load(content, format_hint=format_hint, source_path=source_path)
        except (ParseError, SchemaShapeError) as exc:
            logger.warning("Document could not be loaded: %s", exc)
            line = getattr(exc, "line", None)
            column = getattr(exc, "column", None)
            issue = ValidationIssue(path="$", message=exc.message, line=line, column=column)
            return SuiteResult(
                results=tuple(
                    CheckResult.from_issues(check.name, [issue], summary="document could not be loaded")
                    for check in self._checks
                )
            )
        return self.run(document, cancel)

    def __len__(self) -> int:
        return len(self._checks)

    def __repr__(self) -> str:
        return f"Suite(checks={list(self.check_names)!r})"


class SuiteBuilder:
    """Toggles checks on and off before building an immutable ``Suite``."""

    def __init__(self) -> None:
        self._validation: Optional[ValidationCheck] = None
        self._circular: Optional[CircularReferenceCheck] = None
        self._breaking: Optional[BreakingChangeCheck] = None

    def with_validation(self, warn_missing_examples: bool = True) -> "SuiteBuilder":
        self._validation = ValidationCheck(warn_missing_examples=warn_missing_examples)
        return self

    def without_validation(self) -> "SuiteBuilder":
        self._validation = None
        return self

    def with_circular_references(self) -> "SuiteBuilder":
        self._circular = CircularReferenceCheck()
        return self

    def without_circular_references(self) -> "SuiteBuilder":
        self._circular = None
        return self

    def with_breaking_changes(
        self,
        revision_ref: str,
        fetch: Fetcher,
        file_path: Optional[str] = None,
        enforce_semver: bool = False,
    ) -> "SuiteBuilder":
        self._breaking = BreakingChangeCheck(revision_ref, fetch, file_path, enforce_semver)
        return self

    def without_breaking_changes(self) -> "SuiteBuilder":
        self._breaking = None
        return self

    def build(self) -> Suite:
        checks = tuple(check for check in (self._validation, self._circular, self._breaking) if check is not None)
        return Suite(checks)


__all__ = [
    "Check",
    "ValidationCheck",
    "CircularReferenceCheck",
    "BreakingChangeCheck",
    "Suite",
    "SuiteBuilder",
]
