"""OpenAPI specification governance: structural validation, circular
reference detection, breaking change detection and payload validation."""
from .checks import compare_against_revision, detect_cycles, diff_documents, validate_document
from .core import (
    BreakingChange,
    CancellationToken,
    ChangeKind,
    CheckResult,
    CircularReference,
    Impact,
    Severity,
    SpecGuardSettings,
    SuiteResult,
    ValidationIssue,
    get_settings,
)
from .exceptions import (
    OperationCancelled,
    ParseError,
    RevisionUnavailableError,
    SchemaShapeError,
    SpecGuardError,
    UnresolvedReferenceError,
)
from .revisions import GitRevisionFetcher, InMemoryFetcher
from .spec import SpecDocument, load, load_path
from .suite import BreakingChangeCheck, CircularReferenceCheck, Suite, SuiteBuilder, ValidationCheck
from .validation import DataValidationEngine, FormatRegistry, validate_value_against_schema

__version__ = "0.4.0"

__all__ = [
    "BreakingChange",
    "BreakingChangeCheck",
    "CancellationToken",
    "ChangeKind",
    "CheckResult",
    "CircularReference",
    "CircularReferenceCheck",
    "DataValidationEngine",
    "FormatRegistry",
    "GitRevisionFetcher",
    "Impact",
    "InMemoryFetcher",
    "OperationCancelled",
    "ParseError",
    "RevisionUnavailableError",
    "SchemaShapeError",
    "Severity",
    "SpecDocument",
    "SpecGuardError",
    "SpecGuardSettings",
    "Suite",
    "SuiteBuilder",
    "SuiteResult",
    "UnresolvedReferenceError",
    "ValidationCheck",
    "ValidationIssue",
    "compare_against_revision",
    "detect_cycles",
    "diff_documents",
    "get_settings",
    "load",
    "load_path",
    "validate_document",
    "validate_value_against_schema",
]
