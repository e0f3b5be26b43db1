"""Exception taxonomy for specguard."""

from __future__ import annotations

from typing import Any, Dict, Optional


class SpecGuardError(Exception):
    """Base exception for specguard errors."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}


class ParseError(SpecGuardError):
    """Raised when a document is not well-formed JSON or YAML."""

    def __init__(self, message: str, line: Optional[int] = None, column: Optional[int] = None):
        location = f" at line {line}, column {column}" if line is not None else ""
        super().__init__(f"{message}{location}", context={"line": line, "column": column})
        self.line = line
        self.column = column


class SchemaShapeError(SpecGuardError):
    """Raised when a parsed document cannot be mapped onto the object model."""

    def __init__(self, message: str, path: str = ""):
        super().__init__(f"{path}: {message}" if path else message, context={"path": path})
        self.path = path


class UnresolvedReferenceError(SpecGuardError):
    """Raised when a ``$ref`` does not name an owned component."""

    def __init__(self, pointer: str, reason: str = "target not found"):
        super().__init__(f"Unresolved reference '{pointer}': {reason}", context={"pointer": pointer})
        self.pointer = pointer
        self.reason = reason


class RevisionUnavailableError(SpecGuardError):
    """Raised by fetchers when a file cannot be read at a revision."""

    def __init__(self, revision: str, file_path: str, reason: str = "not found"):
        super().__init__(
            f"Unable to load {file_path} from revision '{revision}': {reason}",
            context={"revision": revision, "file_path": file_path},
        )
        self.revision = revision
        self.file_path = file_path
        self.reason = reason


class OperationCancelled(SpecGuardError):
    """Raised when a cancellation token is observed during traversal."""

    def __init__(self, operation: str = "operation"):
        super().__init__(f"{operation} cancelled")
        self.operation = operation


__all__ = [
    "SpecGuardError",
    "ParseError",
    "SchemaShapeError",
    "UnresolvedReferenceError",
    "RevisionUnavailableError",
    "OperationCancelled",
]
