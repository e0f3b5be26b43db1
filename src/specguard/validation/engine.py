"""Validate concrete payloads and parameters against resolved schemas.

Values are checked with ``openapi_schema_validator.OAS30Validator``. Types are
strict: a numeric string is not a number, ``True`` is not an integer, ``1.0``
is not an integer and nothing is coerced. Every error the validator finds is
reported, ordered by instance path.
"""
from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Mapping, Optional, Set, Tuple, Union

from jsonschema import validators
from jsonschema.exceptions import ValidationError
from openapi_schema_validator import OAS30Validator

from ..core.enums import Severity
from ..core.models import ValidationIssue
from ..exceptions import SchemaShapeError, UnresolvedReferenceError
from ..spec.loader import build_schema
from ..spec.model import ComponentRegistry, Operation, Parameter, Response, SchemaNode, SpecDocument
from ..spec.refs import CycleDetected, resolve_deep
from .formats import FormatRegistry

logger = logging.getLogger(__name__)

ValidationOutcome = Tuple[bool, List[ValidationIssue]]

SchemaLike = Union[SchemaNode, Mapping[str, Any]]


def json_type(value: Any) -> str:
    """Name of the JSON type ``value`` would serialise as."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, float):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, Mapping):
        return "object"
    return type(value).__name__


def _is_integer(checker, instance: Any) -> bool:
    return isinstance(instance, int) and not isinstance(instance, bool)


StrictOAS30Validator = validators.extend(
    OAS30Validator,
    type_checker=OAS30Validator.TYPE_CHECKER.redefine("integer", _is_integer),
)


def format_error_path(parts) -> str:
    """Render an instance path as ``$``, ``$.field`` or ``$.field[0]``."""
    rendered = "$"
    for part in parts:
        rendered += f"[{part}]" if isinstance(part, int) else f".{part}"
    return rendered


def _sort_key(parts: Tuple[Any, ...]) -> Tuple[Tuple[int, Any], ...]:
    return tuple((0, part) if isinstance(part, int) else (1, str(part)) for part in parts)


def _issues_for(error: ValidationError) -> List[Tuple[Tuple[Any, ...], str]]:
    """Map one validator error onto (instance path, message) pairs.

    ``required`` and ``additionalProperties: false`` errors are raised on the
    parent object; they are moved onto the property they name.
    """
    parts = tuple(error.absolute_path)
    if error.validator == "required" and isinstance(error.instance, Mapping):
        for name in error.validator_value:
            if error.message == f"{name!r} is a required property":
                return [(parts + (name,), f"missing required property '{name}'")]
    closed = error.validator == "additionalProperties" and error.validator_value is False
    if closed and isinstance(error.instance, Mapping):
        declared = error.schema.get("properties") or {}
        extras = [name for name in error.instance if name not in declared]
        if extras:
            return [(parts + (name,), f"additional property '{name}' is not allowed") for name in extras]
    return [(parts, error.message)]


def _reference_problems(node: SchemaNode, registry: Optional[ComponentRegistry]) -> List[str]:
    """Every ``$ref`` reachable from ``node`` that cannot be followed to a schema."""
    problems: List[str] = []
    seen: Set[str] = set()
    stack = [node]
    while stack:
        current = stack.pop()
        if current.ref is not None:
            pointer = current.ref.pointer
            if pointer in seen:
                continue
            seen.add(pointer)
            if registry is None:
                problems.append(f"cannot resolve '{pointer}' without a component registry")
                continue
            try:
                resolved = resolve_deep(current, registry, set())
            except UnresolvedReferenceError as exc:
                problems.append(exc.message)
                continue
            if isinstance(resolved, CycleDetected):
                problems.append(f"reference '{pointer}' is circular and never reaches a schema")
                continue
            current = resolved
        stack.extend(child for _, child in reversed(list(current.children())))
    return problems


def _root_schema(node: SchemaNode, registry: Optional[ComponentRegistry]) -> Dict[str, Any]:
    """``node`` with the registry's schemas embedded so local refs resolve."""
    root = dict(node.raw)
    if registry is not None and registry.schemas:
        root["components"] = {"schemas": {name: schema.raw for name, schema in registry.schemas.items()}}
    return root


def _as_schema(schema: SchemaLike) -> SchemaNode:
    if isinstance(schema, SchemaNode):
        return schema
    return build_schema(schema)


def validate_value_against_schema(
    value: Any,
    schema: SchemaLike,
    registry: Optional[ComponentRegistry] = None,
    formats: Optional[FormatRegistry] = None,
) -> ValidationOutcome:
    """Validate ``value`` against ``schema`` (a ``SchemaNode`` or a raw mapping).

    Returns ``(ok, errors)``; ``ok`` is true iff ``errors`` is empty. A raw
    mapping that is not a well-formed schema, and a ``$ref`` that cannot be
    followed, are reported rather than raised.
    """
    try:
        node = _as_schema(schema)
    except SchemaShapeError as exc:
        return False, [ValidationIssue(path="$", message=f"invalid schema: {exc.message}")]

    problems = _reference_problems(node, registry)
    if problems:
        return False, [ValidationIssue(path="$", message=message) for message in problems]

    formats = formats or FormatRegistry.default()
    validator = StrictOAS30Validator(_root_schema(node, registry), format_checker=formats.checker)
    try:
        errors = list(validator.iter_errors(value))
    except re.error as exc:
        message = f"invalid schema: pattern is not a valid regular expression: {exc}"
        return False, [ValidationIssue(path="$", message=message)]

    located: List[Tuple[Tuple[Any, ...], str]] = []
    for error in errors:
        located.extend(_issues_for(error))
    located.sort(key=lambda item: _sort_key(item[0]))
    issues = [
        ValidationIssue(path=format_error_path(parts), message=message, severity=Severity.ERROR)
        for parts, message in located
    ]
    return not issues, issues


class DataValidationEngine:
    """Validates runtime values against the operations of one ``SpecDocument``.

    The document is only read; one engine may be shared between threads.
    """

    def __init__(self, document: SpecDocument, formats: Optional[FormatRegistry] = None):
        self.document = document
        self.formats = formats or FormatRegistry.default()

    def validate_value(self, value: Any, schema: SchemaLike) -> ValidationOutcome:
        return validate_value_against_schema(value, schema, self.document.components, self.formats)

    def _operation(self, method: str, path: str) -> Tuple[Optional[Operation], List[ValidationIssue]]:
        operation = self.document.find_operation(method, path)
        if operation is None:
            message = f"no operation {method.upper()} {path} in {self.document.info.title!r}"
            return None, [ValidationIssue(path="$", message=message)]
        return operation, []

    def _parameter(self, operation: Operation, name: str) -> Tuple[Optional[Parameter], List[ValidationIssue]]:
        for parameter in operation.parameters:
            try:
                resolved = resolve_deep(parameter, self.document.components, set())
            except UnresolvedReferenceError as exc:
                if parameter.name == name:
                    return None, [ValidationIssue(path="$", message=exc.message)]
                continue
            if isinstance(resolved, Parameter) and resolved.name == name:
                return resolved, []
        message = f"{operation.method.upper()} {operation.path} declares no parameter '{name}'"
        return None, [ValidationIssue(path="$", message=message)]

    def validate_parameter(self, method: str, path: str, name: str, raw_value: Any) -> ValidationOutcome:
        """Check one parameter value; ``None`` means the parameter was not sent."""
        operation, issues = self._operation(method, path)
        if operation is None:
            return False, issues
        parameter, issues = self._parameter(operation, name)
        if parameter is None:
            return False, issues

        if raw_value is None:
            if parameter.required:
                return False, [ValidationIssue(path="$", message=f"missing required {parameter.location} parameter '{name}'")]
            return True, []
        if parameter.schema is None:
            return True, []
        ok, issues = self.validate_value(raw_value, parameter.schema)
        if not ok:
            logger.debug(
                "Parameter %s of %s %s rejected a %s value: %d issue(s)",
                name, method.upper(), path, json_type(raw_value), len(issues),
            )
        return ok, issues

    def _response(self, operation: Operation, status_code: Union[int, str]) -> Optional[Response]:
        status = str(status_code)
        responses = {key.upper(): response for key, response in operation.responses.items()}
        for candidate in (status, f"{status[:1]}XX", "DEFAULT"):
            if candidate.upper() in responses:
                return responses[candidate.upper()]
        return None

    def validate_response_shape(self, method: str, path: str, status_code: Union[int, str], body: Any) -> ValidationOutcome:
        """Check a response body against the schema documented for its status.

        Lookup order is the exact status, then its ``NXX`` range, then
        ``default``. A documented response without a schema accepts any body.
        """
        operation, issues = self._operation(method, path)
        if operation is None:
            return False, issues
        response = self._response(operation, status_code)
        if response is None:
            message = f"{operation.method.upper()} {operation.path} documents no response for status {status_code}"
            return False, [ValidationIssue(path="$", message=message)]
        try:
            resolved = resolve_deep(response, self.document.components, set())
        except UnresolvedReferenceError as exc:
            return False, [ValidationIssue(path="$", message=exc.message)]
        if isinstance(resolved, CycleDetected):
            return False, [ValidationIssue(path="$", message=f"response {status_code} reference is circular")]
        if resolved.schema is None:
            return True, []
        return self.validate_value(body, resolved.schema)


__all__ = [
    "DataValidationEngine",
    "ValidationOutcome",
    "StrictOAS30Validator",
    "format_error_path",
    "json_type",
    "validate_value_against_schema",
]
