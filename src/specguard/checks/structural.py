"""Structural conformance of a document to the OpenAPI 3.0 object model.

The hand-written rules below give precise, positioned findings. A final pass
runs ``openapi_spec_validator`` against the raw tree and adds whatever it
finds that those rules have not already reported at or below the same path.
"""

from __future__ import annotations

import logging
from typing import Optional, Set

from openapi_spec_validator import OpenAPIV30SpecValidator

from ..core.cancellation import CancellationToken, checkpoint
from ..core.enums import ParameterLocation, SchemaKind
from ..core.models import CheckResult
from ..exceptions import UnresolvedReferenceError
from ..spec.model import (
    Operation,
    Parameter,
    PathParts,
    SecurityRequirement,
    SpecDocument,
    format_path,
    template_variables,
)
from ..spec.refs import CycleDetected, iter_schema_sites, resolve_deep, resolve_shallow, walk_schema
from .issues import IssueCollector

logger = logging.getLogger(__name__)

CHECK_NAME = "validation"

_LOCATIONS = frozenset(location.value for location in ParameterLocation)


def validate_document(
    document: SpecDocument,
    *,
    warn_missing_examples: bool = True,
    cancel: Optional[CancellationToken] = None,
) -> CheckResult:
    """Run every structural rule over ``document`` and accumulate the findings.

    ``passed`` is true iff no error-severity issue was recorded.
    """
    collector = IssueCollector(document)

    _check_header(document, collector)
    _check_paths(document, collector, cancel)
    _check_references(document, collector, cancel)
    _check_security(document.security, ("security",), document, collector)

    if warn_missing_examples:
        for name, schema in document.components.schemas.items():
            if schema.ref is None and not schema.has_example:
                collector.warning(("components", "schemas", name), "schema has no example")

    for notice in document.notices:
        collector.warning(notice.path, notice.message)

    _check_against_schema(document, collector, cancel)

    summary = collector.summary("Structural validation")
    logger.info("%s (%s)", summary, document.info.title)
    return CheckResult.from_issues(CHECK_NAME, collector.issues, summary=summary)


def _check_header(document: SpecDocument, collector: IssueCollector) -> None:
    version = document.openapi
    if not version:
        collector.error(("openapi",), "missing required field 'openapi'")
    elif not version.startswith("3."):
        collector.error(("openapi",), f"unsupported OpenAPI version '{version}'")
    elif not version.startswith("3.0"):
        collector.warning(("openapi",), f"OpenAPI {version} is checked against the 3.0 object model")

    if not document.info.title:
        collector.error(("info", "title"), "missing required field 'info.title'")
    if not document.info.version:
        collector.error(("info", "version"), "missing required field 'info.version'")
    if not document.paths:
        collector.error(("paths",), "document defines no paths")


def _check_paths(document: SpecDocument, collector: IssueCollector, cancel: Optional[CancellationToken]) -> None:
    for path, path_item in document.paths.items():
        checkpoint(cancel, "structural validation")
        base: PathParts = ("paths", path)
        if not path.startswith("/"):
            collector.error(base, "path must begin with '/'")
        if not path_item.operations:
            collector.error(base, "path item defines no operations")
        for method, operation in path_item.operations.items():
            _check_operation(operation, base + (method,), document, collector)


def _check_operation(
    operation: Operation,
    base: PathParts,
    document: SpecDocument,
    collector: IssueCollector,
) -> None:
    registry = document.components

    if not operation.summary:
        collector.warning(base + ("summary",), "operation has no summary")
    if not operation.description:
        collector.warning(base + ("description",), "operation has no description")

    declared_path_params: Set[str] = set()
    for index, parameter in enumerate(operation.parameters):
        parts = base + ("parameters", str(index))
        try:
            resolved = resolve_shallow(parameter, registry)
        except UnresolvedReferenceError as exc:
            collector.unresolved_reference(parts, exc)
            continue
        if parameter.ref is None:
            _check_parameter(resolved, parts, collector)
        if resolved.location == ParameterLocation.PATH.value and resolved.name:
            declared_path_params.add(resolved.name)

    template = template_variables(operation.path)
    for variable in template:
        if variable not in declared_path_params:
            collector.error(base + ("parameters",), f"path parameter '{variable}' is not declared")
    for name in sorted(declared_path_params - set(template)):
        collector.warning(base + ("parameters",), f"path parameter '{name}' does not appear in the path template")

    if operation.request_body is not None:
        parts = base + ("requestBody",)
        try:
            body = resolve_shallow(operation.request_body, registry)
        except UnresolvedReferenceError as exc:
            collector.unresolved_reference(parts, exc)
        else:
            if body.ref is None and not body.content:
                collector.error(parts + ("content",), "request body declares no content")

    if not operation.responses:
        collector.error(base + ("responses",), "operation must declare at least one response")
    for status, response in operation.responses.items():
        parts = base + ("responses", status)
        if not _valid_status(status):
            collector.error(parts, f"invalid response status code '{status}'")
        try:
            resolved = resolve_shallow(response, registry)
        except UnresolvedReferenceError as exc:
            collector.unresolved_reference(parts, exc)
            continue
        if resolved.ref is None and not resolved.description:
            collector.warning(parts + ("description",), "response has no description")

    if operation.security is not None:
        _check_security(operation.security, base + ("security",), document, collector)


def _valid_status(status: str) -> bool:
    if status == "default":
        return True
    if len(status) != 3 or status[0] not in "12345":
        return False
    return status[1:].isdigit() or status[1:].upper() == "XX"


def _check_parameter(parameter: Parameter, parts: PathParts, collector: IssueCollector) -> None:
    if not parameter.name:
        collector.error(parts + ("name",), "parameter is missing 'name'")
    if parameter.location is None:
        collector.error(parts + ("in",), "parameter is missing 'in'")
    elif parameter.location not in _LOCATIONS:
        collector.error(parts + ("in",), f"invalid parameter location '{parameter.location}'")
    elif parameter.location == ParameterLocation.PATH.value and not parameter.required:
        collector.error(parts + ("required",), f"path parameter '{parameter.name}' must be required")


def _check_security(
    requirements: Optional[tuple[SecurityRequirement, ...]],
    base: PathParts,
    document: SpecDocument,
    collector: IssueCollector,
) -> None:
    if not requirements:
        return
    schemes = document.components.security_schemes
    for index, requirement in enumerate(requirements):
        for name in requirement:
            if name not in schemes:
                collector.error(base + (str(index), name), f"security scheme '{name}' is not declared")


def _check_references(document: SpecDocument, collector: IssueCollector, cancel: Optional[CancellationToken]) -> None:
    registry = document.components

    for section, entries in (
        ("parameters", registry.parameters),
        ("responses", registry.responses),
        ("requestBodies", registry.request_bodies),
    ):
        for name, entry in entries.items():
            if entry.ref is None:
                if section == "parameters":
                    _check_parameter(entry, ("components", section, name), collector)
                continue
            try:
                resolve_shallow(entry, registry)
            except UnresolvedReferenceError as exc:
                collector.unresolved_reference(("components", section, name), exc)

    for site, root in iter_schema_sites(document):
        for parts, node in walk_schema(root, site):
            checkpoint(cancel, "structural validation")
            if node.ref is None:
                if node.type is not None and node.kind is SchemaKind.ANY:
                    collector.error(parts + ("type",), f"unknown schema type '{node.type}'")
                if node.properties:
                    for name in sorted(node.required - set(node.properties)):
                        collector.warning(parts + ("required",), f"required property '{name}' is not defined")
                continue
            try:
                resolve_shallow(node, registry)
            except UnresolvedReferenceError as exc:
                collector.unresolved_reference(parts, exc)


def _already_reported(path: str, reported: Set[str]) -> bool:
    if path == "$":
        return False
    return any(other == path or other.startswith(path + ".") for other in reported)


def _has_reference_loop(document: SpecDocument) -> bool:
    registry = document.components
    sections = (registry.schemas, registry.parameters, registry.responses, registry.request_bodies)
    return any(
        isinstance(resolve_deep(entry, registry, set()), CycleDetected)
        for entries in sections
        for entry in entries.values()
        if entry.ref is not None
    )


def _check_against_schema(document: SpecDocument, collector: IssueCollector, cancel: Optional[CancellationToken]) -> None:
    if not (document.openapi or "").startswith("3.0"):
        return
    reported = {issue.path for issue in collector.issues}
    if collector.unresolved_count or _has_reference_loop(document):
        # the library follows every $ref and cannot get past a missing target or a pure $ref loop
        logger.debug("Skipping OpenAPI schema pass for %s: unresolvable references", document.info.title)
        return
    for error in OpenAPIV30SpecValidator(document.raw).iter_errors():
        checkpoint(cancel, "structural validation")
        parts: PathParts = tuple(str(part) for part in error.absolute_path)
        path = format_path(parts) or "$"
        if _already_reported(path, reported):
            continue
        logger.debug("OpenAPI schema finding at %s: %s", path, error.message)
        collector.error(parts, f"OpenAPI 3.0 schema: {error.message}")
        reported.add(path)


__all__ = ["validate_document", "CHECK_NAME"]
