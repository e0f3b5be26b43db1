"""Breaking change detection against a prior revision of the same document.

The comparison is strictly pairwise: the current ``SpecDocument`` against one
transient document built from the bytes the injected fetcher returns for a
revision. Operations are keyed by (normalised path template, method),
parameters by (name, location) with path parameters matched by their position
in the template, and schema properties by name. Every difference is
classified into the closed ``ChangeKind`` taxonomy. A ``$ref`` either side
cannot resolve is reported as an error issue rather than compared.

Narrowing rules for schemas (both request and response side):

* type changed, except ``integer -> number`` which widens
* ``nullable`` true -> false
* enum introduced, or enum values removed
* format introduced or changed; pattern introduced or changed
* tighter ``minimum``/``maximum``/``minLength``/``maxLength``/``minItems``/``maxItems``
* composition keyword set changed
* ``oneOf``/``anyOf`` branch removed, ``allOf`` branch added

Widening is the mirror image. Branches are matched by the schema name they
reference, or by position among the inline branches.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

from ..core.cancellation import CancellationToken, checkpoint
from ..core.enums import ChangeKind, Impact, SchemaKind
from ..core.models import BreakingChange, CheckResult
from ..exceptions import ParseError, RevisionUnavailableError, SchemaShapeError, UnresolvedReferenceError
from ..spec.loader import load
from ..spec.model import (
    Operation,
    Parameter,
    PathParts,
    SchemaNode,
    SpecDocument,
    format_path,
    normalise_template,
    template_variables,
)
from ..spec.refs import CycleDetected, resolve_deep
from .issues import IssueCollector
from .versioning import check_version_bump, required_bump

logger = logging.getLogger(__name__)

CHECK_NAME = "breaking-changes"

Fetcher = Callable[[str, str], bytes]

REQUEST = "request"
RESPONSE = "response"

_NARROWED = {REQUEST: ChangeKind.REQUEST_SCHEMA_NARROWED, RESPONSE: ChangeKind.RESPONSE_SCHEMA_NARROWED}
_WIDENED = {REQUEST: ChangeKind.REQUEST_SCHEMA_WIDENED, RESPONSE: ChangeKind.RESPONSE_SCHEMA_WIDENED}

# (attribute, keyword, True when a larger value is tighter)
_BOUNDS = (
    ("minimum", "minimum", True),
    ("maximum", "maximum", False),
    ("min_length", "minLength", True),
    ("max_length", "maxLength", False),
    ("min_items", "minItems", True),
    ("max_items", "maxItems", False),
)


def compare_against_revision(
    document: SpecDocument,
    revision_ref: str,
    fetch: Fetcher,
    file_path: Optional[str] = None,
    *,
    enforce_semver: bool = False,
    cancel: Optional[CancellationToken] = None,
) -> CheckResult:
    """Diff ``document`` against its content at ``revision_ref``.

    A fetch failure of any kind, or a prior revision that cannot be parsed, is
    reported as a single error issue; it never raises.
    """
    file_path = file_path or document.source_path
    collector = IssueCollector(document)
    diagnostics: Dict[str, Any] = {"revision": revision_ref, "file_path": file_path}

    if not file_path:
        collector.error((), "prior revision unavailable: no file path to fetch")
        return CheckResult.from_issues(CHECK_NAME, collector.issues, "Prior revision unavailable", diagnostics)

    try:
        content = fetch(revision_ref, file_path)
    except RevisionUnavailableError as exc:
        logger.warning("Prior revision unavailable: %s", exc)
        collector.error((), f"prior revision unavailable: {exc.message}")
        return CheckResult.from_issues(CHECK_NAME, collector.issues, "Prior revision unavailable", diagnostics)
    except Exception as exc:
        # timeouts and transport errors are reported exactly like NotFound
        logger.warning("Fetching %s at %s failed: %s", file_path, revision_ref, exc, exc_info=True)
        collector.error((), f"prior revision unavailable: {type(exc).__name__}: {exc}")
        return CheckResult.from_issues(CHECK_NAME, collector.issues, "Prior revision unavailable", diagnostics)

    try:
        previous = load(content, source_path=file_path)
    except (ParseError, SchemaShapeError) as exc:
        logger.warning("Prior revision %s of %s could not be loaded: %s", revision_ref, file_path, exc)
        collector.error((), f"prior revision could not be loaded: {exc.message}")
        return CheckResult.from_issues(CHECK_NAME, collector.issues, "Prior revision unreadable", diagnostics)

    differ = _Differ(previous, document, cancel, old_label=f"prior revision {revision_ref}")
    changes = differ.run()
    for parts, message in differ.unresolved:
        collector.error(parts, message)
    for change, parts in differ.recorded:
        if change.is_breaking:
            collector.error(parts, f"{change.kind.value}: {change.description}")

    bump = required_bump(changes, previous.raw, document.raw)
    diagnostics.update(
        changes=changes,
        required_bump=bump,
        base_version=previous.info.version,
        new_version=document.info.version,
    )
    if enforce_semver:
        collector.issues.extend(check_version_bump(previous.info.version, document.info.version, bump))

    counts = {impact: sum(1 for change in changes if change.impact is impact) for impact in Impact}
    summary = (
        f"{counts[Impact.BREAKING]} breaking, {counts[Impact.NON_BREAKING]} non-breaking, "
        f"{counts[Impact.INFORMATIONAL]} informational change(s) since {revision_ref}"
    )
    logger.info("Breaking change check: %s", summary)
    return CheckResult.from_issues(CHECK_NAME, collector.issues, summary, diagnostics)


def diff_documents(
    old: SpecDocument,
    new: SpecDocument,
    cancel: Optional[CancellationToken] = None,
) -> List[BreakingChange]:
    """Classified, order-stable structural diff from ``old`` to ``new``."""
    return _Differ(old, new, cancel).run()


def _effective_type(node: SchemaNode) -> Optional[str]:
    if node.type is not None:
        return node.type
    if node.kind is SchemaKind.OBJECT:
        return "object"
    if node.kind is SchemaKind.ARRAY:
        return "array"
    return None


def _branch_keys(branches: Tuple[SchemaNode, ...]) -> Dict[str, SchemaNode]:
    keys: Dict[str, SchemaNode] = {}
    inline = 0
    for branch in branches:
        if branch.ref is not None:
            keys[branch.ref.name or branch.ref.pointer] = branch
        else:
            keys[f"#{inline}"] = branch
            inline += 1
    return keys


def _templates(paths: Dict[str, Any]) -> Dict[str, str]:
    """Map each normalised template to the first raw path spelling it."""
    templates: Dict[str, str] = {}
    for path in sorted(paths):
        templates.setdefault(normalise_template(path), path)
    return templates


def _json_equal(left: Any, right: Any) -> bool:
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left is right
    return left == right


def _missing_from(values: Tuple[Any, ...], others: Tuple[Any, ...]) -> List[Any]:
    return [value for value in values if not any(_json_equal(value, other) for other in others)]


OLD = "old"
NEW = "new"


class _Differ:
    def __init__(
        self,
        old: SpecDocument,
        new: SpecDocument,
        cancel: Optional[CancellationToken],
        old_label: str = "prior revision",
        new_label: str = "current revision",
    ):
        self.old = old
        self.new = new
        self.cancel = cancel
        self.labels = {OLD: old_label, NEW: new_label}
        self.recorded: List[Tuple[BreakingChange, PathParts]] = []
        self.unresolved: List[Tuple[PathParts, str]] = []
        self._reported: Set[Tuple[str, str, PathParts]] = set()

    @property
    def changes(self) -> List[BreakingChange]:
        return [change for change, _ in self.recorded]

    def record(self, kind: ChangeKind, parts: PathParts, description: str, old: Any = None, new: Any = None) -> None:
        change = BreakingChange(kind=kind, path=format_path(parts), description=description, old=old, new=new)
        self.recorded.append((change, parts))

    def _resolve(self, node: Optional[Any], side: str, parts: PathParts) -> Optional[Any]:
        """Follow refs to a concrete node; cyclic chains compare as absent."""
        if node is None:
            return None
        registry = self.old.components if side == OLD else self.new.components
        try:
            resolved = resolve_deep(node, registry, set())
        except UnresolvedReferenceError as exc:
            key = (side, exc.pointer, parts)
            if key not in self._reported:
                self._reported.add(key)
                message = f"unresolved reference '{exc.pointer}' in {self.labels[side]}: {exc.reason}"
                logger.debug("Revision comparison at %s: %s", format_path(parts), message)
                self.unresolved.append((parts, message))
            return None
        return None if isinstance(resolved, CycleDetected) else resolved

    def run(self) -> List[BreakingChange]:
        old_paths, new_paths = self.old.paths, self.new.paths
        old_templates, new_templates = _templates(old_paths), _templates(new_paths)
        for template in sorted(set(old_templates) | set(new_templates)):
            checkpoint(self.cancel, "revision comparison")
            if template not in new_templates:
                path = old_templates[template]
                self.record(
                    ChangeKind.PATH_REMOVED, ("paths", path), f"path {path} was removed",
                    old=sorted(old_paths[path].operations),
                )
                continue
            path = new_templates[template]
            parts: PathParts = ("paths", path)
            if template not in old_templates:
                self.record(
                    ChangeKind.PATH_ADDED, parts, f"path {path} was added",
                    new=sorted(new_paths[path].operations),
                )
                continue

            old_path = old_templates[template]
            old_ops, new_ops = old_paths[old_path].operations, new_paths[path].operations
            for method in sorted(set(old_ops) | set(new_ops)):
                label = f"{method.upper()} {path}"
                if method not in new_ops:
                    self.record(ChangeKind.OPERATION_REMOVED, parts + (method,), f"operation {label} was removed")
                elif method not in old_ops:
                    self.record(ChangeKind.OPERATION_ADDED, parts + (method,), f"operation {label} was added")
                else:
                    self._diff_operation(old_ops[method], new_ops[method], parts + (method,))
        return self.changes

    def _diff_text(self, old: Optional[str], new: Optional[str], parts: PathParts, what: str) -> None:
        if old != new:
            self.record(ChangeKind.DESCRIPTION_CHANGED, parts, f"{what} changed", old=old, new=new)

    def _parameters(self, operation: Operation, side: str, base: PathParts) -> Dict[Tuple[str, str], Parameter]:
        """Parameters keyed by (name, location); path parameters by template position."""
        positions = {name: index for index, name in enumerate(template_variables(operation.path))}
        parameters: Dict[Tuple[str, str], Parameter] = {}
        for index, parameter in enumerate(operation.parameters):
            resolved = self._resolve(parameter, side, base + ("parameters", str(index)))
            if resolved is None or not resolved.name:
                continue
            location = resolved.location or ""
            if location == "path" and resolved.name in positions:
                parameters[(f"{{{positions[resolved.name]}}}", location)] = resolved
            else:
                parameters[(resolved.name, location)] = resolved
        return parameters

    def _diff_operation(self, old_op: Operation, new_op: Operation, base: PathParts) -> None:
        label = f"{new_op.method.upper()} {new_op.path}"

        self._diff_text(old_op.summary, new_op.summary, base + ("summary",), f"summary of {label}")
        self._diff_text(old_op.description, new_op.description, base + ("description",), f"description of {label}")

        old_params = self._parameters(old_op, OLD, base)
        new_params = self._parameters(new_op, NEW, base)
        for key in sorted(set(old_params) | set(new_params)):
            location = key[1]
            old_param, new_param = old_params.get(key), new_params.get(key)
            name = (new_param or old_param).name
            parts = base + ("parameters", location, name)
            if old_param is None:
                kind = ChangeKind.REQUIRED_PARAMETER_ADDED if new_param.required else ChangeKind.OPTIONAL_PARAMETER_ADDED
                qualifier = "required" if new_param.required else "optional"
                self.record(kind, parts, f"{qualifier} {location} parameter '{name}' added to {label}", new=new_param.required)
                continue
            if new_param is None:
                self.record(ChangeKind.PARAMETER_REMOVED, parts, f"{location} parameter '{name}' removed from {label}")
                continue
            if new_param.required and not old_param.required:
                self.record(
                    ChangeKind.REQUIRED_PARAMETER_ADDED, parts,
                    f"{location} parameter '{name}' of {label} is now required",
                    old=False, new=True,
                )
            self._diff_schema(old_param.schema, new_param.schema, parts, REQUEST)

        self._diff_request_body(old_op, new_op, base + ("requestBody",), label)

        for status in sorted(set(old_op.responses) | set(new_op.responses)):
            parts = base + ("responses", status)
            old_response = self._resolve(old_op.responses.get(status), OLD, parts)
            new_response = self._resolve(new_op.responses.get(status), NEW, parts)
            if status not in new_op.responses:
                self.record(ChangeKind.RESPONSE_REMOVED, parts, f"response {status} removed from {label}")
                continue
            if status not in old_op.responses:
                self.record(ChangeKind.RESPONSE_ADDED, parts, f"response {status} added to {label}")
                continue
            if old_response is None or new_response is None:
                continue
            self._diff_text(
                old_response.description, new_response.description,
                parts + ("description",), f"description of response {status} of {label}",
            )
            old_schema, new_schema = old_response.schema, new_response.schema
            if old_schema is not None and new_schema is None:
                self.record(ChangeKind.RESPONSE_FIELD_REMOVED, parts, f"response {status} of {label} no longer documents a body")
            elif old_schema is None and new_schema is not None:
                self.record(ChangeKind.FIELD_ADDED, parts, f"response {status} of {label} now documents a body")
            else:
                self._diff_schema(old_schema, new_schema, parts, RESPONSE)

    def _diff_request_body(self, old_op: Operation, new_op: Operation, parts: PathParts, label: str) -> None:
        old_body = self._resolve(old_op.request_body, OLD, parts)
        new_body = self._resolve(new_op.request_body, NEW, parts)
        if new_body is None:
            return
        if old_body is None:
            if new_body.required:
                self.record(ChangeKind.REQUIRED_BODY_FIELD_ADDED, parts, f"{label} now requires a request body", new=True)
            else:
                self.record(ChangeKind.FIELD_ADDED, parts, f"{label} now accepts an optional request body")
            return
        if new_body.required and not old_body.required:
            self.record(
                ChangeKind.REQUIRED_BODY_FIELD_ADDED, parts, f"request body of {label} is now required",
                old=False, new=True,
            )
        self._diff_text(old_body.description, new_body.description, parts + ("description",), f"request body description of {label}")
        self._diff_schema(old_body.schema, new_body.schema, parts, REQUEST)

    def _diff_schema(
        self,
        old_node: Optional[SchemaNode],
        new_node: Optional[SchemaNode],
        parts: PathParts,
        side: str,
        seen: Optional[Set[Tuple[int, int]]] = None,
    ) -> None:
        checkpoint(self.cancel, "revision comparison")
        old = self._resolve(old_node, OLD, parts)
        new = self._resolve(new_node, NEW, parts)
        if old is None or new is None:
            return
        seen = set() if seen is None else seen
        if (id(old), id(new)) in seen:
            return
        seen.add((id(old), id(new)))

        narrowed, widened = _NARROWED[side], _WIDENED[side]
        where = format_path(parts)

        old_type, new_type = _effective_type(old), _effective_type(new)
        if old_type != new_type:
            if old_type is None:
                self.record(narrowed, parts, f"{where} is now restricted to type {new_type}", old=None, new=new_type)
            elif new_type is None:
                self.record(widened, parts, f"{where} is no longer restricted to type {old_type}", old=old_type, new=None)
            elif (old_type, new_type) == ("integer", "number"):
                self.record(widened, parts, f"{where} widened from integer to number", old=old_type, new=new_type)
            else:
                self.record(narrowed, parts, f"{where} changed type from {old_type} to {new_type}", old=old_type, new=new_type)
                return

        if old.nullable and not new.nullable:
            self.record(narrowed, parts, f"{where} is no longer nullable", old=True, new=False)
        elif new.nullable and not old.nullable:
            self.record(widened, parts, f"{where} is now nullable", old=False, new=True)

        self._diff_enum(old, new, parts, narrowed, widened)
        self._diff_keywords(old, new, parts, narrowed, widened)

        if old.description != new.description and (old.description or new.description):
            self.record(ChangeKind.DESCRIPTION_CHANGED, parts, f"description of {where} changed", old=old.description, new=new.description)

        self._diff_properties(old, new, parts, side, seen)

        if old.items is not None and new.items is not None:
            self._diff_schema(old.items, new.items, parts + ("items",), side, seen)
        if isinstance(old.additional_properties, SchemaNode) and isinstance(new.additional_properties, SchemaNode):
            self._diff_schema(old.additional_properties, new.additional_properties, parts + ("additionalProperties",), side, seen)

        self._diff_compositions(old, new, parts, side, seen)

    def _diff_enum(self, old: SchemaNode, new: SchemaNode, parts: PathParts, narrowed: ChangeKind, widened: ChangeKind) -> None:
        where = format_path(parts)
        if old.enum is None and new.enum is not None:
            self.record(narrowed, parts, f"{where} is now restricted to an enum", old=None, new=list(new.enum))
        elif old.enum is not None and new.enum is None:
            self.record(widened, parts, f"{where} is no longer restricted to an enum", old=list(old.enum), new=None)
        elif old.enum is not None and new.enum is not None:
            removed = _missing_from(old.enum, new.enum)
            added = _missing_from(new.enum, old.enum)
            if removed:
                self.record(narrowed, parts, f"enum values removed from {where}: {removed}", old=removed, new=None)
            if added:
                self.record(widened, parts, f"enum values added to {where}: {added}", old=None, new=added)

    def _diff_keywords(self, old: SchemaNode, new: SchemaNode, parts: PathParts, narrowed: ChangeKind, widened: ChangeKind) -> None:
        where = format_path(parts)
        for attribute, keyword in (("format", "format"), ("pattern", "pattern")):
            before, after = getattr(old, attribute), getattr(new, attribute)
            if before == after:
                continue
            if after is None:
                self.record(widened, parts, f"{keyword} '{before}' removed from {where}", old=before, new=None)
            else:
                self.record(narrowed, parts, f"{keyword} of {where} changed from {before!r} to {after!r}", old=before, new=after)

        for attribute, keyword, larger_is_tighter in _BOUNDS:
            before, after = getattr(old, attribute), getattr(new, attribute)
            if before == after:
                continue
            if before is None:
                tighter = True
            elif after is None:
                tighter = False
            else:
                tighter = (after > before) == larger_is_tighter
            kind = narrowed if tighter else widened
            verb = "tightened" if tighter else "relaxed"
            self.record(kind, parts, f"{keyword} of {where} {verb} from {before} to {after}", old=before, new=after)

        if _accepts_extra(old) and new.additional_properties is False:
            self.record(narrowed, parts, f"{where} no longer accepts additional properties", old=True, new=False)
        elif old.additional_properties is False and _accepts_extra(new):
            self.record(widened, parts, f"{where} now accepts additional properties", old=False, new=True)

    def _diff_properties(self, old: SchemaNode, new: SchemaNode, parts: PathParts, side: str, seen: Set) -> None:
        old_props, new_props = old.properties, new.properties
        where = format_path(parts)
        for name in sorted(set(old_props) - set(new_props)):
            if side == RESPONSE:
                self.record(
                    ChangeKind.RESPONSE_FIELD_REMOVED, parts + (name,), f"response field '{name}' was removed from {where}"
                )
        for name in sorted(set(new_props) - set(old_props)):
            if side == REQUEST and name in new.required:
                self.record(
                    ChangeKind.REQUIRED_BODY_FIELD_ADDED, parts + (name,),
                    f"required field '{name}' was added to {where}", new=True,
                )
            else:
                qualifier = "optional field" if side == REQUEST else "field"
                self.record(ChangeKind.FIELD_ADDED, parts + (name,), f"{qualifier} '{name}' was added to {where}")
        for name in sorted(set(old_props) & set(new_props)):
            if side == REQUEST and name in new.required and name not in old.required:
                self.record(
                    ChangeKind.REQUIRED_BODY_FIELD_ADDED, parts + (name,),
                    f"field '{name}' of {format_path(parts)} is now required", old=False, new=True,
                )
            self._diff_schema(old_props[name], new_props[name], parts + (name,), side, seen)

    def _diff_compositions(self, old: SchemaNode, new: SchemaNode, parts: PathParts, side: str, seen: Set) -> None:
        narrowed, widened = _NARROWED[side], _WIDENED[side]
        where = format_path(parts)
        old_keywords = dict(old.compositions())
        new_keywords = dict(new.compositions())
        if set(old_keywords) != set(new_keywords):
            self.record(
                narrowed, parts, f"composition of {where} changed",
                old=sorted(old_keywords), new=sorted(new_keywords),
            )
            return
        for keyword in sorted(old_keywords):
            old_branches = _branch_keys(old_keywords[keyword])
            new_branches = _branch_keys(new_keywords[keyword])
            removed = [key for key in old_branches if key not in new_branches]
            added = [key for key in new_branches if key not in old_branches]
            if keyword == "allOf":
                removed_kind, added_kind = widened, narrowed
            else:
                removed_kind, added_kind = narrowed, widened
            if removed:
                self.record(removed_kind, parts + (keyword,), f"{keyword} branches removed from {where}: {removed}", old=removed)
            if added:
                self.record(added_kind, parts + (keyword,), f"{keyword} branches added to {where}: {added}", new=added)
            for key in old_branches:
                if key in new_branches:
                    self._diff_schema(old_branches[key], new_branches[key], parts + (keyword, key), side, seen)


def _accepts_extra(node: SchemaNode) -> bool:
    """Objects accept undeclared properties unless ``additionalProperties: false``."""
    return node.kind is SchemaKind.OBJECT and node.additional_properties is not False


__all__ = ["compare_against_revision", "diff_documents", "Fetcher", "CHECK_NAME"]
