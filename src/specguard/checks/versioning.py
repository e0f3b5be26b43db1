"""Semantic versioning policy for specification changes.

* Breaking changes require a **major** bump of ``info.version``.
* Additive changes (new paths/operations/responses/fields, widened schemas)
  require at least a **minor** bump.
* Any other difference (descriptions, metadata, examples) requires at least a
  **patch** bump.
"""

from __future__ import annotations

import json
from typing import Any, Iterable, List, Mapping, Optional

from packaging.version import InvalidVersion, Version

from ..core.enums import ChangeKind, Severity
from ..core.models import BreakingChange, ValidationIssue

BUMP_ORDER = {"patch": 0, "minor": 1, "major": 2}

ADDITIVE_KINDS = frozenset(
    {
        ChangeKind.PATH_ADDED,
        ChangeKind.OPERATION_ADDED,
        ChangeKind.OPTIONAL_PARAMETER_ADDED,
        ChangeKind.RESPONSE_ADDED,
        ChangeKind.FIELD_ADDED,
        ChangeKind.REQUEST_SCHEMA_WIDENED,
        ChangeKind.RESPONSE_SCHEMA_WIDENED,
    }
)


def normalize_spec(spec: Mapping[str, Any]) -> str:
    """Return a canonical JSON representation, ignoring ``info.version``."""
    spec = dict(spec)
    info = spec.get("info")
    if isinstance(info, Mapping):
        spec["info"] = {key: value for key, value in info.items() if key != "version"}
    return json.dumps(spec, sort_keys=True, separators=(",", ":"), default=str)


def required_bump(
    changes: Iterable[BreakingChange],
    base: Optional[Mapping[str, Any]] = None,
    new: Optional[Mapping[str, Any]] = None,
) -> Optional[str]:
    """Return the minimum semantic version bump the changes call for."""
    changes = list(changes)
    if any(change.is_breaking for change in changes):
        return "major"
    if any(change.kind in ADDITIVE_KINDS for change in changes):
        return "minor"
    if changes:
        return "patch"
    # Other differences such as examples or extensions still need a patch bump.
    if base is not None and new is not None and normalize_spec(base) != normalize_spec(new):
        return "patch"
    return None


def bump_type(base_version: Version, new_version: Version) -> Optional[str]:
    """Return the semantic bump type between two versions."""
    if new_version <= base_version:
        return None
    if new_version.major > base_version.major:
        return "major"
    if new_version.minor > base_version.minor:
        return "minor"
    if new_version.micro > base_version.micro:
        return "patch"
    # Allow pre-release/build metadata to count as patch-level bump
    if (new_version.micro == base_version.micro and
            (new_version.pre or new_version.post or new_version.dev or new_version.local) and
            not (base_version.pre or base_version.post or base_version.dev or base_version.local)):
        return "patch"
    return None


def check_version_bump(
    base_version: Optional[str],
    new_version: Optional[str],
    required: Optional[str],
) -> List[ValidationIssue]:
    """Return issues for a missing or insufficient ``info.version`` bump."""
    if required is None:
        return []
    try:
        base = Version(str(base_version))
        new = Version(str(new_version))
    except InvalidVersion as exc:
        return [
            ValidationIssue(
                path="info.version",
                message=f"cannot enforce semantic versioning: {exc}",
                severity=Severity.WARNING,
            )
        ]

    actual = bump_type(base, new)
    if actual is None:
        return [
            ValidationIssue(
                path="info.version",
                message=(
                    f"specification changed but version was not incremented "
                    f"(base={base}, new={new}, required bump={required})"
                ),
            )
        ]
    if BUMP_ORDER[actual] < BUMP_ORDER[required]:
        return [
            ValidationIssue(
                path="info.version",
                message=(
                    f"detected change requires >= {required} bump but version only bumped {actual} "
                    f"(base={base}, new={new})"
                ),
            )
        ]
    return []


__all__ = ["BUMP_ORDER", "ADDITIVE_KINDS", "normalize_spec", "required_bump", "bump_type", "check_version_bump"]
