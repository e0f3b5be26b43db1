"""Document-level checks: structural validation, cycles and revision diffs."""
from .breaking import Fetcher, compare_against_revision, diff_documents
from .cycles import detect_cycles, find_cycles, schema_graph
from .structural import validate_document
from .versioning import bump_type, check_version_bump, required_bump

__all__ = [
    "Fetcher",
    "compare_against_revision",
    "diff_documents",
    "detect_cycles",
    "find_cycles",
    "schema_graph",
    "validate_document",
    "bump_type",
    "check_version_bump",
    "required_bump",
]
