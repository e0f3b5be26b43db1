"""Runtime payload and parameter validation against a loaded document."""
from .engine import DataValidationEngine, json_type, validate_value_against_schema
from .formats import FormatRegistry

__all__ = [
    "DataValidationEngine",
    "FormatRegistry",
    "json_type",
    "validate_value_against_schema",
]
