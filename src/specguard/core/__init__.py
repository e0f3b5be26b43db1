"""Shared enums, result models, configuration and cancellation."""
from .cancellation import CancellationToken
from .enums import ChangeKind, Impact, ParameterLocation, SchemaKind, Severity
from .models import (
    BreakingChange,
    CheckResult,
    CircularReference,
    SpecGuardBaseModel,
    SuiteResult,
    ValidationIssue,
)
from .settings import SpecGuardSettings, configure_settings, get_settings

__all__ = [
    "CancellationToken",
    "ChangeKind",
    "Impact",
    "ParameterLocation",
    "SchemaKind",
    "Severity",
    "BreakingChange",
    "CheckResult",
    "CircularReference",
    "SpecGuardBaseModel",
    "SuiteResult",
    "ValidationIssue",
    "SpecGuardSettings",
    "configure_settings",
    "get_settings",
]
