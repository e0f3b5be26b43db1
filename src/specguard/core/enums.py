"""Core enumerations shared across specguard checks."""
from __future__ import annotations

from enum import Enum


def _normalise_token(token: str) -> str:
    """Normalise enumeration tokens for flexible parsing."""
    return "".join(ch for ch in token.upper() if ch.isalnum())


class CaseInsensitiveStrEnum(str, Enum):
    """``Enum`` base that accepts case-insensitive tokens and relaxed separators."""

    def __str__(self) -> str:  # pragma: no cover - simple proxy
        return str(self.value)

    @classmethod
    def _missing_(cls, value: object):
        if isinstance(value, str):
            normalised = _normalise_token(value)
            for member in cls:  # pragma: no branch - bounded iteration
                if normalised == _normalise_token(member.value) or normalised == _normalise_token(member.name):
                    return member
        return None


class Severity(CaseInsensitiveStrEnum):
    ERROR = "error"
    WARNING = "warning"


class Impact(CaseInsensitiveStrEnum):
    BREAKING = "breaking"
    NON_BREAKING = "non-breaking"
    INFORMATIONAL = "informational"


class ChangeKind(CaseInsensitiveStrEnum):
    """Closed taxonomy of structural differences between two revisions."""

    PATH_REMOVED = "PathRemoved"
    PATH_ADDED = "PathAdded"
    OPERATION_REMOVED = "OperationRemoved"
    OPERATION_ADDED = "OperationAdded"
    REQUIRED_PARAMETER_ADDED = "RequiredParameterAdded"
    OPTIONAL_PARAMETER_ADDED = "OptionalParameterAdded"
    PARAMETER_REMOVED = "ParameterRemoved"
    REQUIRED_BODY_FIELD_ADDED = "RequiredBodyFieldAdded"
    REQUEST_SCHEMA_NARROWED = "RequestSchemaNarrowed"
    REQUEST_SCHEMA_WIDENED = "RequestSchemaWidened"
    RESPONSE_REMOVED = "ResponseRemoved"
    RESPONSE_ADDED = "ResponseAdded"
    RESPONSE_FIELD_REMOVED = "ResponseFieldRemoved"
    RESPONSE_SCHEMA_NARROWED = "ResponseSchemaNarrowed"
    RESPONSE_SCHEMA_WIDENED = "ResponseSchemaWidened"
    FIELD_ADDED = "FieldAdded"
    DESCRIPTION_CHANGED = "DescriptionChanged"

    @property
    def impact(self) -> Impact:
        return CHANGE_IMPACT[self]


CHANGE_IMPACT = {
    ChangeKind.PATH_REMOVED: Impact.BREAKING,
    ChangeKind.PATH_ADDED: Impact.NON_BREAKING,
    ChangeKind.OPERATION_REMOVED: Impact.BREAKING,
    ChangeKind.OPERATION_ADDED: Impact.NON_BREAKING,
    ChangeKind.REQUIRED_PARAMETER_ADDED: Impact.BREAKING,
    ChangeKind.OPTIONAL_PARAMETER_ADDED: Impact.NON_BREAKING,
    ChangeKind.PARAMETER_REMOVED: Impact.NON_BREAKING,
    ChangeKind.REQUIRED_BODY_FIELD_ADDED: Impact.BREAKING,
    ChangeKind.REQUEST_SCHEMA_NARROWED: Impact.BREAKING,
    ChangeKind.REQUEST_SCHEMA_WIDENED: Impact.NON_BREAKING,
    ChangeKind.RESPONSE_REMOVED: Impact.BREAKING,
    ChangeKind.RESPONSE_ADDED: Impact.NON_BREAKING,
    ChangeKind.RESPONSE_FIELD_REMOVED: Impact.BREAKING,
    ChangeKind.RESPONSE_SCHEMA_NARROWED: Impact.BREAKING,
    ChangeKind.RESPONSE_SCHEMA_WIDENED: Impact.NON_BREAKING,
    ChangeKind.FIELD_ADDED: Impact.NON_BREAKING,
    ChangeKind.DESCRIPTION_CHANGED: Impact.INFORMATIONAL,
}


class SchemaKind(str, Enum):
    """Variant tag carried by every ``SchemaNode``."""

    PRIMITIVE = "primitive"
    OBJECT = "object"
    ARRAY = "array"
    COMPOSITE = "composite"
    REFERENCE = "reference"
    ANY = "any"


class ParameterLocation(CaseInsensitiveStrEnum):
    QUERY = "query"
    HEADER = "header"
    PATH = "path"
    COOKIE = "cookie"


class HttpMethod(CaseInsensitiveStrEnum):
    GET = "get"
    PUT = "put"
    POST = "post"
    DELETE = "delete"
    OPTIONS = "options"
    HEAD = "head"
    PATCH = "patch"
    TRACE = "trace"


HTTP_METHODS = frozenset(method.value for method in HttpMethod)


__all__ = [
    "CaseInsensitiveStrEnum",
    "Severity",
    "Impact",
    "ChangeKind",
    "CHANGE_IMPACT",
    "SchemaKind",
    "ParameterLocation",
    "HttpMethod",
    "HTTP_METHODS",
]
