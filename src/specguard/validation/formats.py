"""Pluggable ``format`` predicates for string and integer values.

The registry is a thin layer over ``jsonschema.FormatChecker`` so the same
checker drives schema validation in :mod:`specguard.validation.engine`.
"""
from __future__ import annotations

import base64
import binascii
import ipaddress
import re
import uuid
from datetime import date, datetime, time
from typing import Any, Callable, Dict, Iterator, Optional
from urllib.parse import urlsplit

from jsonschema import FormatChecker

FormatPredicate = Callable[[Any], bool]

_EMAIL_RE = re.compile(r"^[A-Za-z0-9.!#$%&'*+/=?^_`{|}~-]+@[A-Za-z0-9](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?(?:\.[A-Za-z0-9](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?)+$")
_HOSTNAME_LABEL_RE = re.compile(r"^(?!-)[A-Za-z0-9-]{1,63}(?<!-)$")
_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_DATE_TIME_RE = re.compile(
    r"^\d{4}-\d{2}-\d{2}[Tt ]\d{2}:\d{2}:\d{2}(?:\.\d+)?(?:[Zz]|[+-]\d{2}:\d{2})$"
)
_TIME_RE = re.compile(r"^\d{2}:\d{2}:\d{2}(?:\.\d+)?(?:[Zz]|[+-]\d{2}:\d{2})?$")

INT32_RANGE = (-(2**31), 2**31 - 1)
INT64_RANGE = (-(2**63), 2**63 - 1)


def is_email(value: str) -> bool:
    return len(value) <= 254 and bool(_EMAIL_RE.match(value))


def is_date(value: str) -> bool:
    if not _DATE_RE.match(value):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def is_date_time(value: str) -> bool:
    if not _DATE_TIME_RE.match(value):
        return False
    normalised = value.replace("t", "T").replace(" ", "T")
    if normalised[-1] in "zZ":
        normalised = normalised[:-1] + "+00:00"
    # fromisoformat on 3.10 only takes 3 or 6 fractional digits
    normalised = re.sub(r"\.\d+", "", normalised)
    try:
        datetime.fromisoformat(normalised)
    except ValueError:
        return False
    return True


def is_time(value: str) -> bool:
    if not _TIME_RE.match(value):
        return False
    clock = re.sub(r"\.\d+", "", re.split(r"[Zz+-]", value, maxsplit=1)[0])
    try:
        time.fromisoformat(clock)
    except ValueError:
        return False
    return True


def is_uuid(value: str) -> bool:
    try:
        uuid.UUID(value)
    except ValueError:
        return False
    return len(value) == 36


def is_uri(value: str) -> bool:
    parts = urlsplit(value)
    return bool(parts.scheme) and bool(parts.netloc or parts.path)


def is_hostname(value: str) -> bool:
    if not value or len(value) > 253:
        return False
    labels = value[:-1].split(".") if value.endswith(".") else value.split(".")
    return all(_HOSTNAME_LABEL_RE.match(label) for label in labels)


def is_ipv4(value: str) -> bool:
    try:
        ipaddress.IPv4Address(value)
    except ValueError:
        return False
    return True


def is_ipv6(value: str) -> bool:
    try:
        ipaddress.IPv6Address(value)
    except ValueError:
        return False
    return True


def is_byte(value: str) -> bool:
    try:
        base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError):
        return False
    return True


def _in_range(bounds):
    low, high = bounds

    def predicate(value: int) -> bool:
        return low <= value <= high

    return predicate


_STRING_FORMATS: Dict[str, FormatPredicate] = {
    "email": is_email,
    "date": is_date,
    "date-time": is_date_time,
    "time": is_time,
    "uuid": is_uuid,
    "uri": is_uri,
    "hostname": is_hostname,
    "ipv4": is_ipv4,
    "ipv6": is_ipv6,
    "byte": is_byte,
}

_INTEGER_FORMATS: Dict[str, FormatPredicate] = {
    "int32": _in_range(INT32_RANGE),
    "int64": _in_range(INT64_RANGE),
}


class FormatRegistry:
    """Named ``format`` predicates held in a ``jsonschema.FormatChecker``.

    Predicates only see values of the type they apply to: string formats are
    skipped for non-strings and integer formats for non-integers. Formats with
    no registered predicate always pass.
    """

    def __init__(self, predicates: Optional[Dict[str, FormatPredicate]] = None):
        # formats=() starts from an empty checker rather than jsonschema's defaults
        self.checker = FormatChecker(formats=())
        for name, predicate in (predicates or {}).items():
            self.register(name, predicate)

    @classmethod
    def default(cls) -> "FormatRegistry":
        registry = cls()
        for name, predicate in _STRING_FORMATS.items():
            registry.register(name, _for_strings(predicate))
        for name, predicate in _INTEGER_FORMATS.items():
            registry.register(name, _for_integers(predicate))
        return registry

    def register(self, name: str, predicate: FormatPredicate) -> None:
        self.checker.checks(name)(predicate)

    def get(self, name: str) -> Optional[FormatPredicate]:
        entry = self.checker.checkers.get(name)
        return entry[0] if entry is not None else None

    def check(self, name: Optional[str], value: Any) -> bool:
        if not name:
            return True
        return self.checker.conforms(value, name)

    def __contains__(self, name: object) -> bool:
        return name in self.checker.checkers

    def __iter__(self) -> Iterator[str]:
        return iter(self.checker.checkers)


def _for_strings(predicate: FormatPredicate) -> FormatPredicate:
    def wrapper(value: Any) -> bool:
        return predicate(value) if isinstance(value, str) else True

    return wrapper


def _for_integers(predicate: FormatPredicate) -> FormatPredicate:
    def wrapper(value: Any) -> bool:
        if isinstance(value, bool) or not isinstance(value, int):
            return True
        return predicate(value)

    return wrapper


__all__ = [
    "FormatPredicate",
    "FormatRegistry",
    "is_byte",
    "is_date",
    "is_date_time",
    "is_email",
    "is_hostname",
    "is_ipv4",
    "is_ipv6",
    "is_time",
    "is_uri",
    "is_uuid",
]
