from __future__ import annotations

import pytest
from jsonschema import FormatChecker, ValidationError, validate

from specguard.validation.formats import FormatRegistry


@pytest.fixture
def formats():
    return FormatRegistry.default()


@pytest.mark.parametrize(
    ("name", "good", "bad"),
    [
        ("email", "dev@example.com", "dev@"),
        ("date", "2024-02-29", "2023-02-29"),
        ("date-time", "2024-01-01T10:00:00.123456789Z", "2024-01-01 10:00"),
        ("time", "23:59:59+02:00", "24:00:00"),
        ("uuid", "7d444840-9dc0-11d1-b245-5ffdce74fad2", "7d444840"),
        ("uri", "https://example.com/a?b=c", "example.com"),
        ("hostname", "api.example.com", "-bad-.example.com"),
        ("ipv4", "192.168.0.1", "256.0.0.1"),
        ("ipv6", "::1", "12345::"),
        ("byte", "aGVsbG8=", "not base64!"),
        ("int32", 2**31 - 1, 2**31),
        ("int64", -(2**63), 2**63),
    ],
)
def test_default_predicates(formats, name, good, bad):
    assert formats.check(name, good)
    assert not formats.check(name, bad)


def test_predicates_ignore_values_of_other_types(formats):
    assert formats.check("email", 42)
    assert formats.check("int32", "not an int")
    assert formats.check("int32", True)


def test_unknown_and_empty_formats_pass(formats):
    assert formats.check("password", "hunter2")
    assert formats.check(None, "anything")
    assert formats.get("password") is None


def test_register_overrides_and_extends(formats):
    formats.register("email", lambda value: value.endswith("@corp.example"))
    formats.register("slug", lambda value: value.isidentifier())
    assert not formats.check("email", "dev@example.com")
    assert formats.check("slug", "my_slug")
    assert "slug" in formats
    assert "slug" in list(formats)


def test_empty_registry_has_no_predicates():
    assert list(FormatRegistry()) == []


def test_registry_is_a_jsonschema_format_checker(formats):
    assert isinstance(formats.checker, FormatChecker)
    formats.register("even", lambda value: value % 2 == 0)
    validate(4, {"format": "even"}, format_checker=formats.checker)
    with pytest.raises(ValidationError):
        validate(3, {"format": "even"}, format_checker=formats.checker)


def test_get_returns_the_registered_predicate():
    registry = FormatRegistry({"slug": str.isidentifier})
    assert registry.get("slug") is str.isidentifier
    assert registry.check("slug", "ok_slug")
    assert not registry.check("slug", "not a slug")
