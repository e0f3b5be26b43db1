"""Tests for the case-insensitive enum parsing."""

from __future__ import annotations

import pytest

from specguard.core.enums import ChangeKind, HttpMethod, Impact, ParameterLocation, Severity


def test_severity_parses_any_case():
    assert Severity("ERROR") is Severity.ERROR
    assert Severity("Warning") is Severity.WARNING


def test_change_kind_accepts_relaxed_separators():
    assert ChangeKind("path_removed") is ChangeKind.PATH_REMOVED
    assert ChangeKind("pathremoved") is ChangeKind.PATH_REMOVED
    assert ChangeKind("Required-Parameter-Added") is ChangeKind.REQUIRED_PARAMETER_ADDED


def test_member_names_parse_too():
    assert HttpMethod("GET") is HttpMethod.GET
    assert ParameterLocation("Query") is ParameterLocation.QUERY
    assert Impact("NON_BREAKING") is Impact.NON_BREAKING


def test_unknown_token_raises():
    with pytest.raises(ValueError):
        Severity("fatal")
    with pytest.raises(ValueError):
        HttpMethod(3)


def test_every_change_kind_has_an_impact():
    assert ChangeKind.PATH_REMOVED.impact is Impact.BREAKING
    assert ChangeKind.DESCRIPTION_CHANGED.impact is Impact.INFORMATIONAL
    assert all(isinstance(kind.impact, Impact) for kind in ChangeKind)


def test_str_is_the_value():
    assert str(Severity.ERROR) == "error"
    assert str(ChangeKind.FIELD_ADDED) == "FieldAdded"
