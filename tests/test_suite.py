"""Tests for the check/suite facade."""

from __future__ import annotations

import pytest

from specguard.core.cancellation import CancellationToken
from specguard.exceptions import OperationCancelled
from specguard.revisions import InMemoryFetcher
from specguard.suite import (
    BreakingChangeCheck,
    CircularReferenceCheck,
    Suite,
    SuiteBuilder,
    ValidationCheck,
)

CYCLIC_SPEC = """
openapi: 3.0.3
info: {title: t, version: '1'}
paths:
  /a:
    get:
      summary: s
      description: d
      responses: {'200': {description: ok}}
components:
  schemas:
    Node:
      type: object
      properties:
        next: {$ref: '#/components/schemas/Node'}
      example: {}
"""


def test_builder_runs_checks_in_fixed_order(petstore_spec, petstore_doc):
    fetch = InMemoryFetcher({("main", "openapi.yaml"): petstore_spec})
    suite = (
        SuiteBuilder()
        .with_breaking_changes("main", fetch, "openapi.yaml")
        .with_circular_references()
        .with_validation()
        .build()
    )
    assert suite.check_names == ("validation", "circular-references", "breaking-changes")
    result = suite.run(petstore_doc)
    assert result.passed
    assert [r.name for r in result.results] == ["validation", "circular-references", "breaking-changes"]
    assert result.result_for("breaking-changes").passed


def test_toggles_remove_checks():
    suite = SuiteBuilder().with_validation().with_circular_references().without_validation().build()
    assert suite.check_names == ("circular-references",)
    assert len(SuiteBuilder().build()) == 0


def test_one_failing_check_fails_the_suite_but_others_still_run():
    suite = SuiteBuilder().with_validation().with_circular_references().build()
    result = suite.run_source(CYCLIC_SPEC)
    assert not result.passed
    assert result.result_for("validation").passed
    assert not result.result_for("circular-references").passed


def test_suite_is_immutable():
    suite = Suite((ValidationCheck(),))
    with pytest.raises(AttributeError):
        suite.extra = 1
    assert isinstance(suite.checks, tuple)


def test_suite_orders_checks_it_is_given():
    fetch = InMemoryFetcher()
    suite = Suite((BreakingChangeCheck("main", fetch), CircularReferenceCheck(), ValidationCheck()))
    assert suite.check_names == ("validation", "circular-references", "breaking-changes")


def test_builder_is_reusable_after_build():
    builder = SuiteBuilder().with_validation()
    first = builder.build()
    builder.with_circular_references()
    assert first.check_names == ("validation",)
    assert builder.build().check_names == ("validation", "circular-references")


def test_load_failure_yields_one_error_per_selected_check():
    suite = SuiteBuilder().with_validation().with_circular_references().build()
    result = suite.run_source("openapi: 3.0.3\ninfo: [unclosed\n")
    assert not result.passed
    assert [len(r.errors) for r in result.results] == [1, 1]
    assert result.results[0].errors[0].line is not None


def test_shape_failure_is_reported_not_raised():
    suite = SuiteBuilder().with_validation().build()
    result = suite.run_source('{"openapi": "3.0.3", "paths": {}}')
    assert not result.passed
    assert "info" in result.results[0].errors[0].message


def test_breaking_change_check_uses_document_source_path(minimal_spec):
    fetch = InMemoryFetcher()
    suite = SuiteBuilder().with_breaking_changes("main", fetch).build()
    result = suite.run_source(minimal_spec, source_path="spec/openapi.yaml")
    assert not result.passed
    assert fetch.calls == [("main", "spec/openapi.yaml")]


def test_suite_results_serialise_to_json(petstore_doc):
    result = SuiteBuilder().with_validation().with_circular_references().build().run(petstore_doc)
    dumped = result.model_dump(mode="json")
    assert dumped["passed"] is True
    assert [r["name"] for r in dumped["results"]] == ["validation", "circular-references"]


def test_cancelled_suite_raises_without_partial_results(petstore_doc):
    token = CancellationToken()
    token.cancel()
    suite = SuiteBuilder().with_validation().with_circular_references().build()
    with pytest.raises(OperationCancelled):
        suite.run(petstore_doc, cancel=token)
