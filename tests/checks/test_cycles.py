"""Tests for circular reference detection."""

from __future__ import annotations

import pytest

from specguard.checks.cycles import CHECK_NAME, detect_cycles, find_cycles, schema_graph
from specguard.core.cancellation import CancellationToken
from specguard.exceptions import OperationCancelled
from specguard.spec.loader import load


def _doc(schemas: str):
    return load("openapi: 3.0.3\ninfo: {title: t, version: '1'}\npaths: {}\ncomponents:\n  schemas:\n" + schemas)


def test_mutual_reference_yields_one_two_element_cycle():
    document = _doc(
        """    A:
      type: object
      properties:
        b: {$ref: '#/components/schemas/B'}
    B:
      type: object
      properties:
        a: {$ref: '#/components/schemas/A'}
"""
    )
    result, cycles = detect_cycles(document)
    assert result.name == CHECK_NAME
    assert not result.passed
    assert len(cycles) == 1
    assert sorted(cycles[0].chain) == ["A", "B"]
    assert cycles[0].root_path == "components.schemas.A"
    assert cycles[0].description == "circular reference: A -> B -> A"
    assert [issue.path for issue in result.errors] == ["components.schemas.A"]


def test_self_reference_yields_one_element_chain():
    document = _doc(
        """    Node:
      type: object
      properties:
        children:
          type: array
          items: {$ref: '#/components/schemas/Node'}
"""
    )
    _, cycles = detect_cycles(document)
    assert [cycle.chain for cycle in cycles] == [("Node",)]


def test_acyclic_graph_passes(petstore_doc):
    result, cycles = detect_cycles(petstore_doc)
    assert result.passed
    assert cycles == []
    assert result.diagnostics == {"cycles": []}


def test_references_through_compositions_and_additional_properties_are_edges():
    document = _doc(
        """    A:
      allOf:
        - $ref: '#/components/schemas/B'
    B:
      type: object
      additionalProperties: {$ref: '#/components/schemas/C'}
    C:
      oneOf:
        - type: string
        - $ref: '#/components/schemas/A'
"""
    )
    assert schema_graph(document.components) == {"A": ("B",), "B": ("C",), "C": ("A",)}
    _, cycles = detect_cycles(document)
    assert [cycle.chain for cycle in cycles] == [("A", "B", "C")]


def test_cycle_chain_starts_at_the_revisited_name():
    graph = {"Root": ("A",), "A": ("B",), "B": ("C",), "C": ("A",)}
    assert find_cycles(graph) == [("A", "B", "C")]


def test_missing_targets_are_not_edges():
    document = _doc("    A: {$ref: '#/components/schemas/Missing'}\n")
    assert schema_graph(document.components) == {"A": ()}


def test_every_node_is_expanded_once():
    # diamond: D is reached twice but explored once, and no cycle exists
    graph = {"A": ("B", "C"), "B": ("D",), "C": ("D",), "D": ()}
    assert find_cycles(graph) == []


def test_deep_chains_do_not_hit_the_recursion_limit():
    names = [f"S{index}" for index in range(5000)]
    graph = {name: (names[index + 1],) for index, name in enumerate(names[:-1])}
    graph[names[-1]] = (names[0],)
    cycles = find_cycles(graph)
    assert len(cycles) == 1
    assert len(cycles[0]) == 5000


def test_detection_is_deterministic():
    document = _doc(
        """    A: {properties: {b: {$ref: '#/components/schemas/B'}, self: {$ref: '#/components/schemas/A'}}}
    B: {items: {$ref: '#/components/schemas/A'}}
"""
    )
    first = detect_cycles(document)
    second = detect_cycles(document)
    assert first == second
    assert [cycle.chain for cycle in first[1]] == [("A", "B"), ("A",)]


def test_cancellation_aborts_detection():
    token = CancellationToken()
    token.cancel()
    with pytest.raises(OperationCancelled):
        find_cycles({"A": ("A",)}, token)
