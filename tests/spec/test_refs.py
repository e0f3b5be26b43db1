"""Tests for $ref resolution."""

from __future__ import annotations

import pytest

from specguard.exceptions import UnresolvedReferenceError
from specguard.spec.loader import load
from specguard.spec.model import Reference
from specguard.spec.refs import (
    CYCLE_DETECTED,
    CycleDetected,
    iter_schema_refs,
    iter_schema_sites,
    resolve_deep,
    resolve_shallow,
)

ALIAS_SPEC = """
openapi: 3.0.3
info: {title: t, version: '1'}
paths: {}
components:
  schemas:
    Name: {type: string}
    Alias: {$ref: '#/components/schemas/Name'}
    AliasOfAlias: {$ref: '#/components/schemas/Alias'}
    Ping: {$ref: '#/components/schemas/Pong'}
    Pong: {$ref: '#/components/schemas/Ping'}
    Broken: {$ref: '#/components/schemas/Missing'}
    Remote: {$ref: 'other.yaml#/Pet'}
    Wrong: {$ref: '#/components/parameters/Name'}
"""


@pytest.fixture
def alias_doc():
    return load(ALIAS_SPEC)


def test_reference_parsing_unescapes_pointer_tokens():
    ref = Reference.parse("#/components/schemas/a~1b~0c")
    assert ref.section == "schemas"
    assert ref.name == "a/b~c"
    assert ref.is_local


def test_non_component_reference_is_not_local():
    ref = Reference.parse("other.yaml#/Pet")
    assert not ref.is_local
    assert ref.section is None


def test_shallow_resolution_follows_one_hop(alias_doc):
    registry = alias_doc.components
    resolved = resolve_shallow(registry.schemas["AliasOfAlias"], registry)
    assert resolved is registry.schemas["Alias"]


def test_concrete_node_resolves_to_itself(alias_doc):
    node = alias_doc.components.schemas["Name"]
    assert resolve_shallow(node, alias_doc.components) is node
    assert resolve_deep(node, alias_doc.components) is node


def test_deep_resolution_reaches_the_owned_node_and_records_visits(alias_doc):
    registry = alias_doc.components
    visited = set()
    resolved = resolve_deep(registry.schemas["AliasOfAlias"], registry, visited)
    assert resolved is registry.schemas["Name"]
    assert visited == {"Alias", "Name"}


def test_deep_resolution_returns_cycle_sentinel(alias_doc):
    registry = alias_doc.components
    result = resolve_deep(registry.schemas["Ping"], registry)
    assert result is CYCLE_DETECTED
    assert isinstance(result, CycleDetected)
    assert not result
    assert repr(result) == "CYCLE_DETECTED"


def test_caller_supplied_visited_set_is_honoured(alias_doc):
    registry = alias_doc.components
    assert resolve_deep(registry.schemas["Alias"], registry, {"Name"}) is CYCLE_DETECTED


@pytest.mark.parametrize("name", ["Broken", "Remote", "Wrong"])
def test_unresolvable_references_raise(alias_doc, name):
    with pytest.raises(UnresolvedReferenceError):
        resolve_shallow(alias_doc.components.schemas[name], alias_doc.components)


def test_unresolved_error_names_the_pointer(alias_doc):
    with pytest.raises(UnresolvedReferenceError) as excinfo:
        resolve_deep(alias_doc.components.schemas["Broken"], alias_doc.components)
    assert excinfo.value.pointer == "#/components/schemas/Missing"


def test_resolution_preserves_identity(petstore_doc):
    registry = petstore_doc.components
    items = petstore_doc.paths["/pets"].operations["get"].responses["200"].schema.items
    created = petstore_doc.paths["/pets"].operations["post"].responses["201"].schema
    assert resolve_deep(items, registry) is resolve_deep(created, registry) is registry.schemas["Pet"]


def test_parameter_and_response_refs_resolve_in_their_own_sections(petstore_doc):
    registry = petstore_doc.components
    parameter = petstore_doc.paths["/pets/{petId}"].operations["get"].parameters[0]
    assert resolve_shallow(parameter, registry).name == "petId"
    response = petstore_doc.paths["/pets"].operations["get"].responses["default"]
    assert resolve_shallow(response, registry).description == "Error payload"


def test_schema_refs_and_sites_are_enumerated(petstore_doc):
    refs = list(iter_schema_refs(petstore_doc.paths["/pets"].operations["get"].responses["200"].schema, ("root",)))
    assert refs[0][0] == ("root", "items")
    assert refs[0][1].name == "Pet"
    sites = [site for site, _ in iter_schema_sites(petstore_doc)]
    assert ("components", "schemas", "Pet") in sites
    assert ("paths", "/pets", "get", "parameters", "0", "schema") in sites
