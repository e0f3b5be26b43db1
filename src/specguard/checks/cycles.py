"""Cycle detection over the named-schema reference graph.

The registry is treated as a directed graph with an edge ``A -> B`` whenever
``A``'s inline definition references ``B`` anywhere (properties, items,
additionalProperties, composition branches). Traversal is iterative with an
explicit on-stack list, so recursion depth never depends on schema depth, and
every node is expanded at most once.
"""
from __future__ import annotations

import logging
from enum import Enum
from typing import Dict, Iterator, List, Optional, Tuple

from ..core.cancellation import CancellationToken, checkpoint
from ..core.models import CheckResult, CircularReference
from ..spec.model import ComponentRegistry, SpecDocument
from ..spec.refs import iter_schema_refs
from .issues import IssueCollector

logger = logging.getLogger(__name__)

CHECK_NAME = "circular-references"


class _Mark(Enum):
    UNVISITED = 0
    IN_PROGRESS = 1
    DONE = 2


def schema_graph(registry: ComponentRegistry) -> Dict[str, Tuple[str, ...]]:
    """Adjacency list of schema names, edges in first-reference order.

    References to names missing from the registry are left out; the structural
    validator reports those.
    """
    graph: Dict[str, Tuple[str, ...]] = {}
    for name, schema in registry.schemas.items():
        targets: List[str] = []
        for _, ref in iter_schema_refs(schema):
            if ref.section == "schemas" and ref.name in registry.schemas and ref.name not in targets:
                targets.append(ref.name)
        graph[name] = tuple(targets)
    return graph


def find_cycles(
    graph: Dict[str, Tuple[str, ...]],
    cancel: Optional[CancellationToken] = None,
) -> List[Tuple[str, ...]]:
    """Return one chain per back edge found by depth-first traversal.

    A chain is the slice of the active path from the revisited name's first
    occurrence to the current node, inclusive; a self reference gives a
    one-element chain.
    """
    marks = {name: _Mark.UNVISITED for name in graph}
    cycles: List[Tuple[str, ...]] = []

    for start in graph:
        if marks[start] is not _Mark.UNVISITED:
            continue
        on_stack: List[str] = [start]
        frames: List[Iterator[str]] = [iter(graph[start])]
        marks[start] = _Mark.IN_PROGRESS

        while frames:
            checkpoint(cancel, "circular reference detection")
            successor = next(frames[-1], None)
            if successor is None:
                marks[on_stack.pop()] = _Mark.DONE
                frames.pop()
                continue
            state = marks[successor]
            if state is _Mark.IN_PROGRESS:
                cycles.append(tuple(on_stack[on_stack.index(successor):]))
            elif state is _Mark.UNVISITED:
                marks[successor] = _Mark.IN_PROGRESS
                on_stack.append(successor)
                frames.append(iter(graph[successor]))

    return cycles


def detect_cycles(
    document: SpecDocument,
    cancel: Optional[CancellationToken] = None,
) -> Tuple[CheckResult, List[CircularReference]]:
    """Report every structural reference cycle among named schemas.

    Legitimately recursive shapes are reported too; whether a cycle is
    acceptable is for the caller to decide.
    """
    chains = find_cycles(schema_graph(document.components), cancel)
    collector = IssueCollector(document)
    references: List[CircularReference] = []

    for chain in chains:
        description = " -> ".join(chain + (chain[0],))
        root_parts = ("components", "schemas", chain[0])
        reference = CircularReference(
            root_path=".".join(root_parts),
            chain=chain,
            description=f"circular reference: {description}",
        )
        references.append(reference)
        collector.error(root_parts, reference.description)

    summary = f"Circular reference detection: {len(references)} cycle(s) among {len(document.components.schemas)} schema(s)"
    logger.info(summary)
    result = CheckResult.from_issues(
        CHECK_NAME,
        collector.issues,
        summary=summary,
        diagnostics={"cycles": references},
    )
    return result, references


__all__ = ["detect_cycles", "find_cycles", "schema_graph", "CHECK_NAME"]
