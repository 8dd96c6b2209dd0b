"""Which form steps may supply prefill data to a given step."""

import logging

from journey_builder.graph.graph_model import GraphModel
from journey_builder.models.catalog import DependencySummary
from journey_builder.models.graph import StepKind

logger = logging.getLogger(__name__)


def direct_dependencies(graph: GraphModel, target_id: str) -> list[str]:
    """Form steps with an edge straight into *target_id*, in edge order, deduplicated."""
    result: list[str] = []
    seen: set[str] = set()
    for edge in graph.edges_into(target_id):
        source_id = edge.source
        if source_id == target_id or source_id in seen:
            continue
        source = graph.get(source_id)
        if source is None or source.kind != StepKind.FORM:
            continue
        seen.add(source_id)
        result.append(source_id)
    return result


def transitive_dependencies(graph: GraphModel, target_id: str) -> list[str]:
    """All form steps reachable backwards from *target_id*, depth-first, in discovery order.

    The target is never part of the result. Cycles are cut by the visited set.
    """
    target = graph.get(target_id)
    if target is not None and target.kind != StepKind.FORM:
        logger.debug(f"Resolving dependencies for non-form step '{target_id}' ({target.kind.value})")

    visited = {target_id}
    result: list[str] = []
    stack = list(reversed(direct_dependencies(graph, target_id)))
    while stack:
        node_id = stack.pop()
        if node_id in visited:
            continue
        visited.add(node_id)
        result.append(node_id)
        stack.extend(reversed(direct_dependencies(graph, node_id)))
    return result


def resolve(graph: GraphModel, target_id: str) -> DependencySummary:
    direct = direct_dependencies(graph, target_id)
    direct_set = set(direct)
    transitive_only = [d for d in transitive_dependencies(graph, target_id) if d not in direct_set]
    return DependencySummary(direct=direct, transitive=transitive_only)
