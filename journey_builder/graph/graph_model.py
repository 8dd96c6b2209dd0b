"""Validated, read-only view of a journey graph."""

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import ValidationError

from journey_builder.models.graph import DependencyEdge, Position, RawEdge, RawNode, Step, StepKind
from journey_builder.utils.exceptions import GraphLoadError

logger = logging.getLogger(__name__)

_GRID_COLUMNS = 3
_GRID_DX = 250
_GRID_DY = 200


def default_position(index: int) -> Position:
    return Position(x=(index % _GRID_COLUMNS) * _GRID_DX, y=(index // _GRID_COLUMNS) * _GRID_DY)


def infer_kind(raw: RawNode) -> StepKind:
    """Explicit type wins, then the embedded component_type hint, else OTHER."""
    for hint in (raw.type, (raw.data or {}).get("component_type")):
        if hint in (StepKind.FORM.value, StepKind.BRANCH.value):
            return StepKind(hint)
        if hint:
            return StepKind.OTHER
    return StepKind.OTHER


class GraphModel:
    def __init__(
        self,
        steps: Iterable[Step],
        edges: Iterable[DependencyEdge],
        warnings: list[str] | None = None,
    ) -> None:
        self._steps: dict[str, Step] = {}
        for step in steps:
            self._steps.setdefault(step.id, step)
        self._edges = tuple(e for e in edges if e.source in self._steps and e.target in self._steps)
        self._incoming: dict[str, list[DependencyEdge]] = {sid: [] for sid in self._steps}
        self._outgoing: dict[str, list[DependencyEdge]] = {sid: [] for sid in self._steps}
        for edge in self._edges:
            self._incoming[edge.target].append(edge)
            self._outgoing[edge.source].append(edge)
        self.warnings: list[str] = list(warnings or [])

    @classmethod
    def from_payload(cls, payload: Any) -> "GraphModel":
        """Normalize a raw ``{nodes, edges}`` payload.

        Structural problems raise GraphLoadError. Per-item problems (nodes
        without an id, missing positions, dangling edges) are recorded as
        warnings and the offending item is repaired or dropped.
        """
        if not isinstance(payload, Mapping):
            raise GraphLoadError("Invalid graph payload", f"expected an object, got {type(payload).__name__}")
        raw_nodes = payload.get("nodes")
        raw_edges = payload.get("edges")
        if not isinstance(raw_nodes, list):
            raise GraphLoadError("Invalid graph payload", "missing 'nodes' array")
        if not isinstance(raw_edges, list):
            raise GraphLoadError("Invalid graph payload", "missing 'edges' array")

        warnings: list[str] = []
        steps: list[Step] = []
        seen: set[str] = set()
        for i, item in enumerate(raw_nodes):
            if not isinstance(item, Mapping) or not item.get("id"):
                warnings.append(f"Node #{i} has no id; dropped")
                continue
            try:
                raw = RawNode.model_validate(item)
            except ValidationError as e:
                warnings.append(f"Node '{item['id']}' is malformed ({e.error_count()} errors); dropped")
                continue
            if raw.id in seen:
                warnings.append(f"Duplicate node id '{raw.id}'; later definition dropped")
                continue
            seen.add(raw.id)

            index = len(steps)
            position = raw.position
            if position is None:
                warnings.append(f"Node '{raw.id}' has no position; assigned default")
                position = default_position(index)
            data = raw.data or {}
            steps.append(
                Step(
                    id=raw.id,
                    kind=infer_kind(raw),
                    display_name=data.get("name") or f"Node {index + 1}",
                    position=position,
                    attributes=data,
                )
            )

        edges: list[DependencyEdge] = []
        for i, item in enumerate(raw_edges):
            try:
                raw_edge = RawEdge.model_validate(item)
            except ValidationError as e:
                warnings.append(f"Edge #{i} is malformed ({e.error_count()} errors); dropped")
                continue
            missing = [ref for ref in (raw_edge.source, raw_edge.target) if ref not in seen]
            if missing:
                warnings.append(
                    f"Edge {raw_edge.source}->{raw_edge.target} references unknown node "
                    f"'{missing[0]}'; dropped"
                )
                continue
            edges.append(
                DependencyEdge(
                    source=raw_edge.source,
                    target=raw_edge.target,
                    id=raw_edge.id or f"e{raw_edge.source}-{raw_edge.target}-{i}",
                )
            )

        for w in warnings:
            logger.warning(w)
        logger.info(f"Loaded graph: {len(steps)} steps, {len(edges)} edges, {len(warnings)} warnings")
        return cls(steps, edges, warnings)

    @property
    def nodes(self) -> tuple[Step, ...]:
        return tuple(self._steps.values())

    @property
    def edges(self) -> tuple[DependencyEdge, ...]:
        return self._edges

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._steps

    def __len__(self) -> int:
        return len(self._steps)

    def get(self, node_id: str) -> Step | None:
        return self._steps.get(node_id)

    def nodes_of_kind(self, kind: StepKind) -> list[Step]:
        return [s for s in self._steps.values() if s.kind == kind]

    def edges_into(self, node_id: str) -> list[DependencyEdge]:
        return list(self._incoming.get(node_id, ()))

    def edges_out_of(self, node_id: str) -> list[DependencyEdge]:
        return list(self._outgoing.get(node_id, ()))

    def with_positions(self, positions: Mapping[str, Position]) -> "GraphModel":
        """Return a new graph whose steps are copies carrying the given positions."""
        steps = [
            s.model_copy(update={"position": positions[s.id]}) if s.id in positions else s
            for s in self._steps.values()
        ]
        return GraphModel(steps, self._edges, self.warnings)

    def to_payload(self) -> dict[str, Any]:
        return {
            "nodes": [
                {
                    "id": s.id,
                    "type": s.kind.value,
                    "position": s.position.model_dump(),
                    "data": {**s.attributes, "name": s.display_name},
                }
                for s in self._steps.values()
            ],
            "edges": [e.model_dump() for e in self._edges],
        }
