"""Layered top-down / left-right layout for the canvas.

Ranks come from a Kahn-style topological pass (a step sits one rank below
its deepest predecessor). Steps left over by a cycle go on a final rank.
"""

from collections import deque
from collections.abc import Sequence
from enum import Enum

from journey_builder.models.graph import DependencyEdge, Position, Step

NODE_WIDTH = 180
NODE_HEIGHT = 80
NODE_SEP = 80
RANK_SEP = 100


class Direction(str, Enum):
    TOP_BOTTOM = "TB"
    LEFT_RIGHT = "LR"


def rank_steps(steps: Sequence[Step], edges: Sequence[DependencyEdge]) -> dict[str, int]:
    order = {s.id: i for i, s in enumerate(steps)}
    in_degree: dict[str, int] = {s.id: 0 for s in steps}
    adj: dict[str, list[str]] = {s.id: [] for s in steps}

    for source, target in {(e.source, e.target) for e in edges}:
        if source not in adj or target not in adj or source == target:
            continue
        adj[source].append(target)
        in_degree[target] += 1

    queue = deque(sorted((s_id for s_id, deg in in_degree.items() if deg == 0), key=order.get))
    rank: dict[str, int] = {s_id: 0 for s_id in queue}

    while queue:
        node = queue.popleft()
        for neighbor in sorted(adj[node], key=order.get):
            rank[neighbor] = max(rank.get(neighbor, 0), rank[node] + 1)
            in_degree[neighbor] -= 1
            if in_degree[neighbor] == 0:
                queue.append(neighbor)

    leftover_rank = max((r for s_id, r in rank.items() if in_degree[s_id] == 0), default=-1) + 1
    for s in steps:
        if in_degree[s.id] > 0:
            rank[s.id] = leftover_rank
    return rank


def layout(
    steps: Sequence[Step],
    edges: Sequence[DependencyEdge],
    direction: Direction | str = Direction.TOP_BOTTOM,
) -> list[Step]:
    """Return positioned copies of *steps*; the inputs are left untouched."""
    if not steps:
        return []
    direction = Direction(direction)
    rank = rank_steps(steps, edges)

    rows: dict[int, list[str]] = {}
    for s in steps:
        rows.setdefault(rank[s.id], []).append(s.id)

    positions: dict[str, Position] = {}
    for r, members in rows.items():
        across = len(members)
        for i, step_id in enumerate(members):
            # centres, then shifted to the top-left corner the canvas expects
            offset = (i - (across - 1) / 2) * (
                (NODE_WIDTH if direction == Direction.TOP_BOTTOM else NODE_HEIGHT) + NODE_SEP
            )
            depth = r * ((NODE_HEIGHT if direction == Direction.TOP_BOTTOM else NODE_WIDTH) + RANK_SEP)
            if direction == Direction.TOP_BOTTOM:
                x, y = offset, depth
            else:
                x, y = depth, offset
            positions[step_id] = Position(x=x - NODE_WIDTH / 2, y=y - NODE_HEIGHT / 2)

    return [s.model_copy(update={"position": positions[s.id]}) for s in steps]
