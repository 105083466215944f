"""Board topology for the Baghchal intersection graph.

Positions are numbered 0-24, left to right and top to bottom. Every point is
joined orthogonally to its neighbours; diagonal lines are only drawn through
the points whose row and column sum to an even number. For each node we list
the one-hop neighbours together with the landing point used when a tiger jumps
over that neighbour. The move generator reads this table and nothing else.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, FrozenSet, Iterator, List, Optional, Tuple


BOARD_SIZE = 5
NODE_COUNT = BOARD_SIZE * BOARD_SIZE

Position = int


@dataclass(frozen=True)
class Edge:
    """Represents a directed neighbor relationship on the board.

    Attributes
    ----------
    neighbor:
        The adjacent node index that can be reached with a simple step.
    landing:
        The landing node index when jumping over ``neighbor`` to capture a
        goat. ``None`` indicates that the line ends at ``neighbor``.
    diagonal:
        ``True`` when the edge follows one of the drawn diagonal lines.
    """

    neighbor: int
    landing: Optional[int]
    diagonal: bool


DIAGONAL_POINTS: FrozenSet[int] = frozenset({0, 2, 4, 6, 8, 10, 12, 14, 16, 18, 20, 22, 24})


# fmt: off
RAW_ADJACENCY: Dict[int, List[Tuple[int, Optional[int]]]] = {
    0:  [(1, 2), (5, 10), (6, 12)],
    1:  [(0, None), (2, 3), (6, 11)],
    2:  [(1, 0), (3, 4), (6, 10), (7, 12), (8, 14)],
    3:  [(2, 1), (4, None), (8, 13)],
    4:  [(3, 2), (8, 12), (9, 14)],
    5:  [(0, None), (6, 7), (10, 15)],
    6:  [(0, None), (1, None), (2, None), (5, None), (7, 8), (10, None), (11, 16), (12, 18)],
    7:  [(2, None), (6, 5), (8, 9), (12, 17)],
    8:  [(2, None), (3, None), (4, None), (7, 6), (9, None), (12, 16), (13, 18), (14, None)],
    9:  [(4, None), (8, 7), (14, 19)],
    10: [(5, 0), (6, 2), (11, 12), (15, 20), (16, 22)],
    11: [(6, 1), (10, None), (12, 13), (16, 21)],
    12: [(6, 0), (7, 2), (8, 4), (11, 10), (13, 14), (16, 20), (17, 22), (18, 24)],
    13: [(8, 3), (12, 11), (14, None), (18, 23)],
    14: [(8, 2), (9, 4), (13, 12), (18, 22), (19, 24)],
    15: [(10, 5), (16, 17), (20, None)],
    16: [(10, None), (11, 6), (12, 8), (15, None), (17, 18), (20, None), (21, None), (22, None)],
    17: [(12, 7), (16, 15), (18, 19), (22, None)],
    18: [(12, 6), (13, 8), (14, None), (17, 16), (19, None), (22, None), (23, None), (24, None)],
    19: [(14, 9), (18, 17), (24, None)],
    20: [(15, 10), (16, 12), (21, 22)],
    21: [(16, 11), (20, None), (22, 23)],
    22: [(16, 10), (17, 12), (18, 14), (21, 20), (23, 24)],
    23: [(18, 13), (22, 21), (24, None)],
    24: [(18, 12), (19, 14), (23, 22)],
}
# fmt: on


def coordinates(node: int) -> Tuple[int, int]:
    """Return the ``(row, column)`` pair of ``node``."""

    _require_node(node)
    return divmod(node, BOARD_SIZE)


def _require_node(node: int) -> None:
    if node not in RAW_ADJACENCY:
        raise ValueError(f"Unknown node index: {node}")


def _is_diagonal(origin: int, neighbor: int) -> bool:
    return origin // BOARD_SIZE != neighbor // BOARD_SIZE and origin % BOARD_SIZE != neighbor % BOARD_SIZE


def _build_edges() -> Dict[int, Tuple[Edge, ...]]:
    return {
        node: tuple(
            Edge(neighbor=nb, landing=landing, diagonal=_is_diagonal(node, nb))
            for nb, landing in pairs
        )
        for node, pairs in RAW_ADJACENCY.items()
    }


_EDGES = _build_edges()
_ADJACENT = {node: frozenset(edge.neighbor for edge in edges) for node, edges in _EDGES.items()}
_JUMPS = {
    (node, edge.neighbor): edge.landing
    for node, edges in _EDGES.items()
    for edge in edges
    if edge.landing is not None
}


def neighbors(node: int) -> Tuple[Edge, ...]:
    """Return all outgoing edges from ``node`` ordered by neighbor index."""

    try:
        return _EDGES[node]
    except KeyError as exc:
        raise ValueError(f"Unknown node index: {node}") from exc


def adjacent(node: int) -> FrozenSet[int]:
    """Nodes reachable from ``node`` with a single step."""

    _require_node(node)
    return _ADJACENT[node]


def is_diagonal_allowed(node: int) -> bool:
    _require_node(node)
    return node in DIAGONAL_POINTS


def jump_target(origin: int, over: int) -> Optional[int]:
    """Landing point for a jump from ``origin`` over ``over``, if the line continues."""

    _require_node(origin)
    return _JUMPS.get((origin, over))


def all_edges() -> Iterator[Tuple[int, Edge]]:
    """Iterate over every ``(node, edge)`` pair on the board."""

    for node, edges in _EDGES.items():
        for edge in edges:
            yield node, edge
