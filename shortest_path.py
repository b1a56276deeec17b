from __future__ import annotations

import math
from dataclasses import dataclass
from heapq import heappop, heappush
from typing import Dict, List, Optional, Set, Tuple

from graph import DEFAULT_METRIC, Edge, Graph, NodeId, UnknownNodeError
from log_config import get_logger


logger = get_logger(__name__)

STRATEGIES = ("scan", "heap")

Distances = Dict[NodeId, float]
Predecessors = Dict[NodeId, Optional[NodeId]]


@dataclass(frozen=True)
class SearchRequest:
    """Which metric to minimise and whether to stop once ``target`` is settled.

    ``strategy`` picks how the next node is selected: ``"scan"`` walks all
    unvisited nodes (O(V^2) overall), ``"heap"`` uses a binary heap
    (O((V+E) log V)). Both break ties by graph insertion order and therefore
    produce identical tables.
    """

    criterion: str = DEFAULT_METRIC
    target: Optional[NodeId] = None
    strategy: str = "scan"

    def __post_init__(self) -> None:
        if self.strategy not in STRATEGIES:
            raise ValueError(
                f"Unknown strategy {self.strategy!r}; expected one of {', '.join(STRATEGIES)}."
            )


def compute_shortest_paths(
    graph: Graph, source: NodeId, request: SearchRequest = SearchRequest()
) -> Tuple[Distances, Predecessors]:
    """Compute single-source shortest paths using Dijkstra.

    distances[v] stores the best-known cost from source to v under
    ``request.criterion`` (``math.inf`` when unreachable) and predecessors[v]
    remembers the previous node along that path (``None`` for the source).

    When ``request.target`` is set the search stops as soon as the target is
    selected; entries for nodes that were not settled by then are tentative.
    """
    if source not in graph:
        raise UnknownNodeError(source)

    nodes = graph.nodes
    distances: Distances = {node: math.inf for node in nodes}
    predecessors: Predecessors = {node: None for node in nodes}
    distances[source] = 0.0

    logger.debug(
        "Searching from %s by %s (target=%s, strategy=%s)",
        graph.node_name(source),
        request.criterion,
        request.target,
        request.strategy,
    )

    if request.strategy == "heap":
        _run_heap(graph, source, nodes, distances, predecessors, request)
    else:
        _run_scan(graph, nodes, distances, predecessors, request)
    return distances, predecessors


def _relax(
    graph: Graph,
    current: NodeId,
    visited: Set[NodeId],
    distances: Distances,
    predecessors: Predecessors,
    criterion: str,
) -> List[Tuple[NodeId, float]]:
    """Relax the edges leaving ``current`` and return the neighbors that improved."""
    improved: List[Tuple[NodeId, float]] = []
    base = distances[current]
    for neighbor, weights in graph.neighbors(current).items():
        if neighbor in visited:
            continue
        candidate = base + Edge(current, neighbor, weights).weight(criterion)
        if candidate < distances[neighbor]:
            logger.debug(
                "  %s: %s -> %s (via %s)",
                graph.node_name(neighbor),
                distances[neighbor],
                candidate,
                graph.node_name(current),
            )
            distances[neighbor] = candidate
            predecessors[neighbor] = current
            improved.append((neighbor, candidate))
    return improved


def _run_scan(
    graph: Graph,
    nodes: List[NodeId],
    distances: Distances,
    predecessors: Predecessors,
    request: SearchRequest,
) -> None:
    unvisited = list(nodes)
    visited: Set[NodeId] = set()

    while unvisited:
        # Strict comparison keeps the earliest inserted node on ties.
        best_index = -1
        best_distance = math.inf
        for index, node in enumerate(unvisited):
            if distances[node] < best_distance:
                best_distance = distances[node]
                best_index = index
        if best_index < 0:
            break

        current = unvisited[best_index]
        logger.debug("Visiting %s at %s", graph.node_name(current), best_distance)
        if request.target is not None and current == request.target:
            break

        del unvisited[best_index]
        visited.add(current)
        _relax(graph, current, visited, distances, predecessors, request.criterion)


def _run_heap(
    graph: Graph,
    source: NodeId,
    nodes: List[NodeId],
    distances: Distances,
    predecessors: Predecessors,
    request: SearchRequest,
) -> None:
    order = {node: index for index, node in enumerate(nodes)}
    visited: Set[NodeId] = set()
    queue: List[Tuple[float, int, NodeId]] = [(0.0, order[source], source)]

    while queue:
        distance_u, _, u = heappop(queue)
        if u in visited or distance_u > distances[u]:
            continue

        logger.debug("Visiting %s at %s", graph.node_name(u), distance_u)
        if request.target is not None and u == request.target:
            break

        visited.add(u)
        for v, candidate in _relax(graph, u, visited, distances, predecessors, request.criterion):
            heappush(queue, (candidate, order[v], v))


def reconstruct_path(
    predecessors: Predecessors, source: NodeId, destination: NodeId
) -> List[NodeId]:
    """Walk the predecessor map back from ``destination``.

    Returns the full route ``[source, ..., destination]`` or an empty list
    when the walk does not end at ``source``.
    """
    if source == destination:
        return [source]

    path: List[NodeId] = []
    current: Optional[NodeId] = destination
    seen: Set[NodeId] = set()
    while current is not None and current not in seen:
        seen.add(current)
        path.append(current)
        current = predecessors.get(current)
    path.reverse()

    if not path or path[0] != source:
        return []
    return path
