from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence

from graph import Graph, NodeId, UnknownNodeError
from log_config import get_logger
from shortest_path import (
    Distances,
    Predecessors,
    SearchRequest,
    compute_shortest_paths,
    reconstruct_path,
)


logger = get_logger(__name__)


class RouteStatus(str, Enum):
    FOUND = "found"
    UNREACHABLE = "unreachable"
    UNKNOWN_NODE = "unknown_node"


@dataclass
class RouteResult:
    """A route between two nodes and what it costs.

    Only ``totals[criterion]`` (also exposed as ``cost``) is guaranteed to be
    minimal. The other totals are the cost of this particular route under
    their metric; optimising for that metric instead may find a cheaper one.
    """

    origin: NodeId
    destination: NodeId
    criterion: str
    path: List[NodeId] = field(default_factory=list)
    totals: Dict[str, float] = field(default_factory=dict)
    status: RouteStatus = RouteStatus.FOUND

    @property
    def cost(self) -> float:
        return self.totals.get(self.criterion, math.inf)

    @property
    def reachable(self) -> bool:
        return self.status is RouteStatus.FOUND

    @property
    def hops(self) -> int:
        return max(len(self.path) - 1, 0)


@dataclass(frozen=True)
class RouteSummary:
    criterion: str
    reachable: int
    unreachable: int
    total_cost: float
    mean_cost: float
    totals: Dict[str, float]


def _route_metrics(graph: Graph, criterion: str, metrics: Optional[Iterable[str]]) -> List[str]:
    names = list(graph.metrics() if metrics is None else metrics)
    if criterion not in names:
        names.insert(0, criterion)
    return names


def _unreachable(
    origin: NodeId,
    destination: NodeId,
    criterion: str,
    metrics: Sequence[str],
    status: RouteStatus = RouteStatus.UNREACHABLE,
) -> RouteResult:
    return RouteResult(
        origin=origin,
        destination=destination,
        criterion=criterion,
        path=[],
        totals={metric: math.inf for metric in metrics},
        status=status,
    )


def _build_route(
    graph: Graph,
    predecessors: Predecessors,
    origin: NodeId,
    destination: NodeId,
    criterion: str,
    metrics: Sequence[str],
) -> RouteResult:
    path = reconstruct_path(predecessors, origin, destination)
    if not path:
        return _unreachable(origin, destination, criterion, metrics)

    # Every metric, the optimised one included, is re-summed along the path.
    totals = graph.path_totals(path, metrics)
    return RouteResult(
        origin=origin,
        destination=destination,
        criterion=criterion,
        path=path,
        totals=totals,
    )


def find_route(
    graph: Graph,
    origin: NodeId,
    destination: NodeId,
    criterion: str,
    metrics: Optional[Iterable[str]] = None,
    strategy: str = "scan",
) -> Optional[RouteResult]:
    """Find the route from ``origin`` to ``destination`` minimising ``criterion``.

    Returns ``None`` when either endpoint is not part of the graph. An
    unreachable destination yields a result with status ``UNREACHABLE``.
    """
    if origin not in graph or destination not in graph:
        logger.info("Route %s -> %s requested for unknown node", origin, destination)
        return None

    metric_names = _route_metrics(graph, criterion, metrics)
    if origin == destination:
        return RouteResult(
            origin=origin,
            destination=destination,
            criterion=criterion,
            path=[origin],
            totals={metric: 0.0 for metric in metric_names},
        )

    request = SearchRequest(criterion=criterion, target=destination, strategy=strategy)
    _, predecessors = compute_shortest_paths(graph, origin, request)
    route = _build_route(graph, predecessors, origin, destination, criterion, metric_names)
    logger.debug(
        "Route %s -> %s by %s: %s", origin, destination, criterion, route.totals
    )
    return route


def _routes_from_tree(
    graph: Graph,
    distances: Distances,
    predecessors: Predecessors,
    origin: NodeId,
    destinations: Iterable[NodeId],
    criterion: str,
    metrics: Sequence[str],
) -> List[RouteResult]:
    routes: List[RouteResult] = []
    for destination in destinations:
        if destination not in graph:
            routes.append(
                _unreachable(origin, destination, criterion, metrics, RouteStatus.UNKNOWN_NODE)
            )
            continue
        route = _build_route(graph, predecessors, origin, destination, criterion, metrics)
        if route.reachable and not math.isclose(
            route.cost, distances[destination], rel_tol=1e-9, abs_tol=1e-9
        ):
            raise RuntimeError(
                f"Route cost {route.cost} for {destination} disagrees with "
                f"computed distance {distances[destination]}."
            )
        routes.append(route)
    return routes


def plan_routes(
    graph: Graph,
    origin: NodeId,
    destinations: Sequence[NodeId],
    criterion: str,
    metrics: Optional[Iterable[str]] = None,
    strategy: str = "scan",
) -> List[RouteResult]:
    """Plan one route per destination from a single shortest-path computation.

    Results follow the order of ``destinations``. Unknown or unreachable
    destinations get a result with the matching status instead of an error.
    """
    if origin not in graph:
        raise UnknownNodeError(origin)

    metric_names = _route_metrics(graph, criterion, metrics)
    request = SearchRequest(criterion=criterion, strategy=strategy)
    distances, predecessors = compute_shortest_paths(graph, origin, request)
    routes = _routes_from_tree(
        graph, distances, predecessors, origin, destinations, criterion, metric_names
    )
    logger.info(
        "Planned %d route(s) from %s by %s, %d reachable",
        len(routes),
        origin,
        criterion,
        sum(1 for route in routes if route.reachable),
    )
    return routes


def rank_destinations(
    graph: Graph,
    origin: NodeId,
    criterion: str,
    metrics: Optional[Iterable[str]] = None,
    strategy: str = "scan",
) -> List[RouteResult]:
    """Routes from ``origin`` to every other node, cheapest first.

    Unreachable nodes come last, in graph order.
    """
    destinations = [node for node in graph.nodes if node != origin]
    routes = plan_routes(graph, origin, destinations, criterion, metrics, strategy)
    return sorted(routes, key=lambda route: (not route.reachable, route.cost))


def summarize_routes(routes: Sequence[RouteResult]) -> RouteSummary:
    """Aggregate the reachable routes of a delivery plan."""
    if not routes:
        raise ValueError("Cannot summarise an empty list of routes.")

    criterion = routes[0].criterion
    reachable = [route for route in routes if route.reachable]
    totals: Dict[str, float] = {}
    for route in reachable:
        for metric, value in route.totals.items():
            totals[metric] = totals.get(metric, 0.0) + value

    total_cost = totals.get(criterion, 0.0)
    mean_cost = total_cost / len(reachable) if reachable else math.inf
    return RouteSummary(
        criterion=criterion,
        reachable=len(reachable),
        unreachable=len(routes) - len(reachable),
        total_cost=total_cost,
        mean_cost=mean_cost,
        totals=totals,
    )
