from __future__ import annotations

import math
from dataclasses import dataclass
from numbers import Real
from types import MappingProxyType
from typing import Dict, Hashable, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple, Union


NodeId = Hashable
WeightBundle = Mapping[str, float]
WeightSpec = Union[Mapping[str, float], float, int]

DEFAULT_METRIC = "weight"

_EMPTY_ADJACENCY: Mapping[NodeId, WeightBundle] = MappingProxyType({})
_EDGE_KEYS = {"origin", "target", "directed"}


class UnknownNodeError(KeyError):
    """Raised when a computation refers to a node the graph does not hold."""

    def __init__(self, node: NodeId) -> None:
        super().__init__(node)
        self.node = node

    def __str__(self) -> str:
        return f"Unknown node: {self.node!r}"


class MissingMetricError(KeyError):
    """Raised when an edge lacks the metric a computation needs."""

    def __init__(self, metric: str, origin: NodeId, target: NodeId) -> None:
        super().__init__(metric)
        self.metric = metric
        self.origin = origin
        self.target = target

    def __str__(self) -> str:
        return (
            f"Edge {self.origin!r}->{self.target!r} has no {self.metric!r} metric."
        )


class ConfigError(ValueError):
    """Raised when a graph description cannot be turned into a Graph."""


def make_weights(weights: WeightSpec) -> WeightBundle:
    """Freeze a weight bundle; a bare number becomes ``{DEFAULT_METRIC: value}``."""
    if isinstance(weights, Real):
        return MappingProxyType({DEFAULT_METRIC: weights})
    return MappingProxyType(dict(weights))


@dataclass(frozen=True)
class Edge:
    origin: NodeId
    target: NodeId
    weights: WeightBundle

    def weight(self, metric: str) -> float:
        try:
            return self.weights[metric]
        except KeyError:
            raise MissingMetricError(metric, self.origin, self.target) from None


class Graph:
    """Weighted graph whose edges carry one or more named metrics.

    Nodes keep their insertion order, which is also the order the
    shortest-path engine uses to break ties between equally distant nodes.
    Edges added through ``add_edge`` appear in both endpoints' adjacencies
    with the same bundle; ``add_directed_edge`` only touches the origin.
    """

    def __init__(
        self,
        nodes: Iterable[NodeId] = (),
        edges: Iterable[Tuple[NodeId, NodeId, WeightSpec]] = (),
        directed: bool = False,
    ) -> None:
        self._adjacency: Dict[NodeId, Dict[NodeId, WeightBundle]] = {}
        self._labels: Dict[NodeId, str] = {}

        for node in nodes:
            self.add_node(node)
        for origin, target, weights in edges:
            if directed:
                self.add_directed_edge(origin, target, weights)
            else:
                self.add_edge(origin, target, weights)

    def add_node(self, node: NodeId, label: Optional[str] = None) -> None:
        if node not in self._adjacency:
            self._adjacency[node] = {}
        if label is not None and node not in self._labels:
            self._labels[node] = label

    def add_edge(self, a: NodeId, b: NodeId, weights: WeightSpec) -> None:
        bundle = make_weights(weights)
        self.add_node(a)
        self.add_node(b)
        self._adjacency[a][b] = bundle
        self._adjacency[b][a] = bundle

    def add_directed_edge(self, origin: NodeId, target: NodeId, weights: WeightSpec) -> None:
        bundle = make_weights(weights)
        self.add_node(origin)
        self.add_node(target)
        self._adjacency[origin][target] = bundle

    def neighbors(self, node: NodeId) -> Mapping[NodeId, WeightBundle]:
        adjacency = self._adjacency.get(node)
        if adjacency is None:
            return _EMPTY_ADJACENCY
        return MappingProxyType(adjacency)

    @property
    def nodes(self) -> List[NodeId]:
        return list(self._adjacency)

    def all_nodes(self) -> List[NodeId]:
        return self.nodes

    def node_name(self, node: NodeId) -> str:
        return self._labels.get(node, str(node))

    def __contains__(self, node: object) -> bool:
        return node in self._adjacency

    def __len__(self) -> int:
        return len(self._adjacency)

    def __repr__(self) -> str:
        edge_count = sum(len(adjacency) for adjacency in self._adjacency.values())
        return f"Graph(nodes={len(self)}, adjacency_entries={edge_count})"

    def edges(self) -> Iterator[Edge]:
        """Yield every stored adjacency entry; undirected edges appear twice."""
        for origin, adjacency in self._adjacency.items():
            for target, weights in adjacency.items():
                yield Edge(origin, target, weights)

    @property
    def directed(self) -> bool:
        """True when some edge is not mirrored by the same bundle in the other direction."""
        for origin, adjacency in self._adjacency.items():
            for target, weights in adjacency.items():
                if self._adjacency[target].get(origin) is not weights:
                    return True
        return False

    def edge_weights(self, origin: NodeId, target: NodeId) -> Optional[WeightBundle]:
        return self._adjacency.get(origin, {}).get(target)

    def metrics(self) -> List[str]:
        """Return the metric names carried by every edge of the graph."""
        common: Optional[set] = None
        for edge in self.edges():
            keys = set(edge.weights)
            common = keys if common is None else common & keys
        return sorted(common) if common else []

    def path_totals(self, path: Sequence[NodeId], metrics: Iterable[str]) -> Dict[str, float]:
        """Return the total of each metric when walking along the given node sequence."""
        metric_names = list(metrics)
        totals = {metric: 0.0 for metric in metric_names}
        if len(path) < 2:
            return totals

        for u, v in zip(path[:-1], path[1:]):
            weights = self.edge_weights(u, v)
            if weights is None:
                raise ValueError(f"Edge {u}-{v} not present in graph.")
            edge = Edge(u, v, weights)
            for metric in metric_names:
                totals[metric] += edge.weight(metric)
        return totals


def _parse_node(entry) -> Tuple[NodeId, Optional[str]]:
    if isinstance(entry, Mapping):
        if "id" not in entry:
            raise ConfigError(f"Node entry {entry!r} has no 'id'.")
        label = entry.get("label")
        return entry["id"], None if label is None else str(label)
    if entry is None:
        raise ConfigError("Node ids must not be null.")
    return entry, None


def _parse_flag(value, where: str) -> bool:
    if not isinstance(value, bool):
        raise ConfigError(f"'directed' on {where} must be true or false, got {value!r}.")
    return value


def _parse_edge(entry, default_directed: bool) -> Tuple[NodeId, NodeId, Dict[str, float], bool]:
    if isinstance(entry, Mapping):
        missing = [key for key in ("origin", "target") if entry.get(key) is None]
        if missing:
            raise ConfigError(f"Edge entry {entry!r} is missing {', '.join(missing)}.")
        weights = {key: value for key, value in entry.items() if key not in _EDGE_KEYS}
        origin, target = entry["origin"], entry["target"]
        directed = _parse_flag(entry.get("directed", default_directed), f"edge {origin}-{target}")
    elif isinstance(entry, Sequence) and not isinstance(entry, str) and len(entry) == 3:
        # Short form: [origin, target, cost] or [origin, target, {metric: value}].
        origin, target, raw = entry
        weights = dict(raw) if isinstance(raw, Mapping) else {DEFAULT_METRIC: raw}
        directed = default_directed
    else:
        raise ConfigError(f"Cannot interpret edge entry {entry!r}.")

    if not weights:
        raise ConfigError(f"Edge {origin}-{target} carries no metrics.")
    for metric, value in weights.items():
        if isinstance(value, bool) or not isinstance(value, Real):
            raise ConfigError(f"Metric {metric!r} on edge {origin}-{target} is not a number.")
        if value < 0 or math.isnan(value):
            raise ConfigError(
                f"Metric {metric!r} on edge {origin}-{target} must be non-negative, got {value}."
            )
    return origin, target, weights, directed


def graph_from_config(graph_config: Mapping) -> Graph:
    """Build a Graph from the ``graph`` section of an instance file."""
    if not isinstance(graph_config, Mapping):
        raise ConfigError("The 'graph' section must be a mapping.")

    default_directed = _parse_flag(graph_config.get("directed", False), "graph")
    graph = Graph()
    for entry in graph_config.get("nodes") or []:
        node, label = _parse_node(entry)
        graph.add_node(node, label)

    for entry in graph_config.get("edges") or []:
        origin, target, weights, directed = _parse_edge(entry, default_directed)
        if directed:
            graph.add_directed_edge(origin, target, weights)
        else:
            graph.add_edge(origin, target, weights)
    return graph
