import math

import pytest
import yaml

from graph import (
    DEFAULT_METRIC,
    ConfigError,
    Edge,
    Graph,
    MissingMetricError,
    graph_from_config,
)


def test_add_node_is_idempotent():
    g = Graph()
    g.add_node("A", "Depot")
    g.add_node("A")
    g.add_node("A", "Other")
    assert g.nodes == ["A"]
    assert g.node_name("A") == "Depot"


def test_node_name_falls_back_to_id():
    g = Graph()
    g.add_node("A")
    g.add_node(7)
    assert g.node_name("A") == "A"
    assert g.node_name(7) == "7"


def test_add_edge_creates_nodes_and_is_symmetric():
    g = Graph()
    g.add_edge("A", "B", {"distance": 2.0, "time": 3.0})
    assert "A" in g and "B" in g
    assert g.neighbors("A")["B"] is g.neighbors("B")["A"]
    assert dict(g.neighbors("A")["B"]) == {"distance": 2.0, "time": 3.0}


def test_add_directed_edge_only_touches_origin():
    g = Graph()
    g.add_directed_edge("A", "B", 5)
    assert dict(g.neighbors("A")) == {"B": {DEFAULT_METRIC: 5}}
    assert dict(g.neighbors("B")) == {}
    assert len(g) == 2


def test_readding_edge_overwrites_bundle():
    g = Graph()
    g.add_edge("A", "B", 4)
    g.add_edge("A", "B", 1)
    assert g.neighbors("A")["B"][DEFAULT_METRIC] == 1
    assert g.neighbors("B")["A"][DEFAULT_METRIC] == 1
    assert len(list(g.edges())) == 2


def test_neighbors_of_unknown_node_is_empty():
    g = Graph()
    assert len(g.neighbors("nowhere")) == 0


def test_weight_bundles_are_read_only():
    g = Graph()
    weights = {"distance": 1.0}
    g.add_edge("A", "B", weights)
    weights["distance"] = 99.0
    assert g.neighbors("A")["B"]["distance"] == 1.0
    with pytest.raises(TypeError):
        g.neighbors("A")["B"]["distance"] = 5.0  # type: ignore[index]
    with pytest.raises(TypeError):
        g.neighbors("A")["C"] = {}  # type: ignore[index]


def test_nodes_keep_insertion_order():
    g = Graph(nodes=["C", "A"], edges=[("B", "A", 1)])
    assert g.all_nodes() == ["C", "A", "B"]


def test_directed_property_tracks_one_way_edges():
    g = Graph()
    assert not g.directed
    g.add_edge("A", "B", 1)
    assert not g.directed
    g.add_directed_edge("B", "C", 1)
    assert g.directed

    g = Graph()
    g.add_directed_edge("A", "B", 1)
    g.add_directed_edge("B", "A", 1)
    assert g.directed

    g = Graph()
    g.add_edge("A", "B", 1)
    g.add_directed_edge("A", "B", 2)
    assert g.directed


def test_constructor_directed_edges():
    g = Graph(edges=[("A", "B", 1)], directed=True)
    assert "B" in g.neighbors("A")
    assert "A" not in g.neighbors("B")


def test_metrics_are_common_to_all_edges():
    g = Graph()
    assert g.metrics() == []
    g.add_edge("A", "B", {"time": 1, "distance": 2, "toll": 0})
    g.add_edge("B", "C", {"time": 1, "distance": 2})
    assert g.metrics() == ["distance", "time"]


def test_path_totals(two_metric):
    totals = two_metric.path_totals(["S", "A", "T"], ["distance", "time"])
    assert totals == {"distance": 2.0, "time": 20.0}
    assert two_metric.path_totals(["S"], ["time"]) == {"time": 0.0}


def test_path_totals_rejects_missing_edge(two_metric):
    with pytest.raises(ValueError, match="not present"):
        two_metric.path_totals(["S", "T"], ["time"])


def test_path_totals_rejects_missing_metric(two_metric):
    with pytest.raises(MissingMetricError) as excinfo:
        two_metric.path_totals(["S", "A"], ["toll"])
    assert excinfo.value.metric == "toll"
    assert (excinfo.value.origin, excinfo.value.target) == ("S", "A")


def test_edge_weight_lookup():
    edge = Edge("A", "B", {"time": 4.0})
    assert edge.weight("time") == 4.0
    with pytest.raises(MissingMetricError, match="distance"):
        edge.weight("distance")


def test_graph_from_config_parses_nodes_and_edges():
    config = yaml.safe_load(
        """
        directed: false
        nodes:
          - {id: CD, label: Distribution Centre}
          - R1
        edges:
          - {origin: CD, target: R1, distance: 2.5, time: 7}
          - {origin: R1, target: HO, time: 12, distance: 4, directed: true}
          - [CD, HO, {distance: 9, time: 30}]
        """
    )
    g = graph_from_config(config)
    assert g.nodes == ["CD", "R1", "HO"]
    assert g.node_name("CD") == "Distribution Centre"
    assert g.node_name("R1") == "R1"
    assert dict(g.neighbors("R1")["CD"]) == {"distance": 2.5, "time": 7}
    assert "R1" not in g.neighbors("HO")
    assert g.neighbors("HO")["CD"]["time"] == 30
    assert g.metrics() == ["distance", "time"]


def test_graph_from_config_short_form_uses_default_metric():
    g = graph_from_config({"edges": [["A", "B", 3]]})
    assert g.neighbors("B")["A"] == {DEFAULT_METRIC: 3}


@pytest.mark.parametrize(
    "config, message",
    [
        ([], "must be a mapping"),
        ({"nodes": [{"label": "x"}]}, "no 'id'"),
        ({"nodes": [None]}, "null"),
        ({"edges": [{"origin": "A", "distance": 1}]}, "missing target"),
        ({"edges": [{"origin": "A", "target": "B"}]}, "no metrics"),
        ({"edges": [{"origin": "A", "target": "B", "time": "slow"}]}, "not a number"),
        ({"edges": [{"origin": "A", "target": "B", "time": -1}]}, "non-negative"),
        ({"edges": [{"origin": "A", "target": "B", "time": math.nan}]}, "non-negative"),
        ({"edges": ["A-B"]}, "Cannot interpret"),
        ({"directed": "false", "edges": [["A", "B", 1]]}, "true or false"),
        ({"edges": [{"origin": "A", "target": "B", "time": 1, "directed": "no"}]}, "true or false"),
    ],
)
def test_graph_from_config_rejects_malformed_input(config, message):
    with pytest.raises(ConfigError, match=message):
        graph_from_config(config)


def test_shipped_instance_loads(instance_path):
    with instance_path.open("r", encoding="utf-8") as handle:
        config = yaml.safe_load(handle)
    g = graph_from_config(config["graph"])
    assert len(g) == 14
    assert g.metrics() == ["distance", "time"]
    assert g.node_name("PAU") == "Av. Paulista, 1000"


def test_graph_from_config_directed_flags():
    g = graph_from_config(
        {
            "directed": True,
            "edges": [
                {"origin": "A", "target": "B", "time": 1},
                {"origin": "B", "target": "C", "time": 2, "directed": False},
            ],
        }
    )
    assert "A" not in g.neighbors("B")
    assert "B" in g.neighbors("C")
    assert g.directed
