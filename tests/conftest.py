from __future__ import annotations

import os
from pathlib import Path

# Figures are rendered off-screen during tests.
os.environ.setdefault("MPLBACKEND", "Agg")

import pytest

from graph import Graph


INSTANCE_PATH = Path(__file__).resolve().parent.parent / "delivery_instance.yaml"


@pytest.fixture
def worked_example() -> Graph:
    g = Graph()
    for node in "ABCDE":
        g.add_node(node, f"Point {node}")
    g.add_edge("A", "B", 4)
    g.add_edge("A", "C", 2)
    g.add_edge("B", "C", 1)
    g.add_edge("B", "D", 5)
    g.add_edge("C", "D", 8)
    g.add_edge("C", "E", 10)
    g.add_edge("D", "E", 2)
    return g


@pytest.fixture
def two_metric() -> Graph:
    """Short-but-slow streets via A, long-but-fast highway via B."""
    g = Graph()
    g.add_edge("S", "A", {"distance": 1.0, "time": 10.0})
    g.add_edge("A", "T", {"distance": 1.0, "time": 10.0})
    g.add_edge("S", "B", {"distance": 5.0, "time": 1.0})
    g.add_edge("B", "T", {"distance": 5.0, "time": 1.0})
    return g


@pytest.fixture
def disconnected() -> Graph:
    g = Graph()
    g.add_edge("A", "B", {"distance": 1.0, "time": 2.0})
    g.add_edge("B", "C", {"distance": 1.0, "time": 2.0})
    g.add_edge("X", "Y", {"distance": 3.0, "time": 1.0})
    return g


@pytest.fixture
def instance_path() -> Path:
    return INSTANCE_PATH
