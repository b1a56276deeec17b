from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

import matplotlib.pyplot as plt
import networkx as nx

from graph import Graph, NodeId
from routing import RouteResult


def build_networkx_graph(graph: Graph, directed: Optional[bool] = None) -> nx.Graph:
    if directed is None:
        directed = graph.directed
    g = nx.DiGraph() if directed else nx.Graph()
    for node in graph.nodes:
        g.add_node(node, label=graph.node_name(node))
    for edge in graph.edges():
        g.add_edge(edge.origin, edge.target, **dict(edge.weights))
    return g


def compute_layout(graph: nx.Graph) -> Dict[NodeId, Tuple[float, float]]:
    return nx.spring_layout(graph, seed=42)


def route_edges(path: Sequence[NodeId]) -> List[Tuple[NodeId, NodeId]]:
    return list(zip(path[:-1], path[1:]))


def draw_route_figure(
    graph: Graph,
    route: RouteResult,
    output: Path | None = None,
    show: bool = False,
) -> None:
    """Draw the graph with ``route`` highlighted and its totals alongside."""
    graph_nx = build_networkx_graph(graph)
    layout = compute_layout(graph_nx)
    fig, ax = plt.subplots(figsize=(10, 8))

    nx.draw_networkx_edges(graph_nx, layout, ax=ax, edge_color="lightgray", width=1.0)

    highlighted = route_edges(route.path)
    if highlighted:
        nx.draw_networkx_edges(
            graph_nx,
            layout,
            edgelist=highlighted,
            edge_color="#d62728",
            width=2.5,
            ax=ax,
        )

    on_route = set(route.path)
    node_colors = [
        "#ff7f0e" if node in on_route else "#9ecae1" for node in graph_nx.nodes
    ]
    nx.draw_networkx_nodes(graph_nx, layout, node_color=node_colors, node_size=600, ax=ax)

    labels = {node: data["label"] for node, data in graph_nx.nodes(data=True)}
    nx.draw_networkx_labels(graph_nx, layout, labels=labels, font_size=9, ax=ax)

    edge_labels = {
        (u, v): data.get(route.criterion, "")
        for u, v, data in graph_nx.edges(data=True)
    }
    nx.draw_networkx_edge_labels(graph_nx, layout, edge_labels=edge_labels, font_size=8, ax=ax)

    summary_lines = [
        f"From: {graph.node_name(route.origin)}",
        f"To: {graph.node_name(route.destination)}",
        f"Optimised by: {route.criterion}",
    ]
    summary_lines.extend(
        f"{metric.capitalize()}: {value:g}" for metric, value in route.totals.items()
    )
    summary_lines.append(f"Hops: {route.hops}")
    ax.text(
        1.02,
        0.5,
        "\n".join(summary_lines),
        transform=ax.transAxes,
        va="center",
        fontsize=10,
        bbox=dict(facecolor="white", alpha=0.8, boxstyle="round"),
    )

    ax.set_axis_off()
    ax.set_title("Route Plan – Overview")

    if output:
        fig.savefig(output, bbox_inches="tight")
    if show:
        plt.show()
    else:
        plt.close(fig)
