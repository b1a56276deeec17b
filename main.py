from __future__ import annotations

import argparse
import logging
import math
import sys
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Sequence

import yaml

from graph import ConfigError, Graph, MissingMetricError, UnknownNodeError, graph_from_config
from log_config import get_logger, setup_logging
from routing import (
    RouteResult,
    find_route,
    plan_routes,
    rank_destinations,
    summarize_routes,
)


logger = get_logger(__name__)


def load_config(path: Path) -> Dict:
    with path.open("r", encoding="utf-8") as handle:
        config = yaml.safe_load(handle)
    if not isinstance(config, dict) or "graph" not in config:
        raise ConfigError(f"{path} does not contain a 'graph' section.")
    return config


def format_value(value: float) -> str:
    if math.isinf(value):
        return "N/A"
    return f"{value:g}"


def format_totals(totals: Mapping[str, float]) -> str:
    return ", ".join(f"{metric} {format_value(value)}" for metric, value in totals.items())


def format_path(graph: Graph, path: Sequence) -> str:
    return " -> ".join(graph.node_name(node) for node in path)


def print_route(graph: Graph, route: RouteResult) -> None:
    print(f"Origin:      {graph.node_name(route.origin)} ({route.origin})")
    print(f"Destination: {graph.node_name(route.destination)} ({route.destination})")
    print(f"Optimised by {route.criterion}")
    if not route.reachable:
        print(f"No route: {route.status.value}")
        return

    print(f"Totals: {format_totals(route.totals)}")
    print("Route:")
    print(f"  {graph.node_name(route.path[0])} ({route.path[0]})")
    for u, v in zip(route.path[:-1], route.path[1:]):
        segment = graph.edge_weights(u, v)
        print(f"    | {format_totals(segment)}")
        print(f"  {graph.node_name(v)} ({v})")


def print_plan(graph: Graph, routes: List[RouteResult]) -> None:
    origin = routes[0].origin
    print(f"=== Deliveries from {graph.node_name(origin)} ({len(routes)} stops) ===")
    for idx, route in enumerate(routes, start=1):
        print(f"{idx}. {graph.node_name(route.destination)}")
        if route.reachable:
            print(f"   {format_totals(route.totals)}")
            print(f"   Route: {format_path(graph, route.path)}")
        else:
            print(f"   No route: {route.status.value}")

    summary = summarize_routes(routes)
    print()
    print(
        f"Total {summary.criterion}: {format_value(summary.total_cost)} "
        f"over {summary.reachable} reachable stop(s)"
    )
    print(f"Mean {summary.criterion} per stop: {format_value(summary.mean_cost)}")
    if summary.unreachable:
        print(f"Unreachable stops: {summary.unreachable}")


def print_comparison(graph: Graph, routes: Dict[str, Optional[RouteResult]]) -> None:
    print("=== Route per optimisation criterion ===")
    for criterion, route in routes.items():
        if route is None or not route.reachable:
            print(f"[{criterion}] no route")
            continue
        print(f"[{criterion}] {format_path(graph, route.path)}")
        print(f"    {format_totals(route.totals)}")


def print_ranking(graph: Graph, routes: List[RouteResult]) -> None:
    criterion = routes[0].criterion if routes else ""
    print(f"{'Destination':<35}{criterion.capitalize():<10}Route")
    print("-" * 70)
    for route in routes:
        print(
            f"{graph.node_name(route.destination):<35}"
            f"{format_value(route.cost):<10}"
            f"{format_path(graph, route.path)}"
        )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Find optimal delivery routes on a weighted multi-metric graph."
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=Path("delivery_instance.yaml"),
        help="Path to the YAML instance configuration.",
    )
    parser.add_argument("--origin", help="Start node (overrides routing.origin).")
    parser.add_argument(
        "--destination",
        action="append",
        dest="destinations",
        help="Destination node; repeat for several deliveries.",
    )
    parser.add_argument("--criterion", help="Metric to minimise (overrides routing.criterion).")
    parser.add_argument(
        "--strategy",
        choices=("scan", "heap"),
        help="Node selection strategy (overrides routing.strategy).",
    )
    parser.add_argument(
        "--compare",
        action="store_true",
        help="Show the route obtained by optimising each metric in turn.",
    )
    parser.add_argument(
        "--rank",
        action="store_true",
        help="List every destination sorted by cost from the origin.",
    )
    parser.add_argument(
        "--plot",
        type=Path,
        help="Save a figure of the graph with the first route highlighted.",
    )
    parser.add_argument("--verbose", action="store_true", help="Log the search step by step.")
    return parser


def run(args: argparse.Namespace) -> int:
    config = load_config(args.config)
    graph = graph_from_config(config["graph"])
    routing_config = config.get("routing") or {}

    origin = args.origin or routing_config.get("origin")
    destinations = args.destinations or list(routing_config.get("destinations") or [])
    criterion = args.criterion or routing_config.get("criterion")
    strategy = args.strategy or routing_config.get("strategy", "scan")

    if origin is None:
        raise ConfigError("No origin given on the command line or in routing.origin.")
    if criterion is None:
        metrics = graph.metrics()
        if not metrics:
            raise ConfigError("The graph has no metric common to all edges.")
        criterion = metrics[0]
    logger.info("Loaded %r from %s; criterion %s", graph, args.config, criterion)

    routes: List[RouteResult] = []
    if args.rank:
        routes = rank_destinations(graph, origin, criterion, strategy=strategy)
        print_ranking(graph, routes)
    elif len(destinations) > 1:
        routes = plan_routes(graph, origin, destinations, criterion, strategy=strategy)
        print_plan(graph, routes)
    elif destinations:
        route = find_route(graph, origin, destinations[0], criterion, strategy=strategy)
        if route is None:
            unknown = origin if origin not in graph else destinations[0]
            raise UnknownNodeError(unknown)
        routes = [route]
        print_route(graph, route)
        if args.compare:
            print()
            print_comparison(
                graph,
                {
                    metric: find_route(graph, origin, destinations[0], metric, strategy=strategy)
                    for metric in graph.metrics()
                },
            )
    else:
        raise ConfigError("No destination given and --rank not requested.")

    if args.plot:
        from visualize import draw_route_figure

        shown = next((route for route in routes if route.reachable), None)
        if shown is None:
            raise RuntimeError("Plot requested but no reachable route was produced.")
        draw_route_figure(graph, shown, output=args.plot, show=False)
        print(f"Figure stored at: {args.plot}")
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.WARNING)

    try:
        return run(args)
    except (ValueError, UnknownNodeError, MissingMetricError, OSError, yaml.YAMLError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
