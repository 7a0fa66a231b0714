# campus_nav/app/cli.py
import argparse
import json
import sys

from pydantic import ValidationError

from campus_nav.app.build import build
from campus_nav.app.events import DestinationReached, PositionUpdate
from campus_nav.config.models import MapModel
from campus_nav.domain.entities.positions import GroundPosition
from campus_nav.domain.graph import MalformedGraphError, RoadGraph
from campus_nav.runtime.resources import fmt_for, load_config_document, load_graph_from_path


def _load_model(path: str, log_level: str | None) -> MapModel:
    doc = load_config_document(path)
    if log_level:
        doc.setdefault("log", {})["level"] = log_level
    return MapModel.model_validate(doc)


def cmd_navigate(args) -> int:
    app = build(_load_model(args.config, args.log_level))
    k = app.kernel

    arrivals: list[float] = []
    k.on(DestinationReached, lambda ev: arrivals.append(ev.t))

    if args.start is not None:
        x, z = args.start
        k.schedule(PositionUpdate(t=k.now, fix=GroundPosition(x, z), source="cli"))
    # let early replayed fixes land before routing
    k.advance_to(args.route_at)

    if not app.navigation.navigate_to(args.destination) or not app.navigation.start():
        print(json.dumps({"ok": False, "reason": app.navigation.last_failure}))
        return 1

    route = app.navigation.route
    waypoints = route.waypoint_count
    graph_points = len(route.point_ids)
    k.run(until=args.route_at + args.horizon)

    print(
        json.dumps(
            {
                "ok": True,
                "destination": args.destination,
                "state": app.navigation.state.value,
                "arrived_at": arrivals[0] if arrivals else None,
                "waypoints": waypoints,
                "graph_points": graph_points,
                "recalculations": app.navigation.recalculations,
                "distance_walked": round(app.tracker.distance_walked, 3),
            }
        )
    )
    return 0


def cmd_path(args) -> int:
    app = build(_load_model(args.config, args.log_level), use_logging=False)
    ids = app.routes.find_path_between_buildings(args.start, args.end)
    if not ids:
        print(json.dumps({"ok": False, "start": args.start, "end": args.end}))
        return 1
    world = app.pathfinder.world_positions(ids)
    print(
        json.dumps(
            {
                "ok": True,
                "ids": ids,
                "cost": app.pathfinder.path_cost(ids),
                "world": [p.as_dict() for p in world],
            }
        )
    )
    return 0


def cmd_normalize_graph(args) -> int:
    graph: RoadGraph = load_graph_from_path(args.graph, args.fmt or fmt_for(args.graph))
    if graph.synthesized_connections:
        print("warning: no connections in input; chained points in order", file=sys.stderr)
    json.dump(graph.to_document(), sys.stdout, indent=2 if args.pretty else None)
    sys.stdout.write("\n")
    return 0


def make_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="campus-nav", description="Campus map routing and guidance")
    ap.add_argument("--log-level", default=None, choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    sub = ap.add_subparsers(dest="command", required=True)

    nav = sub.add_parser("navigate", help="Route to a building and run the session")
    nav.add_argument("config", help="Map config (YAML or JSON)")
    nav.add_argument("destination", help="Building name")
    nav.add_argument(
        "--start", nargs=2, type=float, metavar=("X", "Z"), help="Starting world position"
    )
    nav.add_argument("--route-at", type=float, default=0.0, help="Sim time to request the route")
    nav.add_argument("--horizon", type=float, default=600.0, help="Seconds to run after routing")
    nav.set_defaults(func=cmd_navigate)

    path = sub.add_parser("path", help="Shortest path between two buildings")
    path.add_argument("config")
    path.add_argument("start")
    path.add_argument("end")
    path.set_defaults(func=cmd_path)

    norm = sub.add_parser("normalize-graph", help="Print a graph file in canonical form")
    norm.add_argument("graph")
    norm.add_argument("--fmt", choices=["json", "yaml"], default=None)
    norm.add_argument("--pretty", action="store_true")
    norm.set_defaults(func=cmd_normalize_graph)
    return ap


def main(argv: list[str] | None = None) -> int:
    args = make_parser().parse_args(argv)
    try:
        return args.func(args)
    except (MalformedGraphError, ValidationError, OSError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
