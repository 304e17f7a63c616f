"""CLI startup entrypoint for MC Scout."""

from __future__ import annotations

import re
from datetime import timedelta

import typer
from rich import print
from rich.markup import escape

from mc_scout.adapters import DemoWorldSampler, MinescriptWorldSampler, WorldSampler
from mc_scout.cli import CliScoutHandler
from mc_scout.config import settings
from mc_scout.errors import ScoutError
from mc_scout.models import BlockPos
from mc_scout.navigation import RoadType, WaypointType
from mc_scout.persistence import JsonFileStore
from mc_scout.scan_runtime import InMemoryHistoryStore, JsonlHistoryStore, ScanRuntime
from mc_scout.service import ScoutService
from mc_scout.telemetry import LoggingTelemetry, configure_logging

app = typer.Typer(help="MC Scout exploration and navigation entrypoint")


@app.callback()
def _main() -> None:
    configure_logging(settings.log_level)


def _build_sampler() -> WorldSampler:
    backend = settings.sampler_backend.lower()
    if backend == "minescript":
        return MinescriptWorldSampler()
    if backend == "demo":
        return DemoWorldSampler(seed=settings.demo_seed)
    raise typer.BadParameter(f"Unknown sampler backend: {settings.sampler_backend}")


def _build_handler() -> CliScoutHandler:
    service = ScoutService(
        _build_sampler(),
        persistence=JsonFileStore(settings.data_dir),
        travel_speed=settings.travel_speed,
        prune_tolerance=settings.prune_tolerance,
        task_ttl=timedelta(seconds=settings.task_expiry_seconds),
        danger_report_level=settings.danger_report_level,
        auto_waypoint_min_value=settings.auto_waypoint_min_value,
        telemetry=LoggingTelemetry(),
    )
    history = JsonlHistoryStore(settings.scan_history_path) if settings.scan_history_path else InMemoryHistoryStore()
    runtime = ScanRuntime(service, workers=settings.scan_workers, history_store=history)
    return CliScoutHandler(service, runtime)


def _error_exit(exc: Exception) -> typer.Exit:
    print(f"[bold red]Error:[/bold red] {escape(str(exc))}")
    return typer.Exit(code=1)


@app.command()
def start() -> None:
    """Show runtime backend configuration."""
    print(
        {
            "app_name": settings.app_name,
            "sampler_backend": settings.sampler_backend,
            "data_dir": settings.data_dir,
            "travel_speed": settings.travel_speed,
            "scan_workers": settings.scan_workers,
        }
    )


@app.command()
def explore(
    x: int = typer.Option(..., help="Center X"),
    y: int = typer.Option(64, help="Center Y"),
    z: int = typer.Option(..., help="Center Z"),
    radius: int = typer.Option(16, min=0, help="Scan radius in blocks"),
) -> None:
    """Scan every unexplored cell around a position."""
    try:
        result = _build_handler().explore(BlockPos(x, y, z), radius)
    except ScoutError as exc:
        raise _error_exit(exc) from exc

    print({"scan": result.summary(), "danger_zones": [zone.to_dict() for zone in result.danger_zones]})
    if not result.success:
        raise typer.Exit(code=1)


@app.command()
def frontier(
    x: int = typer.Option(..., help="Center X"),
    y: int = typer.Option(64, help="Center Y"),
    z: int = typer.Option(..., help="Center Z"),
    max_radius: int = typer.Option(64, min=0, help="Frontier radius in blocks"),
    run: int = typer.Option(0, min=0, help="Scan up to this many scheduled cells"),
) -> None:
    """Schedule unexplored cells around a position and optionally scan them."""
    try:
        handler = _build_handler()
        tasks = handler.schedule_frontier(BlockPos(x, y, z), max_radius)
        jobs = handler.run_frontier(run) if run else []
    except ScoutError as exc:
        raise _error_exit(exc) from exc

    print(
        {
            "scheduled": [task.description for task in tasks],
            "jobs": [f"{job.cell or job.center}: {job.status.value} ({job.error or job.summary})" for job in jobs],
        }
    )


@app.command("waypoint-create")
def waypoint_create(
    name: str,
    x: int = typer.Option(..., help="X"),
    y: int = typer.Option(64, help="Y"),
    z: int = typer.Option(..., help="Z"),
    waypoint_type: WaypointType = typer.Option(WaypointType.LANDMARK, "--type", help="Waypoint type"),
    description: str = typer.Option(None, help="Free-form note"),
) -> None:
    """Create a named waypoint."""
    try:
        waypoint = _build_handler().create_waypoint(name, BlockPos(x, y, z), waypoint_type, description)
    except ScoutError as exc:
        raise _error_exit(exc) from exc
    print({"waypoint": waypoint.to_dict()})


@app.command("waypoint-list")
def waypoint_list(
    waypoint_type: WaypointType = typer.Option(None, "--type", help="Only list this waypoint type"),
) -> None:
    """List waypoints, optionally filtered by type."""
    try:
        waypoints = _build_handler().list_waypoints(waypoint_type)
    except ScoutError as exc:
        raise _error_exit(exc) from exc
    print({"waypoints": [f"{waypoint.name} {waypoint.position} [{waypoint.type.value}]" for waypoint in waypoints]})


@app.command("road-create")
def road_create(
    road_id: str,
    start_waypoint: str,
    end_waypoint: str,
    road_type: RoadType = typer.Option(RoadType.DIRT_PATH, "--type", help="Road type"),
) -> None:
    """Connect two waypoints with a road."""
    try:
        road = _build_handler().create_road(road_id, start_waypoint, end_waypoint, road_type)
    except ScoutError as exc:
        raise _error_exit(exc) from exc
    print({"road": road.to_dict(), "travel_seconds": road.travel_seconds})


@app.command()
def route(
    from_x: int = typer.Option(..., help="Start X"),
    from_y: int = typer.Option(64, help="Start Y"),
    from_z: int = typer.Option(..., help="Start Z"),
    to_x: int = typer.Option(..., help="Goal X"),
    to_y: int = typer.Option(64, help="Goal Y"),
    to_z: int = typer.Option(..., help="Goal Z"),
) -> None:
    """Compute a navigation path through the waypoint network."""
    try:
        path = _build_handler().route(BlockPos(from_x, from_y, from_z), BlockPos(to_x, to_y, to_z))
    except ScoutError as exc:
        raise _error_exit(exc) from exc
    print(path.summary())


@app.command("route-resource")
def route_resource(
    resource_type: str,
    x: int = typer.Option(..., help="Start X"),
    y: int = typer.Option(64, help="Start Y"),
    z: int = typer.Option(..., help="Start Z"),
) -> None:
    """Route to the closest discovered resource of a type."""
    try:
        path = _build_handler().route_to_resource(BlockPos(x, y, z), resource_type)
    except ScoutError as exc:
        raise _error_exit(exc) from exc
    if path is None:
        print(f"[yellow]No {escape(resource_type)} discovered yet[/yellow]")
        raise typer.Exit(code=1)
    print(path.summary())


@app.command("hub-create")
def hub_create(
    name: str,
    x: int = typer.Option(..., help="X"),
    y: int = typer.Option(64, help="Y"),
    z: int = typer.Option(..., help="Z"),
    hub_id: str = typer.Option(None, "--id", help="Hub id, derived from the name when omitted"),
) -> None:
    """Create a teleport hub and its waypoint."""
    hub_id = hub_id or re.sub(r"[^a-z0-9]", "_", name.lower())
    try:
        hub = _build_handler().create_hub(hub_id, BlockPos(x, y, z), name)
    except ScoutError as exc:
        raise _error_exit(exc) from exc
    print({"hub": hub.to_dict(), "waypoint": hub.waypoint_name})


@app.command("hub-list")
def hub_list() -> None:
    """List active teleport hubs."""
    try:
        hubs = _build_handler().list_hubs()
    except ScoutError as exc:
        raise _error_exit(exc) from exc
    print({"hubs": [f"{hub.name} ({hub.id}) {hub.position} [{hub.tier.value}]" for hub in hubs]})


@app.command()
def stats() -> None:
    """Show exploration and navigation statistics."""
    try:
        summary = _build_handler().stats()
    except ScoutError as exc:
        raise _error_exit(exc) from exc
    print(summary)


if __name__ == "__main__":
    app()
