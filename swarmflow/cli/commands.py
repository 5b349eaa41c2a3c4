"""Additional CLI commands: script, roles."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from swarmflow.cli.app import _load_config, _setup_logging, app

console = Console()


@app.command()
def script(
    path: str = typer.Argument(..., help="YAML file holding a list of commands"),
    cwd: str = typer.Option(".", "--cwd", "-C", help="Directory holding .swarmflow.yml"),
    events: bool = typer.Option(False, "--events", "-e", help="Print lifecycle events"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Run a YAML script of coordinator commands in order.

    Each entry names a command and its arguments:

        - command: create-swarm
          args: {topology: mesh, capacity: 4}
        - command: spawn-agent
          args: {role: coder}
        - command: run-task
          args: {description: implement login and test login}
        - command: task-status

    Examples:
        swarmflow script demo.yml
        swarmflow script demo.yml --events
    """
    import yaml

    from swarmflow.errors import SwarmError

    _setup_logging(verbose)
    config = _load_config(cwd)

    script_path = Path(path)
    if not script_path.exists():
        console.print(f"[red]Script not found: {path}[/red]")
        raise typer.Exit(1)
    with script_path.open() as f:
        steps = yaml.safe_load(f) or []
    if not isinstance(steps, list):
        console.print("[red]Script must be a YAML list of commands.[/red]")
        raise typer.Exit(1)

    from swarmflow.cli.runners import _render_event
    from swarmflow.swarm.orchestrator import SwarmCoordinator

    coordinator = SwarmCoordinator(config=config)
    if events:
        coordinator.event_bus.add_listener(_render_event)

    try:
        results = asyncio.run(_run_script(coordinator, steps))
    except SwarmError as e:
        console.print(f"\n[red]Script failed: {e}[/red]")
        raise typer.Exit(code=1) from e

    for i, entry in enumerate(results, 1):
        console.print(
            Panel(
                json.dumps(entry["result"], indent=2, default=str),
                title=f"[bold cyan]{i}. {entry['command']}[/bold cyan]",
                border_style="cyan",
            )
        )
    console.print(f"\n[bold green]✓ {len(results)} commands run[/bold green]")


async def _run_script(coordinator: Any, steps: list[dict[str, Any]]) -> list[dict[str, Any]]:
    from swarmflow.cli.runners import run_script

    try:
        return await run_script(coordinator, steps)
    finally:
        await coordinator.event_bus.close()


@app.command()
def roles() -> None:
    """List the roles agents can be spawned with."""
    from swarmflow.swarm.roles import get_all_roles_info

    table = Table(title="Agent Roles", show_lines=True)
    table.add_column("Role", style="bold cyan")
    table.add_column("Description")
    table.add_column("Capabilities")

    for info in get_all_roles_info():
        table.add_row(info["name"], info["description"], ", ".join(info["capabilities"]))

    console.print(table)
