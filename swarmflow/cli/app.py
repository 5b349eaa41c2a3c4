"""Typer CLI for swarmflow."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from swarmflow.config import CoordinatorConfig, resolve_config
from swarmflow.errors import ConfigurationError, SwarmError

console = Console()
app = typer.Typer(
    name="swarmflow",
    help="Coordinate a swarm of agents: decompose a task and schedule it across them.",
    add_completion=False,
    no_args_is_help=True,
)


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _load_config(cwd: str) -> CoordinatorConfig:
    """Resolve the project config or exit with a readable message."""
    try:
        return resolve_config(str(Path(cwd).resolve()))
    except ConfigurationError as e:
        console.print(f"[red]Invalid config: {e}[/red]")
        raise typer.Exit(code=2) from e


def _outcome_cell(outcome: str) -> str:
    return {
        "fulfilled": "[green]✅ fulfilled[/green]",
        "rejected": "[red]❌ rejected[/red]",
    }.get(outcome, "[yellow]⏸ unassigned[/yellow]")


@app.command()
def run(
    description: str = typer.Argument(..., help="Task to decompose and run on the swarm"),
    agents: str = typer.Option(
        "coder,tester,architect,analyst",
        "--agents",
        "-a",
        help="Comma-separated roles to spawn, e.g. 'coder,tester'",
    ),
    topology: str | None = typer.Option(
        None, "--topology", "-t", help="hierarchical | mesh | ring | star"
    ),
    capacity: int | None = typer.Option(None, "--capacity", "-n", help="Max agents in the swarm"),
    strategy: str | None = typer.Option(
        None,
        "--strategy",
        "-s",
        help="parallel | sequential | balanced | adaptive | auto",
    ),
    cwd: str = typer.Option(".", "--cwd", "-C", help="Directory holding .swarmflow.yml"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    """Create a swarm, spawn agents and orchestrate one task on it.

    Examples:
        swarmflow run "implement login and test login"
        swarmflow run "design api and implement api" --strategy sequential
        swarmflow run "analyze logs" --topology mesh --agents analyst,researcher
    """
    _setup_logging(verbose)
    config = _load_config(cwd)

    roles = [r.strip() for r in agents.split(",") if r.strip()]
    if not roles:
        console.print("[red]No agents provided.[/red]")
        raise typer.Exit(1)

    console.print(
        Panel(
            f"[bold cyan]swarmflow[/bold cyan]  🐝\n\n"
            f"[bold]{description}[/bold]\n\n"
            f"[dim]topology={topology or config.default_topology}  "
            f"strategy={strategy or config.default_strategy}  "
            f"agents={', '.join(roles)}[/dim]",
            border_style="cyan",
        )
    )

    from swarmflow.cli.runners import run_swarm as _run_swarm
    from swarmflow.swarm.orchestrator import SwarmCoordinator

    coordinator = SwarmCoordinator(config=config)
    try:
        report = asyncio.run(
            _run_swarm(coordinator, description, roles, topology, capacity, strategy)
        )
    except SwarmError as e:
        console.print(f"\n[red]Swarm failed: {e}[/red]")
        raise typer.Exit(code=1) from e

    task = report["task"]
    table = Table(title="Subtask Results", show_lines=True)
    table.add_column("Subtask", style="bold")
    table.add_column("Type")
    table.add_column("Outcome")
    table.add_column("Agent")
    table.add_column("Time", justify="right")

    types = {st["id"]: st["type"] for st in task["subtasks"]}
    names = {a["id"]: a["name"] for a in report["swarm"]["agents"]}
    for result in task["results"]:
        agent_id = result["agent_id"]
        table.add_row(
            result["subtask_id"],
            types.get(result["subtask_id"], "?"),
            _outcome_cell(result["outcome"]),
            names.get(agent_id, agent_id[:8] if agent_id else "-"),
            f"{result['duration_ms']:.1f}ms",
        )
    console.print(table)

    fulfilled = sum(1 for r in task["results"] if r["outcome"] == "fulfilled")
    total = len(task["results"])
    color = "green" if fulfilled == total else ("yellow" if fulfilled else "red")
    metrics = report["swarm"]["metrics"]
    console.print(
        f"\n[bold {color}]Task {task['status'].upper()}[/bold {color}] — "
        f"{fulfilled}/{total} subtasks fulfilled  ·  "
        f"Strategy: {task['resolved_strategy']}  ·  "
        f"Efficiency: {metrics['efficiency']:.0%}  ·  "
        f"Time: {report['elapsed']:.2f}s"
    )
    for advice in report["recommendations"]:
        console.print(f"[yellow]💡 {advice['type']}:[/yellow] {advice['message']}")
    raise typer.Exit(0 if fulfilled == total else 1)


# Register extra commands (script, roles)
import swarmflow.cli.commands as _commands  # noqa: F401, E402
