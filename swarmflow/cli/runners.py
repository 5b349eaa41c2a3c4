"""Async runner functions for CLI commands (no Typer coupling)."""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

from rich.console import Console

from swarmflow.errors import ConfigurationError

if TYPE_CHECKING:
    from swarmflow.events.types import SwarmEvent
    from swarmflow.swarm.orchestrator import SwarmCoordinator

console = Console()

CommandHandler = Callable[["SwarmCoordinator", dict[str, Any]], Awaitable[dict[str, Any]]]


def _normalize(args: dict[str, Any] | None) -> dict[str, Any]:
    """Accept both ``swarm-id`` and ``swarm_id`` style keys."""
    return {str(k).replace("-", "_"): v for k, v in (args or {}).items()}


def _require(args: dict[str, Any], key: str, command: str) -> Any:
    value = args.get(key)
    if value is None or value == "":
        raise ConfigurationError(f"{command}: missing required argument {key!r}")
    return value


# ── Command handlers ────────────────────────────────────────


async def _create_swarm(coordinator: SwarmCoordinator, args: dict[str, Any]) -> dict[str, Any]:
    capacity = args.get("capacity", args.get("max_agents"))
    swarm = coordinator.create_swarm(
        topology=args.get("topology"),
        capacity=int(capacity) if capacity is not None else None,
        strategy=args.get("strategy"),
        swarm_id=args.get("swarm_id"),
    )
    return swarm.to_dict()


async def _destroy_swarm(coordinator: SwarmCoordinator, args: dict[str, Any]) -> dict[str, Any]:
    swarm_id = _require(args, "swarm_id", "destroy-swarm")
    removed = coordinator.destroy_swarm(swarm_id)
    return {"swarm_id": swarm_id, "agents_removed": removed}


async def _spawn_agent(coordinator: SwarmCoordinator, args: dict[str, Any]) -> dict[str, Any]:
    capabilities = args.get("capabilities")
    if isinstance(capabilities, str):
        capabilities = [c.strip() for c in capabilities.split(",") if c.strip()]
    agent = coordinator.spawn_agent(
        role=args.get("role") or args.get("type") or "specialist",
        swarm_id=args.get("swarm_id"),
        capabilities=capabilities,
    )
    return agent.to_dict()


async def _run_task(coordinator: SwarmCoordinator, args: dict[str, Any]) -> dict[str, Any]:
    description = _require(args, "description", "run-task")
    task = await coordinator.orchestrate_task(
        description,
        strategy=args.get("strategy"),
        priority=args.get("priority") or "medium",
        swarm_id=args.get("swarm_id"),
        task_id=args.get("task_id"),
    )
    return task.to_dict()


async def _task_status(coordinator: SwarmCoordinator, args: dict[str, Any]) -> dict[str, Any]:
    return coordinator.task_status(_require(args, "task_id", "task-status"))


async def _swarm_status(coordinator: SwarmCoordinator, args: dict[str, Any]) -> dict[str, Any]:
    return coordinator.swarm_status(args.get("swarm_id"))


async def _performance_report(
    coordinator: SwarmCoordinator, args: dict[str, Any]
) -> dict[str, Any]:
    return coordinator.performance_report()


COMMANDS: dict[str, CommandHandler] = {
    "create-swarm": _create_swarm,
    "destroy-swarm": _destroy_swarm,
    "spawn-agent": _spawn_agent,
    "run-task": _run_task,
    "task-status": _task_status,
    "swarm-status": _swarm_status,
    "performance-report": _performance_report,
}


async def run_command(
    coordinator: SwarmCoordinator,
    name: str,
    args: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Dispatch one named command to the coordinator and return its result."""
    handler = COMMANDS.get(name)
    if handler is None:
        raise ConfigurationError(
            f"Unknown command: {name!r}. Valid options: {', '.join(COMMANDS)}"
        )
    return await handler(coordinator, _normalize(args))


# ── Rendering ───────────────────────────────────────────────


def _render_event(event: SwarmEvent) -> None:
    """Render a SwarmEvent to the terminal."""
    kind = event.kind
    payload = event.payload

    if kind == "swarm.initialized":
        console.print(
            f"[bold blue]▶ swarm[/bold blue] {payload.get('swarm_id', '?')[:8]} "
            f"[dim]({payload.get('topology')}, capacity {payload.get('capacity')})[/dim]"
        )

    elif kind == "agent.spawned":
        console.print(f"  [cyan]+ {payload.get('name', '?')}[/cyan] [dim]{payload.get('role')}[/dim]")

    elif kind == "agent.removed":
        console.print(
            f"  [yellow]- {payload.get('agent_id', '?')[:8]}[/yellow] "
            f"[dim]({payload.get('reason', '')})[/dim]"
        )

    elif kind == "task.orchestrated":
        console.print(
            f"\n[bold blue]▶ task[/bold blue] {payload.get('task_id', '?')[:8]}: "
            f"{payload.get('subtasks', 0)} subtasks · "
            f"{payload.get('strategy')} → {payload.get('resolved_strategy')}"
        )

    elif kind == "subtask.completed":
        outcome = payload.get("outcome", "?")
        color = {"fulfilled": "green", "rejected": "red"}.get(outcome, "yellow")
        icon = {"fulfilled": "✓", "rejected": "✗"}.get(outcome, "…")
        agent_id = payload.get("agent_id") or "-"
        console.print(
            f"  [{color}]{icon} {payload.get('subtask_id', '?')}[/{color}] "
            f"[dim]{outcome} · agent {agent_id[:8]}[/dim]"
        )

    elif kind == "task.completed":
        console.print(
            f"[bold green]✓ task complete[/bold green] "
            f"{payload.get('fulfilled', 0)}/{payload.get('total', 0)} fulfilled "
            f"[dim]in {payload.get('duration_ms', 0.0):.1f}ms[/dim]"
        )

    elif kind == "task.cancelled":
        console.print(f"[bold yellow]⏹ task cancelled[/bold yellow] {payload.get('task_id', '?')[:8]}")

    elif kind == "swarm.destroyed":
        console.print(
            f"[bold red]■ swarm destroyed[/bold red] {payload.get('swarm_id', '?')[:8]} "
            f"[dim]({payload.get('agents_removed', 0)} agents removed)[/dim]"
        )


async def run_swarm(
    coordinator: SwarmCoordinator,
    description: str,
    roles: list[str],
    topology: str | None,
    capacity: int | None,
    strategy: str | None,
) -> dict[str, Any]:
    """Create a swarm, spawn *roles* into it and orchestrate one task."""
    coordinator.event_bus.add_listener(_render_event)
    started_at = time.time()
    try:
        swarm = await run_command(
            coordinator,
            "create-swarm",
            {"topology": topology, "capacity": capacity, "strategy": strategy},
        )
        for role in roles:
            await run_command(coordinator, "spawn-agent", {"role": role, "swarm_id": swarm["id"]})

        task = await run_command(
            coordinator,
            "run-task",
            {"description": description, "swarm_id": swarm["id"]},
        )
        status = await run_command(coordinator, "swarm-status", {"swarm_id": swarm["id"]})
    finally:
        await coordinator.event_bus.close()
        coordinator.event_bus.remove_listener(_render_event)
    return {
        "task": task,
        "swarm": status,
        "metrics": coordinator.metrics_snapshot(),
        "recommendations": coordinator.performance_report()["recommendations"],
        "elapsed": time.time() - started_at,
    }


async def run_script(
    coordinator: SwarmCoordinator,
    steps: list[dict[str, Any]],
) -> list[dict[str, Any]]:
    """Run a list of ``{"command": name, "args": {...}}`` steps in order.

    ``task-status`` without a ``task_id`` reports on the most recent
    ``run-task`` of the script.
    """
    results: list[dict[str, Any]] = []
    last_task_id: str | None = None
    for i, step in enumerate(steps, 1):
        if not isinstance(step, dict) or "command" not in step:
            raise ConfigurationError(f"Step {i}: expected a mapping with a 'command' key")
        name = step["command"]
        args = _normalize(step.get("args"))
        if name == "task-status" and "task_id" not in args and last_task_id is not None:
            args["task_id"] = last_task_id
        result = await run_command(coordinator, name, args)
        if name == "run-task":
            last_task_id = result["id"]
        results.append({"command": name, "result": result})
    return results
