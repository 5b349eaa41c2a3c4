"""Tests for agent/subtask scoring."""

from __future__ import annotations

import pytest

from swarmflow.swarm.matcher import find_best_agent, score
from swarmflow.swarm.types import Agent, AgentPerformance, Subtask


def _agent(
    agent_id: str,
    role: str = "specialist",
    capabilities: list[str] | None = None,
    success_rate: float = 1.0,
    mean_ms: float = 0.0,
) -> Agent:
    return Agent(
        id=agent_id,
        role=role,
        name=f"{role}-{agent_id}",
        swarm_id="s",
        capabilities=capabilities or [],
        performance=AgentPerformance(mean_duration_ms=mean_ms, success_rate=success_rate),
    )


def _subtask(kind: str = "implementation", caps: tuple[str, ...] = ("implementation",)) -> Subtask:
    return Subtask(id="t-1", parent_id="t", description="x", type=kind, required_capabilities=caps)


class TestScore:
    def test_fresh_agent_baseline(self) -> None:
        # 0 capabilities, success 1.0, mean 0ms, no role bonus
        assert score(_agent("a"), _subtask()) == pytest.approx(0.3 + 0.2)

    def test_capability_match_adds_weight(self) -> None:
        agent = _agent("a", capabilities=["implementation"])
        assert score(agent, _subtask()) == pytest.approx(0.2 + 0.3 + 0.2)

    def test_role_bonus_when_role_equals_type(self) -> None:
        agent = _agent("a", role="testing")
        st = _subtask(kind="testing", caps=())
        assert score(agent, st) == pytest.approx(0.3 + 0.2 + 0.3)

    def test_speed_term_goes_negative_for_slow_agents(self) -> None:
        slow = _agent("a", mean_ms=20_000.0)
        # (1 - 2) * 0.2 = -0.2
        assert score(slow, _subtask(caps=())) == pytest.approx(0.3 - 0.2)

    def test_failures_lower_score(self) -> None:
        good = _agent("a", success_rate=1.0)
        bad = _agent("b", success_rate=0.5)
        assert score(bad, _subtask()) < score(good, _subtask())

    @pytest.mark.parametrize("caps", [[], ["testing"], ["design", "testing"]])
    def test_adding_matching_capability_never_decreases_score(self, caps: list[str]) -> None:
        st = _subtask(caps=("implementation", "testing"))
        before = score(_agent("a", capabilities=list(caps)), st)
        after = score(_agent("a", capabilities=[*caps, "implementation"]), st)
        assert after >= before


class TestFindBestAgent:
    def test_empty_candidates(self) -> None:
        assert find_best_agent([], _subtask()) is None

    def test_picks_highest_score(self) -> None:
        plain = _agent("a")
        coder = _agent("b", capabilities=["implementation"])
        assert find_best_agent([plain, coder], _subtask()) is coder

    def test_ties_go_to_earliest_candidate(self) -> None:
        first, second = _agent("a"), _agent("b")
        assert find_best_agent([first, second], _subtask()) is first
        assert find_best_agent([second, first], _subtask()) is second
