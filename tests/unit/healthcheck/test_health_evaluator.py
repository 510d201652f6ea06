"""
Tests unitaires pour HealthEvaluator.

Vérifie la classification HEALTHY / UNHEALTHY / PENDING, les échéances
inclusives et l'échéance PENDING minimale.
"""

from datetime import timedelta
from unittest.mock import Mock

import pytest

from src.api.conditions import (
    MACHINE_HAS_FAILURE_REASON,
    NODE_NOT_FOUND_REASON,
    NODE_STARTUP_TIMEOUT_REASON,
    UNHEALTHY_NODE_REASON,
)
from src.api.types import ConditionStatus
from src.healthcheck import HealthEvaluator, Target, TargetHealth

from tests.builders import NOW, make_machine, make_node, make_policy


STARTUP = timedelta(minutes=10)


def target(machine, node=None, node_missing=False) -> Target:
    return Target(machine=machine, node=node, patch_helper=Mock(), node_missing=node_missing)


@pytest.fixture
def evaluator() -> HealthEvaluator:
    return HealthEvaluator()


class TestMissingNode:
    """Cibles sans Node."""

    def test_pending_before_startup_timeout(self, evaluator: HealthEvaluator) -> None:
        machine = make_machine("m-1", created=NOW - timedelta(minutes=4))

        verdict = evaluator.evaluate_target(target(machine), make_policy(), STARTUP, NOW)

        assert verdict.health == TargetHealth.PENDING
        assert verdict.next_check == NOW + timedelta(minutes=6)

    def test_unhealthy_exactly_at_deadline(self, evaluator: HealthEvaluator) -> None:
        machine = make_machine("m-1", created=NOW - STARTUP)

        verdict = evaluator.evaluate_target(target(machine), make_policy(), STARTUP, NOW)

        assert verdict.health == TargetHealth.UNHEALTHY
        assert verdict.reason == NODE_STARTUP_TIMEOUT_REASON

    def test_pending_just_before_deadline(self, evaluator: HealthEvaluator) -> None:
        machine = make_machine("m-1", created=NOW - STARTUP + timedelta(microseconds=1))

        verdict = evaluator.evaluate_target(target(machine), make_policy(), STARTUP, NOW)

        assert verdict.health == TargetHealth.PENDING

    def test_node_ref_without_node_is_unhealthy(self, evaluator: HealthEvaluator) -> None:
        machine = make_machine("m-1", node_name="gone", created=NOW)

        verdict = evaluator.evaluate_target(
            target(machine, node_missing=True), make_policy(), STARTUP, NOW
        )

        assert verdict.health == TargetHealth.UNHEALTHY
        assert verdict.reason == NODE_NOT_FOUND_REASON

    def test_policy_default_startup_timeout(self) -> None:
        evaluator = HealthEvaluator(default_node_startup_timeout=timedelta(minutes=30))
        policy = make_policy(node_startup_timeout=None)

        assert evaluator.startup_timeout(policy) == timedelta(minutes=30)
        assert evaluator.startup_timeout(make_policy()) == timedelta(minutes=10)


class TestNodeConditions:
    """Règles sur les conditions du Node."""

    def test_ready_node_is_healthy(self, evaluator: HealthEvaluator) -> None:
        verdict = evaluator.evaluate_target(
            target(make_machine("m-1", node_name="n"), make_node("n")), make_policy(), STARTUP, NOW
        )

        assert verdict.health == TargetHealth.HEALTHY

    def test_condition_held_past_timeout_is_unhealthy(self, evaluator: HealthEvaluator) -> None:
        node = make_node("n", ready=ConditionStatus.UNKNOWN, since=NOW - timedelta(minutes=6))

        verdict = evaluator.evaluate_target(
            target(make_machine("m-1", node_name="n"), node), make_policy(), STARTUP, NOW
        )

        assert verdict.health == TargetHealth.UNHEALTHY
        assert verdict.reason == UNHEALTHY_NODE_REASON
        assert "Ready" in verdict.message

    def test_condition_at_exact_timeout_is_unhealthy(self, evaluator: HealthEvaluator) -> None:
        node = make_node("n", ready=ConditionStatus.FALSE, since=NOW - timedelta(minutes=5))

        verdict = evaluator.evaluate_target(
            target(make_machine("m-1", node_name="n"), node), make_policy(), STARTUP, NOW
        )

        assert verdict.health == TargetHealth.UNHEALTHY

    def test_condition_within_timeout_is_pending(self, evaluator: HealthEvaluator) -> None:
        node = make_node("n", ready=ConditionStatus.FALSE, since=NOW - timedelta(minutes=2))

        verdict = evaluator.evaluate_target(
            target(make_machine("m-1", node_name="n"), node), make_policy(), STARTUP, NOW
        )

        assert verdict.health == TargetHealth.PENDING
        assert verdict.next_check == NOW + timedelta(minutes=3)

    def test_missing_condition_is_healthy(self, evaluator: HealthEvaluator) -> None:
        node = make_node("n")
        node.status.conditions = []

        verdict = evaluator.evaluate_target(
            target(make_machine("m-1", node_name="n"), node), make_policy(), STARTUP, NOW
        )

        assert verdict.health == TargetHealth.HEALTHY

    def test_machine_failure_is_unhealthy(self, evaluator: HealthEvaluator) -> None:
        machine = make_machine("m-1", node_name="n")
        machine.status.failure_reason = "CreateError"

        verdict = evaluator.evaluate_target(target(machine, make_node("n")), make_policy(), STARTUP, NOW)

        assert verdict.health == TargetHealth.UNHEALTHY
        assert verdict.reason == MACHINE_HAS_FAILURE_REASON
        assert "CreateError" in verdict.message


class TestEvaluation:
    """Partition et échéance minimale."""

    def test_partition_and_minimum_deadline(self, evaluator: HealthEvaluator) -> None:
        targets = [
            target(make_machine("healthy", node_name="n1"), make_node("n1")),
            target(
                make_machine("unhealthy", node_name="n2"),
                make_node("n2", ready=ConditionStatus.FALSE, since=NOW - timedelta(hours=1)),
            ),
            target(
                make_machine("pending-1", node_name="n3"),
                make_node("n3", ready=ConditionStatus.FALSE, since=NOW - timedelta(minutes=1)),
            ),
            target(make_machine("pending-2", created=NOW - timedelta(minutes=9))),
        ]

        evaluation = evaluator.evaluate(targets, make_policy(), NOW)

        assert [v.target.machine.metadata.name for v in evaluation.healthy] == ["healthy"]
        assert [v.target.machine.metadata.name for v in evaluation.unhealthy] == ["unhealthy"]
        assert len(evaluation.pending) == 2
        assert evaluation.expected == 4
        assert evaluation.current_healthy == 1
        assert evaluation.next_check_at == NOW + timedelta(minutes=1)
        assert evaluation.requeue_after(NOW) == timedelta(minutes=1)

    def test_no_pending_no_requeue(self, evaluator: HealthEvaluator) -> None:
        evaluation = evaluator.evaluate(
            [target(make_machine("m", node_name="n"), make_node("n"))], make_policy(), NOW
        )

        assert evaluation.next_check_at is None
        assert evaluation.requeue_after(NOW) is None

    def test_empty_targets(self, evaluator: HealthEvaluator) -> None:
        evaluation = evaluator.evaluate([], make_policy(), NOW)

        assert evaluation.expected == 0
        assert evaluation.next_check_at is None
