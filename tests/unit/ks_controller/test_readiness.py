"""Unit tests for pod readiness classification and parsing."""

import pytest

from ks_controller.readiness import (
    PodObservation,
    ReadinessState,
    any_ready,
    classify,
    parse_observation,
    parse_observations,
)

pytestmark = pytest.mark.unit_controller


@pytest.mark.parametrize(
    "status",
    ["Pending", "ContainerCreating", "PodInitializing", "Init:0/1", "Init:2/3"],
)
def test_not_ready_statuses(status: str) -> None:
    assert classify(status) is ReadinessState.NOT_READY


@pytest.mark.parametrize(
    "status",
    ["Running", "Completed", "Error", "CrashLoopBackOff", "Terminating", "Init:Error"],
)
def test_everything_else_is_ready(status: str) -> None:
    assert classify(status) is ReadinessState.READY


def test_parse_observation_reads_status_column() -> None:
    line = "gatling-runner-abc12   0/1   Running   0   12s"
    assert parse_observation(line) == PodObservation("gatling-runner-abc12", "Running")


@pytest.mark.parametrize("line", ["", "   ", "only-name", "name 1/1"])
def test_parse_observation_rejects_short_lines(line: str) -> None:
    assert parse_observation(line) is None


def test_parse_observations_skips_garbage_and_reports_readiness() -> None:
    text = "\n".join(
        [
            "runner-a   0/1   Pending   0   3s",
            "garbage",
            "runner-b   0/1   Init:0/1   0   3s",
        ]
    )
    pods = parse_observations(text)

    assert [pod.name for pod in pods] == ["runner-a", "runner-b"]
    assert not any_ready(pods)

    pods.append(PodObservation("runner-c", "Completed"))
    assert any_ready(pods)
    assert pods[-1].ready
