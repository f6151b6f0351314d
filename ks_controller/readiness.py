"""Pod status parsing and log-readiness classification."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Optional

# STATUS column values (table output, not status.phase) meaning the main
# containers have not started yet.
NOT_READY_STATUSES = frozenset({"Pending", "ContainerCreating", "PodInitializing"})
_INIT_PROGRESS = re.compile(r"^Init:\d+/\d+$")


class ReadinessState(str, Enum):
    READY = "ready"
    NOT_READY = "not_ready"


@dataclass(frozen=True)
class PodObservation:
    """One row of `kubectl get pods --no-headers`."""

    name: str
    status: str

    @property
    def ready(self) -> bool:
        return classify(self.status) is ReadinessState.READY


def classify(status: str) -> ReadinessState:
    """Return READY when the pod's logs are streamable.

    Crashed or finished pods count as ready: their logs are still worth
    reading.
    """
    if status in NOT_READY_STATUSES or _INIT_PROGRESS.match(status):
        return ReadinessState.NOT_READY
    return ReadinessState.READY


def parse_observation(line: str) -> Optional[PodObservation]:
    """Parse NAME READY STATUS [RESTARTS AGE]; None for short or blank lines."""
    parts = line.split()
    if len(parts) < 3:
        return None
    return PodObservation(name=parts[0], status=parts[2])


def parse_observations(text: str) -> List[PodObservation]:
    observations = (parse_observation(line) for line in text.splitlines())
    return [obs for obs in observations if obs is not None]


def any_ready(observations: Iterable[PodObservation]) -> bool:
    return any(obs.ready for obs in observations)
