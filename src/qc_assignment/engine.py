from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Mapping, Protocol, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_TRIALS = 20


class Role(str, Enum):
    AA = "AA"
    AS = "AS"
    SENIOR = "Senior"
    LEAD = "Lead"


ROLE_WEIGHTS: dict[str, int] = {
    Role.AA.value: 5,
    Role.AS.value: 5,
    Role.SENIOR.value: 3,
    Role.LEAD.value: 3,
}


class RandomSource(Protocol):
    def shuffle(self, x: list) -> None: ...

    def choice(self, seq: Sequence[T]) -> T: ...


@dataclass(frozen=True)
class Target:
    name: str
    role: str = Role.AA.value


@dataclass(frozen=True)
class EngineOptions:
    trials: int = DEFAULT_TRIALS
    role_weights: Mapping[str, int] = field(default_factory=lambda: dict(ROLE_WEIGHTS))

    def __post_init__(self) -> None:
        if self.trials < 1:
            raise ValueError(f"trials must be at least 1, got {self.trials}")


@dataclass(frozen=True)
class TrialOutcome:
    assignment: dict[str, list[Target]]
    skipped: list[str]
    loads: dict[str, int]
    spread: int
    peak: int

    @property
    def key(self) -> tuple[int, int]:
        return (self.spread, self.peak)


@dataclass(frozen=True)
class AssignmentResult:
    assignment: dict[str, list[Target]]
    skipped: list[str]
    loads: dict[str, int]
    spread: int
    peak: int
    trials: int


def role_weight(role: str, role_weights: Mapping[str, int] = ROLE_WEIGHTS) -> int:
    """Quota for a role; unrecognized roles weigh nothing."""
    if isinstance(role, Role):
        role = role.value
    return role_weights.get(role, 0)


def weighted_load(targets: Iterable[Target], role_weights: Mapping[str, int] = ROLE_WEIGHTS) -> int:
    return sum(role_weight(target.role, role_weights) for target in targets)


def run_trial(
    reviewers: Sequence[str],
    targets: Sequence[Target],
    role_weights: Mapping[str, int],
    rng: RandomSource,
) -> TrialOutcome:
    shuffled = list(targets)
    rng.shuffle(shuffled)

    # Keyed by name, so repeated reviewer entries share one slot.
    loads: dict[str, int] = {reviewer: 0 for reviewer in reviewers}
    assignment: dict[str, list[Target]] = {reviewer: [] for reviewer in loads}
    skipped: list[str] = []

    for target in shuffled:
        eligible = [reviewer for reviewer in loads if reviewer != target.name]
        if not eligible:
            skipped.append(target.name)
            continue

        lowest = min(loads[reviewer] for reviewer in eligible)
        tied = [reviewer for reviewer in eligible if loads[reviewer] == lowest]
        chosen = rng.choice(tied)
        assignment[chosen].append(target)
        loads[chosen] += role_weight(target.role, role_weights)

    peak = max(loads.values()) if loads else 0
    floor = min(loads.values()) if loads else 0
    return TrialOutcome(
        assignment=assignment,
        skipped=skipped,
        loads=loads,
        spread=peak - floor,
        peak=peak,
    )


def select_best(trials: Iterable[TrialOutcome]) -> TrialOutcome:
    """Smallest (spread, peak) wins; the earliest trial keeps a tie."""
    best: TrialOutcome | None = None
    for trial in trials:
        if best is None or trial.key < best.key:
            best = trial
    if best is None:
        raise ValueError("select_best() needs at least one trial")
    return best


def assign(
    reviewers: Sequence[str],
    targets: Sequence[Target],
    options: EngineOptions | None = None,
    rng: RandomSource | None = None,
) -> AssignmentResult:
    options = options or EngineOptions()
    rng = rng or random.Random()

    best = select_best(
        run_trial(reviewers, targets, options.role_weights, rng)
        for _ in range(options.trials)
    )
    logger.debug(
        "Best of %s trials: spread=%s peak=%s skipped=%s",
        options.trials,
        best.spread,
        best.peak,
        len(best.skipped),
    )
    return AssignmentResult(
        assignment=best.assignment,
        skipped=best.skipped,
        loads=best.loads,
        spread=best.spread,
        peak=best.peak,
        trials=options.trials,
    )
