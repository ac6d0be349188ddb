from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Sequence

from .engine import AssignmentResult, EngineOptions, RandomSource, Target, assign
from .store import TabState, fetch_tab, save_tab

logger = logging.getLogger(__name__)

EMPTY_LISTS_MESSAGE = "Please enter at least one QCer and one QC Target."
TOO_MANY_REVIEWERS_MESSAGE = "There should be more QC Targets than QCers."


class InputError(ValueError):
    """Raised for reviewer/target lists the engine should not be run on."""


@dataclass(frozen=True)
class AssignmentOutcome:
    tab: str
    reviewers: list[str]
    targets: list[Target]
    result: AssignmentResult
    last_assigned: datetime | None
    warning: str | None


def validate_lists(
    reviewers: Sequence[str],
    targets: Sequence[Target],
    *,
    enforce_ratio: bool = True,
) -> None:
    if not reviewers or not targets:
        raise InputError(EMPTY_LISTS_MESSAGE)
    if enforce_ratio and len(reviewers) > len(targets):
        raise InputError(TOO_MANY_REVIEWERS_MESSAGE)


def skipped_warning(skipped: Sequence[str]) -> str | None:
    if not skipped:
        return None
    return (
        "Warning: The following QC Target(s) could not be assigned because they are "
        "also a QCer and there is no other QCer available: " + ", ".join(skipped)
    )


def assign_tab(
    tab: str,
    reviewers: Sequence[str],
    targets: Sequence[Target],
    *,
    options: EngineOptions | None = None,
    rng: RandomSource | None = None,
    persist: bool = True,
    enforce_ratio: bool = True,
) -> AssignmentOutcome:
    reviewers = list(reviewers)
    targets = list(targets)
    try:
        validate_lists(reviewers, targets, enforce_ratio=enforce_ratio)
    except InputError as exc:
        logger.warning("Not assigning tab %r: %s", tab, exc)
        raise

    result = assign(reviewers, targets, options=options, rng=rng)
    warning = skipped_warning(result.skipped)
    if warning:
        logger.warning("Tab %r: %s skipped target(s)", tab, len(result.skipped))

    last_assigned = None
    if persist:
        saved = save_tab(tab, reviewers, targets, result.assignment)
        last_assigned = saved.last_assigned
        logger.info(
            "Saved assignment for tab %r: %s reviewers, %s targets, spread %s",
            tab,
            len(reviewers),
            len(targets),
            result.spread,
        )

    return AssignmentOutcome(
        tab=tab,
        reviewers=reviewers,
        targets=targets,
        result=result,
        last_assigned=last_assigned,
        warning=warning,
    )


def save_lists(
    tab: str,
    reviewers: Sequence[str] | None = None,
    targets: Sequence[Target] | None = None,
) -> TabState:
    """Store edited lists without touching the current assignment."""
    if reviewers is None or targets is None:
        current = fetch_tab(tab)
        if reviewers is None:
            reviewers = current.reviewers
        if targets is None:
            targets = current.targets
    return save_tab(tab, reviewers, targets)
