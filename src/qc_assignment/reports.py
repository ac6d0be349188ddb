from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping, Sequence

from .engine import ROLE_WEIGHTS, Target, role_weight


@dataclass(frozen=True)
class RoleShare:
    role: str
    count: int
    weight: int


@dataclass(frozen=True)
class ReviewerBreakdown:
    reviewer: str
    total: int
    target_count: int
    roles: list[RoleShare]


@dataclass(frozen=True)
class BalanceSummary:
    reviewers: int
    assigned: int
    skipped: int
    total_weight: int
    min_load: int
    max_load: int
    spread: int


def breakdown_for(
    reviewer: str,
    targets: Iterable[Target],
    role_weights: Mapping[str, int] = ROLE_WEIGHTS,
) -> ReviewerBreakdown:
    role_totals: dict[str, dict[str, int]] = {}
    count = 0
    for target in targets:
        count += 1
        stats = role_totals.setdefault(target.role, {"count": 0, "weight": 0})
        stats["count"] += 1
        stats["weight"] += role_weight(target.role, role_weights)

    # Known roles first in table order, then anything unrecognized.
    order = {role: index for index, role in enumerate(role_weights)}
    roles = [
        RoleShare(role=role, count=stats["count"], weight=stats["weight"])
        for role, stats in role_totals.items()
    ]
    roles.sort(key=lambda item: (order.get(item.role, len(order)), item.role))

    return ReviewerBreakdown(
        reviewer=reviewer,
        total=sum(item.weight for item in roles),
        target_count=count,
        roles=roles,
    )


def build_weight_breakdown(
    assignment: Mapping[str, Iterable[Target]],
    role_weights: Mapping[str, int] = ROLE_WEIGHTS,
) -> list[ReviewerBreakdown]:
    report = [
        breakdown_for(reviewer, targets, role_weights)
        for reviewer, targets in assignment.items()
    ]
    report.sort(key=lambda item: (-item.total, item.reviewer))
    return report


def build_balance_summary(
    assignment: Mapping[str, Iterable[Target]],
    skipped: Sequence[str],
    role_weights: Mapping[str, int] = ROLE_WEIGHTS,
) -> BalanceSummary:
    breakdown = build_weight_breakdown(assignment, role_weights)
    loads = [item.total for item in breakdown]
    min_load = min(loads) if loads else 0
    max_load = max(loads) if loads else 0
    return BalanceSummary(
        reviewers=len(breakdown),
        assigned=sum(item.target_count for item in breakdown),
        skipped=len(skipped),
        total_weight=sum(loads),
        min_load=min_load,
        max_load=max_load,
        spread=max_load - min_load,
    )
