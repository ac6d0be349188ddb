from __future__ import annotations

import os

from .engine import DEFAULT_TRIALS, ROLE_WEIGHTS, EngineOptions

TEAM_VERTICALS = [
    "Processing & Imaging",
    "Infrastructure & Platform",
    "Data Transfer",
    "Core Review",
    "Search & Analytics",
    "Privacy Preservation and Collection",
]
DEFAULT_TAB = TEAM_VERTICALS[0]

TRIALS_ENV = "QC_ASSIGNMENT_TRIALS"
ROLE_WEIGHTS_ENV = "QC_ASSIGNMENT_ROLE_WEIGHTS"


def get_trials() -> int:
    raw = os.getenv(TRIALS_ENV)
    if not raw:
        return DEFAULT_TRIALS
    try:
        trials = int(raw)
    except ValueError as exc:
        raise ValueError(f"{TRIALS_ENV} must be an integer, got {raw!r}.") from exc
    if trials < 1:
        raise ValueError(f"{TRIALS_ENV} must be at least 1, got {trials}.")
    return trials


def parse_role_weights(raw: str) -> dict[str, int]:
    weights: dict[str, int] = {}
    for item in raw.split(","):
        item = item.strip()
        if not item:
            continue
        role, sep, value = item.partition("=")
        if not sep or not role.strip():
            raise ValueError(f"{ROLE_WEIGHTS_ENV} entries look like 'Role=5', got {item!r}.")
        try:
            weight = int(value)
        except ValueError as exc:
            raise ValueError(f"{ROLE_WEIGHTS_ENV} weight for {role.strip()!r} must be an integer.") from exc
        if weight < 1:
            raise ValueError(f"{ROLE_WEIGHTS_ENV} weight for {role.strip()!r} must be at least 1, got {weight}.")
        weights[role.strip()] = weight
    return weights


def get_role_weights() -> dict[str, int]:
    weights = dict(ROLE_WEIGHTS)
    raw = os.getenv(ROLE_WEIGHTS_ENV)
    if raw:
        weights.update(parse_role_weights(raw))
    return weights


def load_engine_options(trials: int | None = None) -> EngineOptions:
    return EngineOptions(
        trials=trials if trials is not None else get_trials(),
        role_weights=get_role_weights(),
    )
