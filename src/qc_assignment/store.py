from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping

import psycopg2
from psycopg2.extras import Json

from .db import SCHEMA, StorageError, db_cursor, load_sql
from .engine import Role, Target

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TabState:
    tab: str
    reviewers: list[str] = field(default_factory=list)
    targets: list[Target] = field(default_factory=list)
    assignment: dict[str, list[Target]] = field(default_factory=dict)
    last_assigned: datetime | None = None


def target_to_json(target: Target) -> dict[str, str]:
    return {"name": target.name, "role": target.role}


def target_from_json(value: Any) -> Target:
    # Rows written before roles existed hold bare names.
    if isinstance(value, str):
        return Target(name=value)
    return Target(name=value["name"], role=value.get("role") or Role.AA.value)


def assignment_to_json(assignment: Mapping[str, Iterable[Target]]) -> dict[str, list[dict[str, str]]]:
    return {
        reviewer: [target_to_json(target) for target in targets]
        for reviewer, targets in assignment.items()
    }


def assignment_from_json(value: Mapping[str, Iterable[Any]] | None) -> dict[str, list[Target]]:
    return {
        reviewer: [target_from_json(target) for target in targets]
        for reviewer, targets in (value or {}).items()
    }


def init_schema() -> None:
    sql = load_sql("001_init.sql")
    try:
        with db_cursor() as cursor:
            cursor.execute(sql)
    except psycopg2.Error as exc:
        logger.error("Failed to create the %s schema: %s", SCHEMA, exc)
        raise StorageError(f"Failed to create the {SCHEMA} schema.") from exc


def fetch_tab(tab: str) -> TabState:
    query = f"""
        SELECT reviewers,
               targets,
               assignment,
               last_assigned
          FROM {SCHEMA}.tab_data
         WHERE tab = %s;
    """
    try:
        with db_cursor() as cursor:
            cursor.execute(query, (tab,))
            row = cursor.fetchone()
    except psycopg2.Error as exc:
        logger.error("Failed to load tab %r: %s", tab, exc)
        raise StorageError(f"Failed to load data for tab {tab!r}.") from exc

    if row is None:
        return TabState(tab=tab)
    return TabState(
        tab=tab,
        reviewers=list(row[0] or []),
        targets=[target_from_json(target) for target in row[1] or []],
        assignment=assignment_from_json(row[2]),
        last_assigned=row[3],
    )


def save_tab(
    tab: str,
    reviewers: Iterable[str],
    targets: Iterable[Target],
    assignment: Mapping[str, Iterable[Target]] | None = None,
) -> TabState:
    """Upsert the lists for a tab.

    The stored assignment and its timestamp only change when an assignment
    is passed in.
    """
    reviewers = list(reviewers)
    targets = list(targets)
    reviewers_json = Json(reviewers)
    targets_json = Json([target_to_json(target) for target in targets])

    if assignment is None:
        query = f"""
            INSERT INTO {SCHEMA}.tab_data (tab, reviewers, targets)
            VALUES (%s, %s, %s)
            ON CONFLICT (tab) DO UPDATE
               SET reviewers = EXCLUDED.reviewers,
                   targets = EXCLUDED.targets,
                   updated_at = NOW()
            RETURNING assignment, last_assigned;
        """
        params: tuple = (tab, reviewers_json, targets_json)
    else:
        query = f"""
            INSERT INTO {SCHEMA}.tab_data (tab, reviewers, targets, assignment, last_assigned)
            VALUES (%s, %s, %s, %s, %s)
            ON CONFLICT (tab) DO UPDATE
               SET reviewers = EXCLUDED.reviewers,
                   targets = EXCLUDED.targets,
                   assignment = EXCLUDED.assignment,
                   last_assigned = EXCLUDED.last_assigned,
                   updated_at = NOW()
            RETURNING assignment, last_assigned;
        """
        params = (
            tab,
            reviewers_json,
            targets_json,
            Json(assignment_to_json(assignment)),
            datetime.now(timezone.utc),
        )

    try:
        with db_cursor() as cursor:
            cursor.execute(query, params)
            row = cursor.fetchone()
    except psycopg2.Error as exc:
        logger.error("Failed to save tab %r: %s", tab, exc)
        raise StorageError(f"Failed to save data for tab {tab!r}.") from exc

    return TabState(
        tab=tab,
        reviewers=reviewers,
        targets=targets,
        assignment=assignment_from_json(row[0]),
        last_assigned=row[1],
    )
