import logging
import os
from contextlib import contextmanager
from pathlib import Path

import psycopg2

SCHEMA = "qc_assignment"
SQL_DIR = Path(__file__).resolve().parent / "sql"

logger = logging.getLogger(__name__)


class StorageError(RuntimeError):
    """Raised when tab data cannot be read from or written to the database."""


def get_database_url() -> str:
    database_url = os.getenv("DATABASE_URL")
    if not database_url:
        raise RuntimeError("DATABASE_URL is not set. Provide the QC assignment database URL.")
    return database_url


def connect():
    try:
        return psycopg2.connect(get_database_url())
    except psycopg2.Error as exc:
        logger.error("Could not connect to the QC assignment database: %s", exc)
        raise StorageError("Could not connect to the QC assignment database.") from exc


@contextmanager
def db_cursor():
    """Cursor on a fresh connection, committed on success and rolled back on error.

    Connection failures surface as ``StorageError``; errors raised while the
    cursor is in use propagate unchanged after the rollback.
    """
    conn = connect()
    try:
        with conn.cursor() as cursor:
            yield cursor
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def load_sql(name: str) -> str:
    return (SQL_DIR / name).read_text(encoding="utf-8")
