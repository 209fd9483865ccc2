"""Bookkeeping for scripts that were already deployed.

Every deployed script leaves a row with its file name and content hash in the
tracking table. A script whose current hash is already recorded is skipped on
the next run; an edited script has a new hash and is deployed again.
"""

from __future__ import annotations

from typing import Iterable

from sqlalchemy import text
from sqlalchemy.orm import Session

from dbsync.logging import get_logger
from sqlorder.models import Script


def _quote_literal(value: str) -> str:
    return "'" + value.replace("'", "''") + "'"


def create_table_statement(table: str) -> str:
    return (
        f"CREATE TABLE IF NOT EXISTS {table} (\n"
        "    filename TEXT PRIMARY KEY,\n"
        "    hash TEXT NOT NULL,\n"
        "    applied_at_utc TIMESTAMPTZ NOT NULL DEFAULT NOW()\n"
        ");"
    )


def record_statement(script: Script, table: str) -> str:
    return (
        f"INSERT INTO {table} (filename, hash, applied_at_utc)\n"
        f"VALUES ({_quote_literal(script.name)}, {_quote_literal(script.hash or '')}, NOW())\n"
        "ON CONFLICT (filename) DO UPDATE SET\n"
        "    hash = EXCLUDED.hash,\n"
        "    applied_at_utc = EXCLUDED.applied_at_utc;"
    )


def fetch_applied_hashes(session: Session, table: str) -> set[str]:
    table_exists = session.execute(
        text("SELECT to_regclass(:table_name) IS NOT NULL"),
        {"table_name": table},
    ).scalar_one()
    if not table_exists:
        return set()
    rows = session.execute(text(f"SELECT hash FROM {table}")).scalars().all()
    return {str(value) for value in rows if value}


def filter_not_applied(scripts: Iterable[Script], applied_hashes: set[str]) -> list[Script]:
    pending: list[Script] = []
    skipped = 0
    for script in scripts:
        if script.hash is not None and script.hash in applied_hashes:
            skipped += 1
            continue
        pending.append(script)

    get_logger(__name__).info(
        "Applied scripts filtered out.",
        pending=len(pending),
        skipped=skipped,
    )
    return pending
