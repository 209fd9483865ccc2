from __future__ import annotations

import time
from typing import Sequence

import psycopg

from dbsync.db import session_scope
from dbsync.logging import get_logger
from dbsync.settings import Settings, get_settings
from dbsync.tracker import (
    create_table_statement,
    fetch_applied_hashes,
    filter_not_applied,
    record_statement,
)
from sqlorder.composer import order_scripts
from sqlorder.loader import scripts_in_directory
from sqlorder.models import Script


class DeployError(RuntimeError):
    pass


def plan_directory(settings: Settings | None = None) -> list[Script]:
    settings = settings or get_settings()
    scripts = scripts_in_directory(settings.scripts_dir, settings.script_glob)
    if settings.uses_tracking_table:
        with session_scope(settings) as session:
            applied_hashes = fetch_applied_hashes(session, settings.migrations_table)
        scripts = filter_not_applied(scripts, applied_hashes)
    return order_scripts(scripts)


def build_script_list(scripts: Sequence[Script]) -> str:
    if not scripts:
        return "No scripts to run\n"
    return "".join(f"{position}. {script.name}\n" for position, script in enumerate(scripts, start=1))


def build_deploy_script(
    scripts: Sequence[Script],
    *,
    tracked: bool,
    table: str = "dbsync_migrations",
) -> str:
    parts: list[str] = []
    if tracked:
        parts.append(create_table_statement(table) + "\n")

    for script in scripts:
        parts.append(f"-- {script.name}\n")
        parts.append(script.contents.rstrip("\n") + "\n")
        if tracked:
            parts.append(record_statement(script, table) + "\n")
        parts.append("\n")
    return "".join(parts)


def push_deploy_script(deploy_script: str, *, dsn: str) -> None:
    """Run the whole deploy script in one transaction.

    The psycopg connection block commits on a clean exit and rolls back when
    the script fails, so the database is left untouched on any error.
    """
    logger = get_logger(__name__)
    started_at = time.perf_counter()
    try:
        with psycopg.connect(dsn) as conn:
            with conn.cursor() as cur:
                cur.execute(deploy_script)
    except psycopg.Error as exc:
        logger.exception(
            "Deploy failed, transaction rolled back.",
            duration_seconds=round(time.perf_counter() - started_at, 2),
        )
        raise DeployError(str(exc)) from exc

    logger.info(
        "Deploy script applied.",
        size_bytes=len(deploy_script.encode("utf-8")),
        duration_seconds=round(time.perf_counter() - started_at, 2),
    )


def deploy_directory(settings: Settings | None = None) -> list[Script]:
    settings = settings or get_settings()
    dsn = settings.psycopg_dsn
    if dsn is None:
        raise RuntimeError("A database URL is required to push. Pass --connection or set DATABASE_URL.")

    scripts = plan_directory(settings)
    if not scripts:
        get_logger(__name__).info("Nothing to deploy.", prefix=settings.scripts_dir.as_posix())
        return scripts

    deploy_script = build_deploy_script(
        scripts,
        tracked=settings.tracked,
        table=settings.migrations_table,
    )
    push_deploy_script(deploy_script, dsn=dsn)
    return scripts
