from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path
from typing import Any, Sequence

import yaml

from dbsync.logging import get_logger
from dbsync.settings import Settings
from sqlorder.classifier import classify
from sqlorder.models import Script

_REQUIRED_TOP_LEVEL = {"generated_at_utc", "scripts_dir", "tracked", "scripts"}
_REQUIRED_SCRIPT = {"position", "name", "kind", "hash"}


def utc_now_iso() -> str:
    return datetime.now(UTC).replace(microsecond=0).isoformat().replace("+00:00", "Z")


def build_plan_manifest(
    scripts: Sequence[Script],
    *,
    settings: Settings,
    generated_at_utc: str | None = None,
) -> dict[str, Any]:
    return {
        "generated_at_utc": generated_at_utc or utc_now_iso(),
        "app_env": settings.app_env,
        "scripts_dir": Path(settings.scripts_dir).as_posix(),
        "tracked": settings.uses_tracking_table,
        "migrations_table": settings.migrations_table if settings.tracked else None,
        "scripts": [
            {
                "position": position,
                "name": script.name,
                "kind": classify(script),
                "hash": script.hash,
            }
            for position, script in enumerate(scripts, start=1)
        ],
    }


def validate_plan_manifest(manifest: dict[str, Any]) -> list[str]:
    errors: list[str] = []
    missing = _REQUIRED_TOP_LEVEL - set(manifest.keys())
    if missing:
        errors.append(f"Missing top-level keys: {sorted(missing)}")

    entries = manifest.get("scripts", [])
    if not isinstance(entries, list):
        errors.append("Field 'scripts' must be a list.")
        return errors
    for index, entry in enumerate(entries):
        if not isinstance(entry, dict):
            errors.append(f"Script entry {index} must be a mapping.")
            continue
        entry_missing = _REQUIRED_SCRIPT - set(entry.keys())
        if entry_missing:
            errors.append(f"Script entry {index} missing keys: {sorted(entry_missing)}")
    return errors


def write_plan_manifest(scripts: Sequence[Script], path: Path, *, settings: Settings) -> dict[str, Any]:
    manifest = build_plan_manifest(scripts, settings=settings)
    errors = validate_plan_manifest(manifest)
    if errors:
        raise ValueError("; ".join(errors))

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(manifest, sort_keys=False, allow_unicode=True), encoding="utf-8")
    get_logger(__name__).info("Plan manifest written.", path=path.as_posix(), scripts=len(scripts))
    return manifest
