"""Deployment order for a flat set of SQL scripts.

Object scripts (tables, types, views) come first, ordered by the references
between them. Numbered migrations follow in name order and never take part in
dependency ordering. Functions and procedures run last, ordered by the
references between them.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

from dbsync.logging import get_logger
from sqlorder.classifier import classify
from sqlorder.graph import build_dependency_graph
from sqlorder.loader import load_scripts
from sqlorder.models import MIGRATION, OBJECT, ROUTINE, Script, ScriptKind
from sqlorder.sorter import topological_sort


def partition_scripts(scripts: Iterable[Script]) -> dict[ScriptKind, list[Script]]:
    partitions: dict[ScriptKind, list[Script]] = {OBJECT: [], MIGRATION: [], ROUTINE: []}
    for script in scripts:
        partitions[classify(script)].append(script)
    return partitions


def sort_by_dependencies(scripts: list[Script]) -> list[Script]:
    return topological_sort(scripts, build_dependency_graph(scripts))


def order_scripts(scripts: Iterable[Script]) -> list[Script]:
    partitions = partition_scripts(scripts)
    ordered_objects = sort_by_dependencies(partitions[OBJECT])
    ordered_migrations = sorted(partitions[MIGRATION], key=lambda script: script.name)
    ordered_routines = sort_by_dependencies(partitions[ROUTINE])

    get_logger(__name__).debug(
        "Scripts ordered.",
        objects=len(ordered_objects),
        migrations=len(ordered_migrations),
        routines=len(ordered_routines),
    )
    return [*ordered_objects, *ordered_migrations, *ordered_routines]


def order_script_paths(paths: Iterable[str | Path]) -> list[Script]:
    return order_scripts(load_scripts(paths))
