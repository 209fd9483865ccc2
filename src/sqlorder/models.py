from __future__ import annotations

from dataclasses import dataclass
from pathlib import PurePath
from typing import Literal

ScriptKind = Literal["object", "migration", "routine"]

OBJECT: ScriptKind = "object"
MIGRATION: ScriptKind = "migration"
ROUTINE: ScriptKind = "routine"


@dataclass(frozen=True)
class Script:
    name: str
    contents: str
    hash: str | None = None

    @property
    def base_name(self) -> str:
        return base_name(self.name)


def base_name(name: str) -> str:
    # Only the last suffix is dropped: "a.b.sql" -> "a.b".
    return PurePath(name).stem
