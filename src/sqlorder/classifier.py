from __future__ import annotations

import re

from sqlorder.models import MIGRATION, OBJECT, ROUTINE, Script, ScriptKind

_MIGRATION_NAME = re.compile(r"^\d+")
_ROUTINE_DECLARATION = re.compile(r"(?:create|alter|replace)\s+(?:function|procedure)\s", re.IGNORECASE)


def is_migration(script: Script) -> bool:
    return bool(_MIGRATION_NAME.match(script.base_name))


def is_routine(script: Script) -> bool:
    return not is_migration(script) and bool(_ROUTINE_DECLARATION.search(script.contents))


def is_object(script: Script) -> bool:
    return not is_migration(script) and not is_routine(script)


def classify(script: Script) -> ScriptKind:
    if is_migration(script):
        return MIGRATION
    if is_routine(script):
        return ROUTINE
    return OBJECT
