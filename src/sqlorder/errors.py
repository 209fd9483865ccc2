from __future__ import annotations

from typing import Iterable


class CyclicDependencyError(ValueError):
    def __init__(self, scripts: Iterable[str]) -> None:
        self.scripts = tuple(scripts)
        separator = " and " if len(self.scripts) <= 2 else " -> "
        super().__init__(f"Cyclic dependency detected between {separator.join(self.scripts)}")
