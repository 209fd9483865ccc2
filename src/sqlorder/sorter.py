from __future__ import annotations

from typing import Iterator, Mapping, Sequence

from sqlorder.errors import CyclicDependencyError
from sqlorder.models import Script

_IN_PROGRESS = 1
_DONE = 2


def topological_sort(
    scripts: Sequence[Script],
    graph: Mapping[Script, set[Script]],
) -> list[Script]:
    """Order scripts so every dependency comes before the scripts that need it.

    Depth-first post-order with an explicit stack. Roots and dependencies are
    visited in input order, so scripts without constraints between them keep
    the caller's order. Reaching a script that is still on the stack means the
    graph has a cycle, whatever its length.

    Scripts are keyed by value: two equal Script entries (same name, contents
    and hash) are one node and appear once in the result. Same-named files
    loaded from several directories need distinct names to be kept apart.
    """
    position = {script: index for index, script in enumerate(scripts)}

    def _dependencies(script: Script) -> Iterator[Script]:
        deps = [dep for dep in graph.get(script, ()) if dep in position]
        return iter(sorted(deps, key=position.__getitem__))

    state: dict[Script, int] = {}
    ordered: list[Script] = []
    for root in scripts:
        if root in state:
            continue
        state[root] = _IN_PROGRESS
        stack: list[tuple[Script, Iterator[Script]]] = [(root, _dependencies(root))]
        while stack:
            script, pending = stack[-1]
            for dep in pending:
                dep_state = state.get(dep)
                if dep_state is None:
                    state[dep] = _IN_PROGRESS
                    stack.append((dep, _dependencies(dep)))
                    break
                if dep_state == _IN_PROGRESS:
                    path = [entry.name for entry, _ in stack]
                    start = path.index(dep.name)
                    raise CyclicDependencyError([*path[start:], dep.name])
            else:
                stack.pop()
                state[script] = _DONE
                ordered.append(script)
    return ordered
