from __future__ import annotations

from typing import Sequence

from dbsync.logging import get_logger
from sqlorder.errors import CyclicDependencyError
from sqlorder.models import Script

DependencyGraph = dict[Script, set[Script]]


def build_dependency_graph(scripts: Sequence[Script]) -> DependencyGraph:
    """Map each script to the scripts whose base name appears in its contents.

    Containment is a plain substring test, so a name mentioned inside a comment
    or a string literal still counts. A direct A <-> B reference is rejected
    while edges are recorded; longer cycles are left to the sorter.
    """
    graph: DependencyGraph = {}
    for dependent in scripts:
        for dependency in scripts:
            if dependency is dependent or dependency.name == dependent.name:
                continue
            if dependency.base_name not in dependent.contents:
                continue
            if dependent in graph.get(dependency, ()):
                raise CyclicDependencyError((dependent.name, dependency.name))
            graph.setdefault(dependent, set()).add(dependency)

    get_logger(__name__).debug(
        "Dependency graph built.",
        scripts=len(scripts),
        edges=sum(len(deps) for deps in graph.values()),
    )
    return graph
