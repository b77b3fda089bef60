"""Dependency graph for named expressions with topological ordering."""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable

from wolfcalc._errors import CircularReferenceError


class DependencyGraph:
    """Tracks which named expressions read which other names.

    Only names added with :meth:`add_node` take part in ordering; edges to
    other names (plain bindings) are kept but never block a node.
    """

    __slots__ = ("dependencies", "dependents")

    def __init__(self) -> None:
        # name -> names it reads from (insertion ordered)
        self.dependencies: dict[str, list[str]] = {}
        # name -> names that read from it (reverse edges)
        self.dependents: dict[str, list[str]] = {}

    def add_node(self, name: str, dependencies: Iterable[str] = ()) -> None:
        """Register *name* and the names it depends on."""
        deps: list[str] = []
        for dep in dependencies:
            if dep not in deps:
                deps.append(dep)
        self.dependencies[name] = deps

        for dep in deps:
            readers = self.dependents.setdefault(dep, [])
            if name not in readers:
                readers.append(name)

    def topological_order(self) -> list[str]:
        """Return nodes in evaluation order (Kahn's algorithm).

        Ties keep insertion order.  Raises CircularReferenceError if a cycle
        is detected.
        """
        nodes = list(self.dependencies)
        if not nodes:
            return []
        node_set = set(nodes)

        # Only count deps that are themselves nodes
        in_degree: dict[str, int] = {
            name: sum(1 for dep in self.dependencies[name] if dep in node_set)
            for name in nodes
        }

        queue: deque[str] = deque(name for name in nodes if in_degree[name] == 0)
        order: list[str] = []
        while queue:
            name = queue.popleft()
            order.append(name)
            for reader in self.dependents.get(name, []):
                if reader in node_set:
                    in_degree[reader] -= 1
                    if in_degree[reader] == 0:
                        queue.append(reader)

        if len(order) != len(nodes):
            missing = [name for name in nodes if name not in set(order)]
            raise CircularReferenceError(
                f"Circular reference detected involving: {', '.join(missing)}"
            )

        return order
