"""Derived dependency graph and symbolic task resolution."""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .models import Task

logger = logging.getLogger(__name__)

ROOT_NAME = "root"


@dataclass
class GraphNode:
    """Node of the dependency graph."""

    name: str
    complete: bool
    is_root: bool = False

    def __str__(self) -> str:
        """Return string representation."""
        if self.is_root:
            return ROOT_NAME
        return f"{self.name}: {self.complete}"


@dataclass
class GraphEdge:
    """Directed edge from a task to one of its dependencies.

    ``complete`` mirrors the target's completion flag when the graph was built.
    Edges leaving the root are always unlabeled (False).
    """

    source: int
    target: int
    complete: bool = False


@dataclass
class DependencyGraph:
    """Arena of nodes addressed by index, plus labeled edges."""

    nodes: list[GraphNode] = field(default_factory=list)
    edges: list[GraphEdge] = field(default_factory=list)
    root: int = 0
    _index: dict[str, int] = field(default_factory=dict, repr=False)

    def add_node(self, node: GraphNode) -> int:
        """Add a node and return its index."""
        self.nodes.append(node)
        index = len(self.nodes) - 1
        if not node.is_root:
            self._index[node.name] = index
        return index

    def add_edge(self, source: int, target: int, complete: bool = False) -> None:
        """Add a directed edge between two existing nodes."""
        self.edges.append(GraphEdge(source=source, target=target, complete=complete))

    def index_of(self, name: str) -> Optional[int]:
        """Get the node index of a task name.

        Returns:
            Node index or None if the task is not in the graph
        """
        return self._index.get(name)

    def neighbors(self, index: int) -> list[GraphEdge]:
        """Get outgoing edges of a node, in insertion order."""
        return [edge for edge in self.edges if edge.source == index]

    def dependencies_of(self, index: int) -> list[GraphNode]:
        """Get dependency nodes of a task node."""
        return [self.nodes[edge.target] for edge in self.neighbors(index)]

    def task_names(self) -> list[str]:
        """Get names of all task nodes (root excluded)."""
        return list(self._index)


def resolve_symbolic(tasks: Mapping[str, "Task"]) -> int:
    """Mark symbolic tasks complete once all their dependencies are complete.

    Runs passes until a full pass changes nothing. Completion is only ever
    set, never cleared, so at most ``len(tasks)`` passes make progress.
    Unknown dependencies count as incomplete.

    Args:
        tasks: Task map, mutated in place

    Returns:
        Number of tasks marked complete
    """
    resolved = 0
    passes = 0
    changed = True
    while changed:
        changed = False
        passes += 1
        for name, task in tasks.items():
            if not task.symbolic or task.complete:
                continue
            if all(dep in tasks and tasks[dep].complete for dep in task.depends_on):
                task.complete = True
                resolved += 1
                changed = True
                logger.debug(f"Symbolic task {name} resolved as complete")

    if resolved:
        logger.debug(f"Resolved {resolved} symbolic tasks in {passes} passes")
    return resolved


def build_graph(tasks: Mapping[str, "Task"]) -> DependencyGraph:
    """Build the dependency graph of a task map.

    Dependencies naming tasks outside the map are skipped here and reported
    by the linter.

    Args:
        tasks: Task map (symbolic tasks already resolved)

    Returns:
        New DependencyGraph whose nodes are the root plus one node per task
    """
    graph = DependencyGraph()
    graph.root = graph.add_node(GraphNode(name=ROOT_NAME, complete=True, is_root=True))

    for name, task in tasks.items():
        index = graph.add_node(GraphNode(name=name, complete=task.complete))
        graph.add_edge(graph.root, index)

    for name, task in tasks.items():
        source = graph.index_of(name)
        for dep in task.depends_on:
            target = graph.index_of(dep)
            if target is None:
                logger.debug(f"Skipping edge {name} -> {dep}: no such task")
                continue
            graph.add_edge(source, target, tasks[dep].complete)

    return graph
