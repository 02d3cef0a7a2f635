"""Text rendering of task trees and lint findings."""

import json

from ..core.graph import DependencyGraph
from ..core.lint import LintFinding
from ..core.models import Task

BRANCH = "├── "
LAST_BRANCH = "└── "
PIPE = "│   "
SPACE = "    "


def render_graph(graph: DependencyGraph) -> str:
    """Render the dependency graph as an indented tree from the root.

    Every task hangs off the root, with its dependencies nested below it.
    A dependency already on the current path is printed once more and not
    expanded.

    Args:
        graph: Populated dependency graph

    Returns:
        Multi-line tree text
    """
    lines = [str(graph.nodes[graph.root])]
    _render_children(graph, graph.root, "", {graph.root}, lines)
    return "\n".join(lines)


def _render_children(
    graph: DependencyGraph,
    index: int,
    prefix: str,
    path: set[int],
    lines: list[str],
) -> None:
    edges = graph.neighbors(index)
    for position, edge in enumerate(edges):
        last = position == len(edges) - 1
        node = graph.nodes[edge.target]
        marker = "✓" if node.complete else "✗"
        label = f"{node.name} {marker}"
        if edge.target in path:
            label += " (cycle)"
        lines.append(prefix + (LAST_BRANCH if last else BRANCH) + label)
        if edge.target not in path:
            _render_children(
                graph,
                edge.target,
                prefix + (SPACE if last else PIPE),
                path | {edge.target},
                lines,
            )


def format_finding(finding: LintFinding) -> str:
    """Format a lint finding as a single line."""
    return str(finding)


def task_to_json(task: Task) -> str:
    """Serialize a task as pretty JSON."""
    return json.dumps(task.model_dump(mode="json", exclude_none=True), indent=2)


def tasks_to_json(tasks: dict[str, Task]) -> str:
    """Serialize a task map as pretty JSON."""
    data = {name: task.model_dump(mode="json", exclude_none=True) for name, task in tasks.items()}
    return json.dumps(data, indent=2)
