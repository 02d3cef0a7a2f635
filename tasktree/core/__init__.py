"""Task tree core: models, dependency graph and linter."""

from .graph import DependencyGraph, GraphEdge, GraphNode, build_graph, resolve_symbolic
from .lint import FindingKind, ImpossibleTaskReason, LintFinding, lint_tree
from .models import Task, Tree, merge_trees

__all__ = [
    "DependencyGraph",
    "FindingKind",
    "GraphEdge",
    "GraphNode",
    "ImpossibleTaskReason",
    "LintFinding",
    "Task",
    "Tree",
    "build_graph",
    "lint_tree",
    "merge_trees",
    "resolve_symbolic",
]
