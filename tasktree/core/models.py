"""Task and task tree models."""

import logging
from datetime import datetime, timedelta
from typing import Optional

from pydantic import BaseModel, Field, PrivateAttr, field_validator

from ..utils.timeparse import DurationParseError, local_timezone, parse_duration
from .graph import DependencyGraph, build_graph, resolve_symbolic

logger = logging.getLogger(__name__)


class Task(BaseModel):
    """A single unit of work."""

    description: str = Field(default="", description="Free-text description")
    estimated_time: Optional[timedelta] = Field(
        default=None,
        description="Estimated time to complete (absent = zero)",
    )
    depends_on: list[str] = Field(default_factory=list, description="Names of prerequisite tasks")
    symbolic: bool = Field(
        default=False,
        description="Milestone task, complete once all dependencies are complete",
    )
    complete: bool = Field(default=False, description="Whether the task is done")
    due: Optional[datetime] = Field(default=None, description="Due date (local time)")

    @field_validator("estimated_time", mode="before")
    @classmethod
    def _parse_human_duration(cls, value):
        # ISO-8601 strings and numbers are left to pydantic
        if isinstance(value, str) and value and not value.upper().startswith(("P", "-P")):
            try:
                return parse_duration(value)
            except DurationParseError:
                return value
        return value

    @field_validator("estimated_time")
    @classmethod
    def _non_negative(cls, value: Optional[timedelta]) -> Optional[timedelta]:
        if value is not None and value < timedelta(0):
            raise ValueError("estimated_time must not be negative")
        return value

    @field_validator("due")
    @classmethod
    def _localize_due(cls, value: Optional[datetime]) -> Optional[datetime]:
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=local_timezone())
        return value


class Tree(BaseModel):
    """A set of named tasks and their derived dependency graph.

    Only ``tasks`` is persisted. The dependency graph is rebuilt by
    :meth:`populate` and must be refreshed after every edit.
    """

    tasks: dict[str, Task] = Field(default_factory=dict, description="Tasks keyed by name")

    _graph: Optional[DependencyGraph] = PrivateAttr(default=None)

    @property
    def graph(self) -> DependencyGraph:
        """Derived dependency graph, built on first access."""
        if self._graph is None:
            self.populate()
        return self._graph

    def populate(self) -> DependencyGraph:
        """Resolve symbolic tasks and rebuild the dependency graph.

        Returns:
            The freshly built graph
        """
        resolve_symbolic(self.tasks)
        self._graph = build_graph(self.tasks)
        return self._graph

    def insert_task(self, name: str, task: Task) -> None:
        """Insert or replace a task by name."""
        if name in self.tasks:
            logger.info(f"Replacing task {name}")
        self.tasks[name] = task
        self.populate()

    def remove_task(self, name: str) -> bool:
        """Remove a task by name.

        Returns:
            True if the task existed
        """
        removed = self.tasks.pop(name, None) is not None
        if not removed:
            logger.warning(f"Task {name} not found, nothing removed")
        self.populate()
        return removed

    def set_complete(self, name: str, complete: bool = True) -> bool:
        """Set the completion flag of a task.

        Returns:
            True if the task exists
        """
        task = self.tasks.get(name)
        if task is None:
            logger.warning(f"Task {name} not found")
            return False
        task.complete = complete
        self.populate()
        return True

    def merge(self, other: "Tree") -> "Tree":
        """Return the union of both task maps, ``other`` winning on name clashes.

        Neither operand is modified.
        """
        tasks = {name: task.model_copy(deep=True) for name, task in self.tasks.items()}
        for name, task in other.tasks.items():
            tasks[name] = task.model_copy(deep=True)
        merged = Tree(tasks=tasks)
        merged.populate()
        return merged

    def __add__(self, other: "Tree") -> "Tree":
        if not isinstance(other, Tree):
            return NotImplemented
        return self.merge(other)

    def __iadd__(self, other: "Tree") -> "Tree":
        if not isinstance(other, Tree):
            return NotImplemented
        return self.merge(other)


def merge_trees(*trees: Tree) -> Tree:
    """Merge trees left to right (last writer wins)."""
    result = Tree()
    for tree in trees:
        result = result.merge(tree)
    result.populate()
    return result
