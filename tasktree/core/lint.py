"""Task tree linter.

Checks run in a fixed order so reports are deterministic:

1. floating symbolic tasks
2. cyclic dependencies
3. nonexistent dependencies
4. impossible schedules (skipped when a cycle was found)
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

from ..utils.timeparse import local_timezone
from .models import Task, Tree

logger = logging.getLogger(__name__)


class FindingKind(str, Enum):
    """Kind of lint finding."""

    FLOATING_SYMBOLIC = "FloatingSymbolic"
    CYCLIC_DEPENDENCY = "CyclicDependency"
    NONEXISTENT_DEPENDENCY = "NonexistentDependency"
    IMPOSSIBLE_TASK = "ImpossibleTaskError"


class ImpossibleTaskReason(str, Enum):
    """Why a task cannot be finished on time."""

    # Estimated time of the task and its open dependencies runs past the due date
    NOT_ENOUGH_TIME = "NotEnoughTime"
    # Due date already passed while the task is still open
    DUE_IN_PAST = "DueInPast"


@dataclass(frozen=True)
class LintFinding:
    """A single problem found in a task tree."""

    kind: FindingKind
    task_name: str
    dependency: Optional[str] = None
    reason: Optional[ImpossibleTaskReason] = None

    @property
    def message(self) -> str:
        """Human-readable description."""
        if self.kind == FindingKind.FLOATING_SYMBOLIC:
            return "a symbolic task must have at least one non-symbolic dependency"
        if self.kind == FindingKind.CYCLIC_DEPENDENCY:
            return f"cyclic dependency on {self.dependency}"
        if self.kind == FindingKind.NONEXISTENT_DEPENDENCY:
            return f"nonexistent dependency {self.dependency}"
        if self.reason == ImpossibleTaskReason.DUE_IN_PAST:
            return "task is impossible given constraints: due date is in the past"
        return "task is impossible given constraints: not enough time before due date"

    def __str__(self) -> str:
        """Return string representation."""
        return f"{self.kind.value} [{self.task_name}]: {self.message}"


def lint_tree(tree: Tree, now: Optional[datetime] = None) -> list[LintFinding]:
    """Lint a task tree.

    Args:
        tree: Tree to check
        now: Reference time for schedule checks (default: current local time)

    Returns:
        List of findings (empty if the tree is sound)
    """
    if now is None:
        now = datetime.now(local_timezone())

    tasks = tree.tasks
    findings: list[LintFinding] = []

    findings.extend(find_floating_symbolic(tasks))

    cycles = find_cycles(tasks)
    findings.extend(cycles)

    findings.extend(find_missing_dependencies(tasks))

    if cycles:
        logger.info("Skipping schedule check: dependency graph has cycles")
    else:
        findings.extend(find_impossible_tasks(tasks, now))

    logger.info(f"Lint finished with {len(findings)} findings over {len(tasks)} tasks")
    return findings


def find_floating_symbolic(tasks: dict[str, Task]) -> list[LintFinding]:
    """Find symbolic tasks not anchored to any real work.

    A task is anchored when one of its dependencies is non-symbolic or is
    itself anchored. Symbolic tasks without dependencies are exempt.
    """
    anchored: set[str] = set()
    found_new = True
    while found_new:
        found_new = False
        for name, task in tasks.items():
            if name in anchored or not task.depends_on:
                continue
            for dep in task.depends_on:
                dep_task = tasks.get(dep)
                if dep_task is None:
                    continue
                if not dep_task.symbolic or dep in anchored:
                    anchored.add(name)
                    found_new = True
                    break

    return [
        LintFinding(kind=FindingKind.FLOATING_SYMBOLIC, task_name=name)
        for name, task in tasks.items()
        if task.symbolic and task.depends_on and name not in anchored
    ]


def find_cycles(tasks: dict[str, Task]) -> list[LintFinding]:
    """Find dependency cycles.

    Iterative depth-first walk along ``depends_on``. Reaching a task that is
    already on the current path records ``(current, dependency)`` as a
    witness edge. Each task is expanded once, so every cycle yields at least
    one witness.
    """
    witnesses: dict[tuple[str, str], None] = {}
    finished: set[str] = set()

    for start in tasks:
        if start in finished:
            continue

        path: list[str] = [start]
        on_path: set[str] = {start}
        stack = [iter(tasks[start].depends_on)]

        while stack:
            current = path[-1]
            dep = next(stack[-1], None)
            if dep is None:
                stack.pop()
                path.pop()
                on_path.discard(current)
                finished.add(current)
                continue
            if dep not in tasks:
                continue
            if dep in on_path:
                witnesses[(current, dep)] = None
                continue
            if dep in finished:
                continue
            path.append(dep)
            on_path.add(dep)
            stack.append(iter(tasks[dep].depends_on))

    if witnesses:
        logger.debug(f"Found {len(witnesses)} cycle witness edges")

    return [
        LintFinding(kind=FindingKind.CYCLIC_DEPENDENCY, task_name=task_name, dependency=dependency)
        for task_name, dependency in witnesses
    ]


def find_missing_dependencies(tasks: dict[str, Task]) -> list[LintFinding]:
    """Find dependencies naming tasks that do not exist.

    Repeated names in one ``depends_on`` list are reported once.
    """
    findings = []
    for name, task in tasks.items():
        for dep in dict.fromkeys(task.depends_on):
            if dep not in tasks:
                findings.append(
                    LintFinding(
                        kind=FindingKind.NONEXISTENT_DEPENDENCY,
                        task_name=name,
                        dependency=dep,
                    )
                )
    return findings


def remaining_time(tasks: dict[str, Task], name: str) -> timedelta:
    """Estimate the time left to finish a task.

    Sums the task's own estimate and the estimates of every incomplete task
    reachable through ``depends_on``. Descent stops at complete tasks and each
    task is counted once.

    Args:
        tasks: Task map (must be acyclic)
        name: Task to estimate

    Returns:
        Total remaining time
    """
    total = tasks[name].estimated_time or timedelta(0)
    seen = {name}
    stack = list(tasks[name].depends_on)

    while stack:
        dep = stack.pop()
        if dep in seen or dep not in tasks:
            continue
        seen.add(dep)
        dep_task = tasks[dep]
        if dep_task.complete:
            continue
        total += dep_task.estimated_time or timedelta(0)
        stack.extend(dep_task.depends_on)

    return total


def find_impossible_tasks(tasks: dict[str, Task], now: datetime) -> list[LintFinding]:
    """Find tasks that cannot be finished by their due date.

    Only open tasks can be due in the past. Every task with a due date, complete
    or not, must fit its remaining time before the deadline.
    """
    findings = []
    for name, task in tasks.items():
        if task.due is None:
            continue

        if task.due < now and not task.complete:
            findings.append(
                LintFinding(
                    kind=FindingKind.IMPOSSIBLE_TASK,
                    task_name=name,
                    reason=ImpossibleTaskReason.DUE_IN_PAST,
                )
            )
            continue

        needed = remaining_time(tasks, name)
        if now + needed > task.due:
            logger.debug(f"Task {name} needs {needed}, due {task.due}")
            findings.append(
                LintFinding(
                    kind=FindingKind.IMPOSSIBLE_TASK,
                    task_name=name,
                    reason=ImpossibleTaskReason.NOT_ENOUGH_TIME,
                )
            )

    return findings
