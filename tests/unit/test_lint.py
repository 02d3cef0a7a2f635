"""Unit tests for the task tree linter."""

from datetime import datetime, timedelta

import pytest

from tasktree.core.lint import (
    FindingKind,
    ImpossibleTaskReason,
    LintFinding,
    find_cycles,
    find_floating_symbolic,
    find_missing_dependencies,
    lint_tree,
    remaining_time,
)
from tasktree.core.models import Task, Tree


@pytest.fixture
def now():
    """Fixed reference time."""
    return datetime(2030, 6, 1, 12, 0).astimezone()


def _tree(**tasks: Task) -> Tree:
    tree = Tree(tasks=tasks)
    tree.populate()
    return tree


def _kinds(findings):
    return [f.kind for f in findings]


def test_sound_tree_has_no_findings(now):
    """Test a well-formed, feasible tree lints clean."""
    tree = _tree(
        a=Task(estimated_time=timedelta(minutes=10)),
        b=Task(depends_on=["a"], estimated_time=timedelta(minutes=20), due=now + timedelta(hours=1)),
        m=Task(symbolic=True, depends_on=["b"]),
    )

    assert lint_tree(tree, now=now) == []


class TestFloatingSymbolic:
    """Tests for floating symbolic detection."""

    def test_anchored_by_real_task(self):
        """Test a symbolic task depending on real work is anchored."""
        tasks = {"work": Task(), "m": Task(symbolic=True, depends_on=["work"])}
        assert find_floating_symbolic(tasks) == []

    def test_only_unanchored_symbolic_dependency(self):
        """Test a symbolic task depending only on a floating symbolic task floats."""
        tasks = {
            "m1": Task(symbolic=True, depends_on=["m2"]),
            "m2": Task(symbolic=True, depends_on=["m1"]),
        }

        findings = find_floating_symbolic(tasks)

        assert {f.task_name for f in findings} == {"m1", "m2"}
        assert all(f.kind == FindingKind.FLOATING_SYMBOLIC for f in findings)

    def test_anchored_through_symbolic_chain(self):
        """Test anchoring propagates through other anchored symbolic tasks."""
        tasks = {
            "top": Task(symbolic=True, depends_on=["middle"]),
            "middle": Task(symbolic=True, depends_on=["work"]),
            "work": Task(),
        }
        assert find_floating_symbolic(tasks) == []

    def test_missing_dependency_does_not_anchor(self):
        """Test unknown dependencies do not anchor a symbolic task."""
        tasks = {"m": Task(symbolic=True, depends_on=["ghost"])}

        findings = find_floating_symbolic(tasks)

        assert [f.task_name for f in findings] == ["m"]

    def test_symbolic_without_dependencies_exempt(self):
        """Test symbolic tasks with no dependencies are not reported."""
        tasks = {"m": Task(symbolic=True)}
        assert find_floating_symbolic(tasks) == []


class TestCycles:
    """Tests for cycle detection."""

    def test_acyclic(self):
        """Test a diamond is not a cycle."""
        tasks = {
            "a": Task(depends_on=["b", "c"]),
            "b": Task(depends_on=["d"]),
            "c": Task(depends_on=["d"]),
            "d": Task(),
        }
        assert find_cycles(tasks) == []

    def test_back_edge(self):
        """Test mutual dependencies yield a witness."""
        tasks = {"a": Task(depends_on=["b"]), "b": Task(depends_on=["a"])}

        findings = find_cycles(tasks)

        assert len(findings) >= 1
        assert findings[0].kind == FindingKind.CYCLIC_DEPENDENCY
        assert (findings[0].task_name, findings[0].dependency) in {("a", "b"), ("b", "a")}

    def test_self_dependency(self):
        """Test a task depending on itself is a cycle."""
        tasks = {"a": Task(depends_on=["a"])}

        findings = find_cycles(tasks)

        assert [(f.task_name, f.dependency) for f in findings] == [("a", "a")]

    def test_witnesses_deduplicated(self):
        """Test a witness edge is reported once even with duplicate entries."""
        tasks = {
            "a": Task(depends_on=["b", "b"]),
            "b": Task(depends_on=["c"]),
            "c": Task(depends_on=["a"]),
        }

        findings = find_cycles(tasks)
        edges = [(f.task_name, f.dependency) for f in findings]

        assert edges == [("c", "a")]

    def test_each_disjoint_cycle_reported(self):
        """Test every separate cycle gets a witness."""
        tasks = {
            "a": Task(depends_on=["b"]),
            "b": Task(depends_on=["a"]),
            "x": Task(depends_on=["y"]),
            "y": Task(depends_on=["x"]),
        }

        findings = find_cycles(tasks)
        names = {f.task_name for f in findings} | {f.dependency for f in findings}

        assert {"a", "b"} & names
        assert {"x", "y"} & names

    def test_missing_dependency_ignored(self):
        """Test unknown names do not break the walk."""
        tasks = {"a": Task(depends_on=["ghost"])}
        assert find_cycles(tasks) == []

    def test_long_chain(self):
        """Test deep chains do not hit recursion limits."""
        tasks = {f"t{i}": Task(depends_on=[f"t{i + 1}"]) for i in range(5000)}
        tasks["t5000"] = Task()

        assert find_cycles(tasks) == []


class TestMissingDependencies:
    """Tests for nonexistent dependency detection."""

    def test_one_finding_per_missing_name(self):
        """Test each missing name is reported once per task."""
        tasks = {"a": Task(depends_on=["ghost", "b", "spirit", "ghost"]), "b": Task()}

        findings = find_missing_dependencies(tasks)

        assert findings == [
            LintFinding(FindingKind.NONEXISTENT_DEPENDENCY, "a", dependency="ghost"),
            LintFinding(FindingKind.NONEXISTENT_DEPENDENCY, "a", dependency="spirit"),
        ]


class TestSchedule:
    """Tests for schedule feasibility."""

    def test_due_now_zero_estimate_passes(self, now):
        """Test a task due exactly now with no work left passes."""
        tree = _tree(a=Task(due=now))
        assert lint_tree(tree, now=now) == []

    def test_due_in_past(self, now):
        """Test an open task due one second ago is impossible."""
        tree = _tree(a=Task(due=now - timedelta(seconds=1)))

        findings = lint_tree(tree, now=now)

        assert findings == [
            LintFinding(
                FindingKind.IMPOSSIBLE_TASK,
                "a",
                reason=ImpossibleTaskReason.DUE_IN_PAST,
            )
        ]

    def test_complete_task_not_due_in_past(self, now):
        """Test a finished task past its due date is checked for time, not DueInPast."""
        tree = _tree(a=Task(due=now - timedelta(days=1), complete=True, estimated_time=3600))

        findings = lint_tree(tree, now=now)

        assert [f.reason for f in findings] == [ImpossibleTaskReason.NOT_ENOUGH_TIME]

    def test_complete_task_own_estimate_counts(self, now):
        """Test a finished task still needs its own estimate before the due date."""
        tree = _tree(
            a=Task(
                complete=True,
                estimated_time=timedelta(hours=2),
                due=now + timedelta(minutes=10),
            )
        )

        findings = lint_tree(tree, now=now)

        assert findings == [
            LintFinding(
                FindingKind.IMPOSSIBLE_TASK,
                "a",
                reason=ImpossibleTaskReason.NOT_ENOUGH_TIME,
            )
        ]

    def test_complete_task_with_time_to_spare_passes(self, now):
        """Test a finished task whose estimate fits before the due date passes."""
        tree = _tree(
            a=Task(
                complete=True,
                estimated_time=timedelta(minutes=5),
                due=now + timedelta(minutes=10),
            )
        )

        assert lint_tree(tree, now=now) == []

    def test_not_enough_time(self, now):
        """Test own plus dependency estimates exceeding the due date."""
        tree = _tree(
            a=Task(
                due=now + timedelta(hours=1),
                estimated_time=timedelta(minutes=30),
                depends_on=["b"],
            ),
            b=Task(estimated_time=timedelta(minutes=40)),
        )

        findings = lint_tree(tree, now=now)

        assert [(f.task_name, f.reason) for f in findings] == [
            ("a", ImpossibleTaskReason.NOT_ENOUGH_TIME)
        ]

    def test_skipped_when_cyclic(self, now):
        """Test schedule check does not run on cyclic trees."""
        tree = _tree(
            a=Task(depends_on=["b"], due=now - timedelta(days=1)),
            b=Task(depends_on=["a"]),
        )

        findings = lint_tree(tree, now=now)

        assert FindingKind.CYCLIC_DEPENDENCY in _kinds(findings)
        assert FindingKind.IMPOSSIBLE_TASK not in _kinds(findings)

    def test_remaining_time_prunes_complete(self):
        """Test descent stops at complete dependencies."""
        tasks = {
            "a": Task(estimated_time=timedelta(minutes=10), depends_on=["b"]),
            "b": Task(estimated_time=timedelta(minutes=20), complete=True, depends_on=["c"]),
            "c": Task(estimated_time=timedelta(minutes=40)),
        }

        assert remaining_time(tasks, "a") == timedelta(minutes=10)

    def test_remaining_time_counts_shared_dependency_once(self):
        """Test diamond dependencies are counted once."""
        tasks = {
            "a": Task(estimated_time=timedelta(minutes=5), depends_on=["b", "c"]),
            "b": Task(estimated_time=timedelta(minutes=10), depends_on=["d"]),
            "c": Task(estimated_time=timedelta(minutes=10), depends_on=["d"]),
            "d": Task(estimated_time=timedelta(minutes=30)),
        }

        assert remaining_time(tasks, "a") == timedelta(minutes=55)


def test_report_order(now):
    """Test findings come in check order: floating, cyclic, missing."""
    tree = _tree(
        m=Task(symbolic=True, depends_on=["n"]),
        n=Task(symbolic=True, depends_on=["m"]),
        a=Task(depends_on=["ghost"]),
    )

    kinds = _kinds(lint_tree(tree, now=now))

    assert kinds[0] == FindingKind.FLOATING_SYMBOLIC
    assert kinds.index(FindingKind.CYCLIC_DEPENDENCY) > kinds.index(FindingKind.FLOATING_SYMBOLIC)
    assert kinds[-1] == FindingKind.NONEXISTENT_DEPENDENCY


def test_all_findings_accumulated(now):
    """Test every check reports, not just the first failing one."""
    tree = _tree(
        m=Task(symbolic=True, depends_on=["s"]),
        s=Task(symbolic=True, depends_on=["ghost"]),
        late=Task(due=now - timedelta(hours=1)),
    )

    kinds = _kinds(lint_tree(tree, now=now))

    assert kinds.count(FindingKind.FLOATING_SYMBOLIC) == 2
    assert kinds.count(FindingKind.NONEXISTENT_DEPENDENCY) == 1
    assert kinds.count(FindingKind.IMPOSSIBLE_TASK) == 1


def test_end_to_end_completion_clears_finding(now):
    """Test completing the blocking dependency makes the plan feasible."""
    tree = _tree(
        root_task=Task(
            due=now + timedelta(hours=1),
            estimated_time=timedelta(minutes=30),
            depends_on=["sub"],
        ),
        sub=Task(estimated_time=timedelta(minutes=45)),
    )

    findings = lint_tree(tree, now=now)
    assert [(f.task_name, f.reason) for f in findings] == [
        ("root_task", ImpossibleTaskReason.NOT_ENOUGH_TIME)
    ]

    tree.set_complete("sub")

    assert lint_tree(tree, now=now) == []


def test_lint_defaults_to_current_time():
    """Test lint samples the clock when no time is given."""
    tree = _tree(a=Task(due=datetime.now().astimezone() - timedelta(minutes=5)))

    findings = lint_tree(tree)

    assert findings[0].reason == ImpossibleTaskReason.DUE_IN_PAST


def test_finding_str():
    """Test findings render with kind, task and message."""
    finding = LintFinding(FindingKind.CYCLIC_DEPENDENCY, "a", dependency="b")

    assert str(finding) == "CyclicDependency [a]: cyclic dependency on b"
