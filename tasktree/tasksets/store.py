"""Taskset files: YAML documents holding a ``tasks`` mapping."""

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from ..core.models import Tree

logger = logging.getLogger(__name__)

TASKSET_SUFFIX = ".yml"


class TasksetError(Exception):
    """Taskset could not be read or written."""

    pass


def taskset_path(tasksets_path: Path, name: str) -> Path:
    """Get the file path of a named taskset."""
    return Path(tasksets_path) / f"{name}{TASKSET_SUFFIX}"


def tree_from_yaml(text: str) -> Tree:
    """Parse a tree from YAML text.

    An empty document is an empty tree.

    Raises:
        TasksetError: If the text is not a valid taskset
    """
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise TasksetError(f"Invalid YAML: {e}")

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise TasksetError("Taskset must be a mapping with a 'tasks' key")
    if data.get("tasks") is None:
        data["tasks"] = {}

    try:
        tree = Tree(**data)
    except ValidationError as e:
        raise TasksetError(f"Taskset validation failed: {e}")

    tree.populate()
    return tree


def dump_tree(tree: Tree) -> str:
    """Serialize a tree to YAML text."""
    data = tree.model_dump(mode="json", exclude_none=True)
    return yaml.safe_dump(data, default_flow_style=False, sort_keys=False, allow_unicode=True)


def read_taskset(path: Path, strict: bool = True) -> Tree:
    """Read a taskset file.

    A missing file is an empty taskset.

    Args:
        path: Taskset file
        strict: Raise on invalid content instead of skipping it

    Returns:
        Populated Tree

    Raises:
        TasksetError: If strict and the file is unreadable or invalid
    """
    if not path.exists():
        logger.debug(f"Taskset {path} does not exist, starting empty")
        return Tree()

    try:
        text = path.read_text(encoding="utf-8")
        return tree_from_yaml(text)
    except (OSError, UnicodeDecodeError, TasksetError) as e:
        if strict:
            raise TasksetError(f"Refusing to use invalid taskset {path}: {e}") from e
        logger.warning(f"Skipping taskset file {path} due to {e}")
        return Tree()


def load_tasksets(tasksets_path: Path, names: list[str]) -> Tree:
    """Load and merge named tasksets, later sets winning on name clashes.

    Unreadable or invalid tasksets are skipped with a warning.
    """
    tree = Tree()
    for name in names:
        tree += read_taskset(taskset_path(tasksets_path, name), strict=False)
    logger.info(f"Loaded {len(tree.tasks)} tasks from {len(names)} tasksets")
    return tree


def save_taskset(tree: Tree, path: Path) -> None:
    """Write a taskset file atomically.

    The graph is rebuilt first so symbolic completion is persisted.

    Args:
        tree: Tree to save
        path: Destination path
    """
    tree.populate()
    path.parent.mkdir(parents=True, exist_ok=True)

    # Atomic write: temp file -> rename
    temp_path = path.with_suffix(".tmp")
    with open(temp_path, "w", encoding="utf-8") as f:
        f.write(dump_tree(tree))
        f.flush()
    temp_path.replace(path)
    logger.debug(f"Saved {len(tree.tasks)} tasks to {path}")
