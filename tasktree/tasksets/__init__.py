from .store import (
    TasksetError,
    dump_tree,
    load_tasksets,
    read_taskset,
    save_taskset,
    taskset_path,
    tree_from_yaml,
)

__all__ = [
    "TasksetError",
    "dump_tree",
    "load_tasksets",
    "read_taskset",
    "save_taskset",
    "taskset_path",
    "tree_from_yaml",
]
