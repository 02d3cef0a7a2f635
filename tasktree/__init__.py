"""tasktree - task dependency trees with linting."""

__version__ = "0.1.0"
