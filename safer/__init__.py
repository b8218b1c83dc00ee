"""SAFER: delivery items under a WIP limit, with a git-backed audit trail."""

__version__ = "1.0.0"
