"""Git backend for reading commit history"""

from gitlanes.git_backend.history import collect_decorations, load_commits, open_repository

__all__ = ["collect_decorations", "load_commits", "open_repository"]
