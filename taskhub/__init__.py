"""Task tracking service: tasks, comments, per-user stats and an admin-managed user base."""

__version__ = "1.0.0"
