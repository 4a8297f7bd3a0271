"""Track openspec change proposals on a kanban board."""

__version__ = "0.1.0"
