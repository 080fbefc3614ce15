"""Building blocks for applications: undoable commands, lifecycle states, counted resources, a worker pool, timeout locks and logging."""

__version__ = "0.1.0"