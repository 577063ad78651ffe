"""Ad-unlock callback relay tracking per-user, per-script key completions."""

__version__ = "0.1.0"
