"""API routers."""

from . import backup, restore, health

__all__ = ["backup", "restore", "health"]
