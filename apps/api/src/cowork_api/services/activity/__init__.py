"""Activity log services."""

from .activity_logger import ActivityLogger, ClientInfo  # noqa: F401

__all__ = ["ActivityLogger", "ClientInfo"]
