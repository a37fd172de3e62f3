"""Root exception hierarchy shared by pix feature packages."""

from __future__ import annotations

__all__ = ["AppError"]


class AppError(Exception):
    """Base class for application specific errors."""
