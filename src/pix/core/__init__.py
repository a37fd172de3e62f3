"""Core settings for pix."""

from .config import EnvSettings

__all__ = ["EnvSettings"]
