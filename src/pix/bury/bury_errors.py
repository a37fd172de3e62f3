"""Errors raised while burying published images."""

from __future__ import annotations

from ..exceptions import AppError


class BuryError(AppError):
    """Base error for quarantine moves."""


class InvalidNameError(BuryError):
    """A filename does not look like a published image name."""

    def __init__(self, message: str, filename: str) -> None:
        super().__init__(message)
        self.filename = filename


class BuryDistributionError(BuryError):
    """Moving files into quarantine failed."""
