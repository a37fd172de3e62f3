"""Domain-specific exceptions for the upload pipeline.

Every error carries the terse, client-safe ``message`` that ends up in the
terminal response and in the ``upload_error`` notification.
"""

from __future__ import annotations

from ..exceptions import AppError


class UploadError(AppError):
    """Base class for upload failures reported back to the client."""

    status_code = 500
    default_message = "Upload failed."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ClientInputError(UploadError):
    """The request or the submitted image is unacceptable."""

    status_code = 400
    default_message = "Invalid upload."


class PayloadTooLargeError(ClientInputError):
    status_code = 413
    default_message = "File is too large."


class MissingImageError(ClientInputError):
    default_message = "No image."


class UnsupportedFormatError(ClientInputError):
    status_code = 415
    default_message = "Invalid image format."


class BadSpoilerError(ClientInputError):
    default_message = "Bad spoiler."


class DimensionError(ClientInputError):
    default_message = "Invalid image dimensions."


class TooWideError(DimensionError):
    default_message = "Image is too wide."


class TooTallError(DimensionError):
    default_message = "Image is too tall."


class UploadAbortedError(ClientInputError):
    default_message = "Upload was aborted."


class ProcessingError(UploadError):
    """Raster engine, classifier or fingerprint tool failure."""

    default_message = "Bad image."


class HashError(ProcessingError):
    default_message = "Hashing error."


class DuplicateError(UploadError):
    """The perceptual fingerprint matches an existing image."""

    status_code = 409
    default_message = "Duplicate image."

    def __init__(self, existing_id: str, message: str | None = None) -> None:
        self.existing_id = existing_id
        super().__init__(message or f"Duplicate of image {existing_id}.")


class DistributionError(UploadError):
    """Moving working files into permanent storage failed."""

    default_message = "Distro failure."


class InternalError(UploadError):
    default_message = "Invalid request."


class TrackingWarning(AppError):
    """Temp registry update failed; logged, never aborts a session."""
