"""
Errors raised while turning an uploaded CSV into stored equipment rows.

Each error carries a short machine readable `code` plus a message that is
safe to show to the user, so the views can turn them into JSON responses
without any extra mapping tables.
"""
from __future__ import annotations


class IngestionError(Exception):
    """Base class for everything the upload pipeline can reject."""

    code = "upload_error"
    default_message = "Something went wrong while handling the upload."
    status_code = 400

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidFormatError(IngestionError):
    """Wrong file extension, unreadable CSV, or no usable rows after filtering."""

    code = "invalid_format"
    default_message = "Invalid file format. Please upload a CSV file with equipment data."


class FileTooLargeError(IngestionError):
    code = "file_too_large"
    default_message = "File is too large. Maximum size is 10 MB."
    status_code = 413


class PersistenceError(IngestionError):
    """The database refused the upload; nothing was stored."""

    code = "upload_failed"
    default_message = "Failed to save the upload. Please try again."
    status_code = 503
