"""
Error types raised by the trip/album/media operations.

Each carries the HTTP status the API answers with; main.py renders them as
``{"detail": message}``.
"""

from typing import Optional


class AppError(Exception):
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(AppError):
    """Identifier does not resolve, or a referenced document is missing."""
    status_code = 404


class ValidationFailed(AppError):
    """Missing or invalid field, malformed identifier, bad cover image."""
    status_code = 400


class Conflict(AppError):
    """Default album already exists, or the album is the only one for its item."""
    status_code = 400

    def __init__(self, message: str, album_id: Optional[str] = None):
        super().__init__(message)
        self.album_id = album_id
