"""
Error types raised by catalog request handlers.
"""

from fastapi import status


class CatalogError(Exception):
    """Base error carrying the HTTP status the error page is rendered with."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(CatalogError):
    """A well-formed request whose target id resolves to no record."""

    status_code = status.HTTP_404_NOT_FOUND
