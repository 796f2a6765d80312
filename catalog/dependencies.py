"""
FastAPI dependencies.
"""

from fastapi import Request

from .database import CatalogDatabase


def get_database(request: Request) -> CatalogDatabase:
    """Catalog database opened by the application lifespan."""
    return request.app.state.database
