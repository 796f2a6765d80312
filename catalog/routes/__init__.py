"""
Catalog route handlers, one router per record type.
"""

from .bookinstances import router as bookinstances_router
from .genres import router as genres_router

__all__ = ["bookinstances_router", "genres_router"]
