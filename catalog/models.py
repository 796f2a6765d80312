"""
Pydantic models for catalog records and view payloads.
"""

from datetime import date, datetime
from enum import Enum
from typing import List, Optional

from bson import ObjectId
from pydantic import BaseModel, Field, validator

# Month abbreviations used for display, independent of the process locale.
MONTH_ABBREVIATIONS = (
    "Jan", "Feb", "Mar", "Apr", "May", "Jun",
    "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
)


def _object_id_to_str(value):
    if isinstance(value, ObjectId):
        return str(value)
    return value


class BookInstanceStatus(str, Enum):
    """Lifecycle labels for a physical copy."""
    AVAILABLE = "Available"
    MAINTENANCE = "Maintenance"
    LOANED = "Loaned"
    RESERVED = "Reserved"


class Book(BaseModel):
    """Book record. Read-only from the catalog handlers."""
    id: Optional[str] = Field(None, description="Unique book identifier")
    title: str = Field(..., description="Book title")
    author: Optional[str] = Field(None, description="Author identifier")
    summary: Optional[str] = Field(None, description="Book summary")
    isbn: Optional[str] = Field(None, description="ISBN")
    genre: List[str] = Field(default_factory=list, description="Genre identifiers")

    @validator('id', 'author', pre=True)
    def convert_object_id(cls, v):
        return _object_id_to_str(v)

    @validator('genre', pre=True)
    def convert_genre_ids(cls, v):
        """Stored genre references are ObjectIds."""
        if v is None:
            return []
        return [_object_id_to_str(item) for item in v]


class Genre(BaseModel):
    """Genre record."""
    id: Optional[str] = Field(None, description="Unique genre identifier")
    name: str = Field(..., description="Genre name")

    @validator('id', pre=True)
    def convert_object_id(cls, v):
        return _object_id_to_str(v)

    @property
    def url(self) -> str:
        """Canonical detail URL."""
        return f"/catalog/genre/{self.id}"


class BookInstanceBase(BaseModel):
    """Fields shared by stored and populated book instances."""
    id: Optional[str] = Field(None, description="Unique copy identifier")
    imprint: str = Field(..., description="Imprint details")
    status: BookInstanceStatus = Field(BookInstanceStatus.MAINTENANCE, description="Copy status")
    due_back: Optional[date] = Field(None, description="Date the copy is due back")

    @validator('id', pre=True)
    def convert_object_id(cls, v):
        return _object_id_to_str(v)

    @validator('due_back', pre=True)
    def convert_due_back(cls, v):
        """MongoDB stores dates as datetimes."""
        if isinstance(v, datetime):
            return v.date()
        return v

    @property
    def url(self) -> str:
        """Canonical detail URL."""
        return f"/catalog/bookinstance/{self.id}"

    @property
    def due_back_formatted(self) -> str:
        """Due date as e.g. 'May 1, 2023'; empty when unset."""
        if self.due_back is None:
            return ""
        d = self.due_back
        return f"{MONTH_ABBREVIATIONS[d.month - 1]} {d.day}, {d.year}"

    @property
    def due_back_yyyy_mm_dd(self) -> str:
        """Due date in the format used by date inputs."""
        if self.due_back is None:
            return ""
        return self.due_back.isoformat()


class BookInstance(BookInstanceBase):
    """Stored book instance referencing its Book by id."""
    book: str = Field(..., description="Book identifier")

    @validator('book', pre=True)
    def convert_book_id(cls, v):
        return _object_id_to_str(v)


class PopulatedBookInstance(BookInstanceBase):
    """Book instance with its Book reference resolved."""
    book: Optional[Book] = Field(None, description="Referenced book, None when unresolved")


class CatalogCounts(BaseModel):
    """Record counts shown on the catalog home page."""
    book_count: int = Field(..., description="Number of books")
    book_instance_count: int = Field(..., description="Number of copies")
    book_instance_available_count: int = Field(..., description="Number of available copies")
    genre_count: int = Field(..., description="Number of genres")


class HealthResponse(BaseModel):
    """Health check response model."""
    status: str = Field(..., description="Service status")
    timestamp: datetime = Field(..., description="Current timestamp")
    version: str = Field(..., description="Application version")
    database_status: str = Field(..., description="Database connection status")
