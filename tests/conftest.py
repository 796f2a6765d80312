"""
Pytest configuration and shared fixtures.
"""

from datetime import date
from typing import Dict, List, Optional

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

from catalog.dependencies import get_database
from catalog.main import app
from catalog.models import (
    Book, BookInstance, BookInstanceStatus, Genre, PopulatedBookInstance
)


class FakeRepository:
    """In-memory stand-in for a MongoRepository."""

    def __init__(self):
        self.records: Dict[str, object] = {}

    def add(self, record):
        """Store a record directly, assigning an id when it has none."""
        if record.id is None:
            record = record.model_copy(update={"id": str(ObjectId())})
        self.records[record.id] = record
        return record

    async def find_all(self, filter_query=None, projection=None, sort=None):
        return list(self.records.values())

    async def find_by_id(self, record_id):
        return self.records.get(record_id)

    async def insert(self, record):
        return self.add(record.model_copy(update={"id": None}))

    async def update_by_id(self, record_id, record):
        if record_id not in self.records:
            return None
        updated = record.model_copy(update={"id": record_id})
        self.records[record_id] = updated
        return updated

    async def delete_by_id(self, record_id):
        return self.records.pop(record_id, None) is not None

    async def count(self, filter_query=None):
        return len(self.records)


class FakeGenreRepository(FakeRepository):

    async def list_by_name(self) -> List[Genre]:
        return sorted(self.records.values(), key=lambda genre: genre.name)

    async def find_by_name(self, name: str) -> Optional[Genre]:
        for genre in self.records.values():
            if genre.name == name:
                return genre
        return None


class FakeBookRepository(FakeRepository):

    async def list_titles(self) -> List[Book]:
        return sorted(self.records.values(), key=lambda book: book.title)

    async def find_by_genre(self, genre_id: str) -> List[Book]:
        return [book for book in self.records.values() if genre_id in book.genre]


class FakeBookInstanceRepository(FakeRepository):

    def __init__(self, books: FakeBookRepository):
        super().__init__()
        self.books = books

    def _populate(self, record: BookInstance) -> PopulatedBookInstance:
        data = record.model_dump()
        data["book"] = self.books.records.get(record.book)
        return PopulatedBookInstance(**data)

    async def find_all_populated(self) -> List[PopulatedBookInstance]:
        return [self._populate(record) for record in self.records.values()]

    async def find_by_id_populated(self, record_id: str) -> Optional[PopulatedBookInstance]:
        record = self.records.get(record_id)
        if record is None:
            return None
        return self._populate(record)

    async def count_available(self) -> int:
        return sum(
            1 for record in self.records.values()
            if record.status == BookInstanceStatus.AVAILABLE
        )


class FakeCatalogDatabase:
    """In-memory catalog exposing the same repositories as CatalogDatabase."""

    def __init__(self):
        self.genres = FakeGenreRepository()
        self.books = FakeBookRepository()
        self.bookinstances = FakeBookInstanceRepository(self.books)

    async def health_check(self):
        return {"status": "healthy"}


@pytest.fixture
def fake_db():
    """In-memory catalog database wired into the application."""
    db = FakeCatalogDatabase()
    app.dependency_overrides[get_database] = lambda: db
    yield db
    app.dependency_overrides.pop(get_database, None)


@pytest.fixture
def client(fake_db):
    """Create test client that does not follow redirects."""
    return TestClient(app, follow_redirects=False)


@pytest.fixture
def fantasy(fake_db):
    """A stored genre."""
    return fake_db.genres.add(Genre(name="Fantasy"))


@pytest.fixture
def sample_book(fake_db, fantasy):
    """A stored book in the Fantasy genre."""
    return fake_db.books.add(Book(
        title="The Name of the Wind",
        summary="A young man grows to be the most notorious wizard his world has ever seen.",
        isbn="9781473211896",
        genre=[fantasy.id]
    ))


@pytest.fixture
def sample_bookinstance(fake_db, sample_book):
    """A stored copy of the sample book, on loan."""
    return fake_db.bookinstances.add(BookInstance(
        book=sample_book.id,
        imprint="Gollancz, 2011.",
        status=BookInstanceStatus.LOANED,
        due_back=date(2023, 5, 1)
    ))
