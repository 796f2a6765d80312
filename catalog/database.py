"""
MongoDB persistence layer for the catalog.
Handles connection, indexing, and per-collection CRUD operations.
"""

from datetime import date, datetime
from typing import Any, Dict, Generic, List, Optional, Type, TypeVar

import structlog
from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase
from pydantic import BaseModel
from pymongo.errors import ConnectionFailure

from .models import Book, BookInstance, BookInstanceStatus, Genre, PopulatedBookInstance

logger = structlog.get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def to_object_id(value: Any) -> Optional[ObjectId]:
    """
    Convert an identifier to an ObjectId.

    Returns None for values that are not valid ObjectIds, so that malformed ids
    behave like ids that match no record.
    """
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    return None


class MongoRepository(Generic[ModelT]):
    """
    CRUD operations over a single collection, returning pydantic records.
    """

    model: Type[ModelT]

    def __init__(self, collection: AsyncIOMotorCollection):
        self.collection = collection

    def to_document(self, record: ModelT) -> Dict[str, Any]:
        """Convert a record to a MongoDB document, without its id."""
        return record.model_dump(exclude={"id"})

    def from_document(self, document: Dict[str, Any]) -> ModelT:
        """Convert a MongoDB document to a record."""
        document = dict(document)
        document["id"] = str(document.pop("_id"))
        return self.model(**document)

    async def find_all(
        self,
        filter_query: Optional[Dict[str, Any]] = None,
        projection: Optional[Dict[str, Any]] = None,
        sort: Optional[List[tuple]] = None,
    ) -> List[ModelT]:
        cursor = self.collection.find(filter_query or {}, projection)
        if sort:
            cursor = cursor.sort(sort)
        documents = await cursor.to_list(length=None)
        return [self.from_document(document) for document in documents]

    async def find_by_id(self, record_id: str) -> Optional[ModelT]:
        object_id = to_object_id(record_id)
        if object_id is None:
            return None
        document = await self.collection.find_one({"_id": object_id})
        if document is None:
            return None
        return self.from_document(document)

    async def find_one(self, filter_query: Dict[str, Any]) -> Optional[ModelT]:
        document = await self.collection.find_one(filter_query)
        if document is None:
            return None
        return self.from_document(document)

    async def insert(self, record: ModelT) -> ModelT:
        """
        Insert a record.

        Returns:
            Copy of the record carrying its assigned id
        """
        result = await self.collection.insert_one(self.to_document(record))
        return record.model_copy(update={"id": str(result.inserted_id)})

    async def update_by_id(self, record_id: str, record: ModelT) -> Optional[ModelT]:
        """
        Replace the stored fields of a record, keeping its id.

        Returns:
            The updated record, or None if no record has this id
        """
        object_id = to_object_id(record_id)
        if object_id is None:
            return None
        result = await self.collection.update_one(
            {"_id": object_id}, {"$set": self.to_document(record)}
        )
        if result.matched_count == 0:
            return None
        return record.model_copy(update={"id": str(object_id)})

    async def delete_by_id(self, record_id: str) -> bool:
        """Delete a record; returns False if nothing was deleted."""
        object_id = to_object_id(record_id)
        if object_id is None:
            return False
        result = await self.collection.delete_one({"_id": object_id})
        return result.deleted_count > 0

    async def count(self, filter_query: Optional[Dict[str, Any]] = None) -> int:
        return await self.collection.count_documents(filter_query or {})


class GenreRepository(MongoRepository[Genre]):
    """Genre collection operations."""

    model = Genre

    async def list_by_name(self) -> List[Genre]:
        return await self.find_all(sort=[("name", 1)])

    async def find_by_name(self, name: str) -> Optional[Genre]:
        return await self.find_one({"name": name})


class BookRepository(MongoRepository[Book]):
    """Book collection operations used for selections and reference checks."""

    model = Book

    async def list_titles(self) -> List[Book]:
        """All books, projected to id and title."""
        return await self.find_all(projection={"title": 1}, sort=[("title", 1)])

    async def find_by_genre(self, genre_id: str) -> List[Book]:
        """Books whose genre list contains the genre."""
        object_id = to_object_id(genre_id)
        if object_id is None:
            return []
        return await self.find_all({"genre": {"$all": [object_id]}})


class BookInstanceRepository(MongoRepository[BookInstance]):
    """Book instance collection operations, with Book population."""

    model = BookInstance

    def __init__(self, collection: AsyncIOMotorCollection, books: BookRepository):
        super().__init__(collection)
        self.books = books

    def to_document(self, record: BookInstance) -> Dict[str, Any]:
        document = super().to_document(record)
        document["book"] = to_object_id(record.book)
        document["status"] = record.status.value
        if isinstance(record.due_back, date):
            # BSON has no date type
            document["due_back"] = datetime(
                record.due_back.year, record.due_back.month, record.due_back.day
            )
        return document

    def _populated_from_document(self, document: Dict[str, Any]) -> PopulatedBookInstance:
        document = dict(document)
        document["id"] = str(document.pop("_id"))
        book_documents = document.pop("book_docs", [])
        document["book"] = (
            self.books.from_document(book_documents[0]) if book_documents else None
        )
        return PopulatedBookInstance(**document)

    def _populate_pipeline(self, match: Dict[str, Any]) -> List[Dict[str, Any]]:
        return [
            {"$match": match},
            {
                "$lookup": {
                    "from": self.books.collection.name,
                    "localField": "book",
                    "foreignField": "_id",
                    "as": "book_docs",
                }
            },
        ]

    async def find_all_populated(self) -> List[PopulatedBookInstance]:
        cursor = self.collection.aggregate(self._populate_pipeline({}))
        documents = await cursor.to_list(length=None)
        return [self._populated_from_document(document) for document in documents]

    async def find_by_id_populated(self, record_id: str) -> Optional[PopulatedBookInstance]:
        object_id = to_object_id(record_id)
        if object_id is None:
            return None
        cursor = self.collection.aggregate(self._populate_pipeline({"_id": object_id}))
        documents = await cursor.to_list(length=1)
        if not documents:
            return None
        return self._populated_from_document(documents[0])

    async def count_available(self) -> int:
        return await self.count({"status": BookInstanceStatus.AVAILABLE.value})


class CatalogDatabase:
    """
    Catalog database handle.
    Owns the client connection and exposes one repository per collection.
    """

    def __init__(self, connection_url: str, database_name: str):
        """
        Initialize the catalog database.

        Args:
            connection_url: MongoDB connection URL
            database_name: Name of the database
        """
        self.connection_url = connection_url
        self.database_name = database_name
        self.client: Optional[AsyncIOMotorClient] = None
        self.database: Optional[AsyncIOMotorDatabase] = None
        self.genres: Optional[GenreRepository] = None
        self.books: Optional[BookRepository] = None
        self.bookinstances: Optional[BookInstanceRepository] = None

    def bind(self, database: AsyncIOMotorDatabase) -> None:
        """Attach repositories to an open database."""
        self.database = database
        self.genres = GenreRepository(database.genres)
        self.books = BookRepository(database.books)
        self.bookinstances = BookInstanceRepository(database.bookinstances, self.books)

    async def connect(self) -> None:
        """Establish connection to MongoDB."""
        try:
            self.client = AsyncIOMotorClient(self.connection_url)
            self.bind(self.client[self.database_name])

            # Test connection
            await self.client.admin.command('ping')
            logger.info("Successfully connected to MongoDB", database=self.database_name)

            await self._create_indexes()

        except ConnectionFailure as e:
            logger.error("Failed to connect to MongoDB", error=str(e))
            raise

    async def disconnect(self) -> None:
        """Close MongoDB connection."""
        if self.client:
            self.client.close()
            logger.info("Disconnected from MongoDB")

    async def _create_indexes(self) -> None:
        """Create indexes for the lookups the handlers perform."""
        try:
            # Genre lookups by name and listing sorted by name
            await self.genres.collection.create_index("name")

            # Reference checks before deleting a genre
            await self.books.collection.create_index("genre")

            # Copies per book and per status
            await self.bookinstances.collection.create_index("book")
            await self.bookinstances.collection.create_index("status")

            logger.info("Successfully created MongoDB indexes")

        except Exception as e:
            logger.error("Failed to create indexes", error=str(e))
            raise

    async def health_check(self) -> Dict:
        """
        Perform database health check.

        Returns:
            Dictionary with health status
        """
        try:
            await self.database.command("ping")
            return {"status": "healthy"}
        except Exception as e:
            logger.error("Database health check failed", error=str(e))
            return {
                "status": "unhealthy",
                "error": str(e)
            }
