from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import ReturnDocument, ASCENDING, DESCENDING
from pymongo.errors import PyMongoError
from bson import ObjectId
from bson.errors import InvalidId
from tools.logger import Logger
from tools.config import DatabaseConfig
from typing import Optional, List, Dict, Any, Tuple

logger = Logger()


class StoreOperationError(Exception):
    """Помилка виконання операції над колекцією MongoDB."""

    def __init__(self, collection_name: str, operation: str, original: Exception):
        self.collection_name = collection_name
        self.operation = operation
        self.original = original
        super().__init__(f"{operation} failed in {collection_name}: {original}")


def to_object_id(value: Any) -> Any:
    """Конвертує рядок в ObjectId, якщо це можливо. Інакше повертає значення без змін."""
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return value


class Database:
    def __init__(self):
        self.config = DatabaseConfig()
        self.uri = self.config.get_connection_string()
        self._client: Optional[AsyncIOMotorClient] = None

        # Ініціалізація властивостей для колекцій
        self.listings = CollectionHandler(self, "listings")
        self.users = CollectionHandler(self, "users")
        self.logs = CollectionHandler(self, "logs")

    async def _get_client(self) -> AsyncIOMotorClient:
        """Повертає асинхронного клієнта MongoDB."""
        if not self._client:
            self._client = AsyncIOMotorClient(
                self.uri,
                serverSelectionTimeoutMS=5000,
                connectTimeoutMS=10000,
                socketTimeoutMS=20000
            )
        return self._client

    async def _get_collection(self, collection_name: str):
        """Повертає колекцію з бази даних."""
        client = await self._get_client()
        return client[self.config.DB_NAME][collection_name]

    async def setup_indexes(self):
        """Створює індекси для оптимізації запитів."""
        try:
            client = await self._get_client()
            db = client[self.config.DB_NAME]

            # Індекси для listings
            await db.listings.create_index([("name", ASCENDING)])
            await db.listings.create_index([("type", ASCENDING)])
            await db.listings.create_index([("createdAt", DESCENDING)])
            await db.listings.create_index([("userRef", ASCENDING)])

            # TTL для логів (7 днів)
            await db.logs.create_index([("timestamp", ASCENDING)], expireAfterSeconds=604800)

            logger.info("Індекси успішно створено")
        except PyMongoError as e:
            logger.error(f"Помилка створення індексів: {e}")

    async def close(self):
        if self._client:
            self._client.close()
            self._client = None


class CollectionHandler:
    """Обробник операцій для конкретної колекції.

    Помилки драйвера логуються та пробрасуються далі як StoreOperationError.
    """

    def __init__(self, db_instance: Database, collection_name: str):
        self.db = db_instance
        self.collection_name = collection_name

    def _fail(self, operation: str, error: Exception) -> StoreOperationError:
        logger.error(f"Error in {operation} on {self.collection_name}: {error}")
        return StoreOperationError(self.collection_name, operation, error)

    async def create(self, data: Dict) -> str:
        """Створює новий документ в колекції."""
        try:
            collection = await self.db._get_collection(self.collection_name)
            result = await collection.insert_one(data)
            return str(result.inserted_id)
        except PyMongoError as e:
            raise self._fail("create", e)

    async def find_one(self, query: Dict) -> Optional[Dict]:
        """Знаходить один документ в колекції."""
        try:
            collection = await self.db._get_collection(self.collection_name)
            return await collection.find_one(query)
        except PyMongoError as e:
            raise self._fail("find_one", e)

    async def find_many(self, query: Dict) -> List[Dict]:
        """Знаходить багато документів в колекції (у природному порядку колекції)."""
        try:
            collection = await self.db._get_collection(self.collection_name)
            cursor = collection.find(query)
            return await cursor.to_list(length=None)
        except PyMongoError as e:
            raise self._fail("find_many", e)

    async def find(
        self,
        query: Dict,
        skip: int = 0,
        limit: int = 0,
        sort: Optional[List[Tuple[str, int]]] = None,
        projection: Optional[Dict] = None
    ) -> List[Dict]:
        """Знаходить документи з підтримкою пагінації, сортування та проекції."""
        try:
            collection = await self.db._get_collection(self.collection_name)
            cursor = collection.find(query, projection)
            if sort:
                cursor = cursor.sort(sort)
            if skip:
                cursor = cursor.skip(skip)
            if limit:
                cursor = cursor.limit(limit)
            return await cursor.to_list(length=None)
        except PyMongoError as e:
            raise self._fail("find", e)

    async def find_one_and_update(self, query: Dict, update: Dict) -> Optional[Dict]:
        """Оновлює один документ та повертає його нову версію."""
        try:
            collection = await self.db._get_collection(self.collection_name)
            return await collection.find_one_and_update(
                query, update, return_document=ReturnDocument.AFTER
            )
        except PyMongoError as e:
            raise self._fail("find_one_and_update", e)

    async def delete(self, query: Dict) -> int:
        """Видаляє документи з колекції."""
        try:
            collection = await self.db._get_collection(self.collection_name)
            result = await collection.delete_many(query)
            return result.deleted_count
        except PyMongoError as e:
            raise self._fail("delete", e)
