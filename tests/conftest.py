import copy
import os
import re
import tempfile
from datetime import datetime, timedelta

os.environ.setdefault("JWT_SECRET_KEY", "test-secret")
os.environ.setdefault("DB_URI", "mongodb://localhost:27017/estate_test")
os.environ.setdefault("LOG_DIR", os.path.join(tempfile.gettempdir(), "estate-test-logs"))

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

from api.jwt_handler import JWTHandler
from api.main import create_app
from tools.database import StoreOperationError


_MISSING = object()


def _matches_condition(value, condition):
    if isinstance(condition, dict) and any(key.startswith("$") for key in condition):
        if "$in" in condition:
            return value is not _MISSING and any(
                value == candidate and type(value) is type(candidate)
                for candidate in condition["$in"]
            )
        if "$regex" in condition:
            flags = re.IGNORECASE if "i" in condition.get("$options", "") else 0
            return isinstance(value, str) and re.search(condition["$regex"], value, flags) is not None
        raise NotImplementedError(condition)
    return value is not _MISSING and value == condition


def matches(document, query):
    return all(
        _matches_condition(document.get(field, _MISSING), condition)
        for field, condition in query.items()
    )


class FakeCollection:
    """Колекція в пам'яті з тим же інтерфейсом, що й CollectionHandler."""

    def __init__(self, name, documents=None):
        self.collection_name = name
        self.documents = [copy.deepcopy(doc) for doc in documents or []]

    async def create(self, data):
        doc = copy.deepcopy(data)
        doc.setdefault("_id", ObjectId())
        self.documents.append(doc)
        return str(doc["_id"])

    async def find_one(self, query):
        for doc in self.documents:
            if matches(doc, query):
                return copy.deepcopy(doc)
        return None

    async def find_many(self, query):
        return [copy.deepcopy(doc) for doc in self.documents if matches(doc, query)]

    async def find(self, query, skip=0, limit=0, sort=None, projection=None):
        found = [doc for doc in self.documents if matches(doc, query)]
        for field, direction in reversed(sort or []):
            found.sort(key=lambda doc: doc.get(field), reverse=direction < 0)
        found = found[skip:]
        if limit:
            found = found[:limit]
        return [copy.deepcopy(doc) for doc in found]

    async def find_one_and_update(self, query, update):
        for doc in self.documents:
            if not matches(doc, query):
                continue
            for field, value in update.get("$set", {}).items():
                doc[field] = value
            for field, value in update.get("$addToSet", {}).items():
                values = doc.setdefault(field, [])
                if value not in values:
                    values.append(value)
            for field, value in update.get("$pull", {}).items():
                doc[field] = [item for item in doc.get(field, []) if item != value]
            return copy.deepcopy(doc)
        return None

    async def delete(self, query):
        before = len(self.documents)
        self.documents = [doc for doc in self.documents if not matches(doc, query)]
        return before - len(self.documents)


class FailingCollection(FakeCollection):
    """Колекція, в якій кожен запит завершується помилкою бази даних."""

    def _fail(self, operation):
        raise StoreOperationError(self.collection_name, operation, RuntimeError("connection refused"))

    async def find(self, *args, **kwargs):
        self._fail("find")

    async def find_many(self, *args, **kwargs):
        self._fail("find_many")

    async def find_one(self, *args, **kwargs):
        self._fail("find_one")


class FakeDatabase:
    def __init__(self, listings=None, users=None):
        self.listings = FakeCollection("listings", listings)
        self.users = FakeCollection("users", users)
        self.logs = FakeCollection("logs")

    async def setup_indexes(self):
        pass

    async def close(self):
        pass


BASE_TIME = datetime(2024, 1, 1, 12, 0, 0)

OWNER_ID = ObjectId("650000000000000000000001")
OTHER_USER_ID = ObjectId("650000000000000000000002")

VILLA_SUNRISE_ID = ObjectId("660000000000000000000001")
GRAND_VILLA_ID = ObjectId("660000000000000000000002")
COSY_FLAT_ID = ObjectId("660000000000000000000003")
LOFT_ID = ObjectId("660000000000000000000004")
COTTAGE_ID = ObjectId("660000000000000000000005")


def make_listing(listing_id, name, listing_type, furnished, parking, age_days):
    return {
        "_id": listing_id,
        "name": name,
        "description": f"{name} description",
        "address": "1 Test Street",
        "regularPrice": 1000,
        "discountPrice": 0,
        "bathrooms": 1,
        "bedrooms": 2,
        "furnished": furnished,
        "parking": parking,
        "type": listing_type,
        "offer": False,
        "imageUrls": [],
        "userRef": str(OWNER_ID),
        "createdAt": BASE_TIME - timedelta(days=age_days),
        "updatedAt": BASE_TIME - timedelta(days=age_days),
    }


@pytest.fixture
def listings():
    return [
        make_listing(VILLA_SUNRISE_ID, "villa sunrise", "sale", True, False, age_days=1),
        make_listing(GRAND_VILLA_ID, "Grand Villa", "rent", False, True, age_days=2),
        make_listing(COSY_FLAT_ID, "Cosy Flat", "sale", False, False, age_days=3),
        make_listing(LOFT_ID, "City Loft", "rent", True, True, age_days=4),
        make_listing(COTTAGE_ID, "Lake Cottage", "sale", True, True, age_days=5),
    ]


@pytest.fixture
def users():
    return [
        {"_id": OWNER_ID, "username": "owner", "favourites": [COTTAGE_ID, VILLA_SUNRISE_ID]},
        {"_id": OTHER_USER_ID, "username": "other", "favourites": []},
    ]


@pytest.fixture
def db(listings, users):
    return FakeDatabase(listings=listings, users=users)


@pytest.fixture
def jwt_handler():
    return JWTHandler()


@pytest.fixture
def client(db, jwt_handler):
    return TestClient(create_app(db=db, jwt_handler=jwt_handler))


@pytest.fixture
def auth_headers(jwt_handler):
    def _headers(user_id=OWNER_ID):
        return {"Authorization": f"Bearer {jwt_handler.generate_token(str(user_id))}"}
    return _headers
