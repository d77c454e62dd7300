"""Shared test fixtures: in-memory MongoDB collections and a recording publisher"""
import copy
import re
import uuid
from datetime import datetime, timezone
from types import SimpleNamespace

import pytest
from pymongo.errors import DuplicateKeyError

from job_manager.core.config import Config
from job_manager.db.mongodb import COMPANY_ACCOUNTS
from job_manager.messaging.i_message_broker import IMessagePublisher
from job_manager.models.country import ALL_SHARDS
from job_manager.repositories.account_repository import CompanyAccountRepository
from job_manager.repositories.company_repository import CompanyRepository
from job_manager.repositories.session_invalidation_repository import SessionInvalidationRepository
from job_manager.repositories.subscription_repository import SubscriptionRepository
from job_manager.repositories.undelivered_event_repository import UndeliveredEventRepository
from job_manager.services.auth_service import AuthService
from job_manager.services.company_service import CompanyService
from job_manager.services.event_publisher import EventPublisher
from job_manager.services.shard_migration_service import ShardMigrationService
from job_manager.services.subscription_service import SubscriptionService

_MISSING = object()


def _get_path(document, path):
    value = document
    for part in path.split("."):
        if not isinstance(value, dict) or part not in value:
            return _MISSING
        value = value[part]
    return value


def _set_path(document, path, value):
    parts = path.split(".")
    target = document
    for part in parts[:-1]:
        target = target.setdefault(part, {})
    target[parts[-1]] = value


def _matches_condition(value, condition):
    if isinstance(condition, dict) and condition and all(key.startswith("$") for key in condition):
        for op, arg in condition.items():
            if op == "$options":
                continue
            if op == "$regex":
                flags = re.IGNORECASE if "i" in condition.get("$options", "") else 0
                if not isinstance(value, str) or not re.search(arg, value, flags):
                    return False
            elif op in ("$lt", "$lte", "$gt", "$gte"):
                if value is _MISSING or value is None:
                    return False
                if op == "$lt" and not value < arg:
                    return False
                if op == "$lte" and not value <= arg:
                    return False
                if op == "$gt" and not value > arg:
                    return False
                if op == "$gte" and not value >= arg:
                    return False
            elif op == "$in":
                if value not in arg:
                    return False
            elif op == "$ne":
                if value == arg:
                    return False
            elif op == "$exists":
                if (value is not _MISSING) != bool(arg):
                    return False
            else:
                raise NotImplementedError(op)
        return True
    return value is not _MISSING and value == condition


def _bson(value):
    """Copy a value the way MongoDB stores it: datetimes keep only milliseconds"""
    if isinstance(value, dict):
        return {key: _bson(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_bson(item) for item in value]
    if isinstance(value, datetime):
        return value.replace(microsecond=(value.microsecond // 1000) * 1000)
    return copy.deepcopy(value)


def matches(document, query):
    for key, condition in query.items():
        if key == "$or":
            if not any(matches(document, sub) for sub in condition):
                return False
        elif not _matches_condition(_get_path(document, key), condition):
            return False
    return True


def _sort_documents(documents, spec):
    documents = list(documents)
    for field, direction in reversed(spec):
        documents.sort(
            key=lambda doc: (
                _get_path(doc, field) in (_MISSING, None),
                None if _get_path(doc, field) is _MISSING else _get_path(doc, field),
            ),
            reverse=direction < 0,
        )
    return documents


class FakeCursor:
    def __init__(self, documents):
        self._documents = documents
        self._skip = 0
        self._limit = None

    def sort(self, spec, direction=None):
        if isinstance(spec, str):
            spec = [(spec, direction or 1)]
        self._documents = _sort_documents(self._documents, spec)
        return self

    def skip(self, count):
        self._skip = count
        return self

    def limit(self, count):
        self._limit = count
        return self

    async def to_list(self, length=None):
        documents = self._documents[self._skip:]
        if self._limit:
            documents = documents[:self._limit]
        if length:
            documents = documents[:length]
        return [copy.deepcopy(doc) for doc in documents]


class FakeCollection:
    """Just enough of AsyncIOMotorCollection for the repositories"""

    def __init__(self, name="collection"):
        self.name = name
        self.documents = []
        self.indexes = []
        self.unique_fields = set()

    def _check_unique(self, document, ignore=None):
        for other in self.documents:
            if other is ignore:
                continue
            if other["_id"] == document["_id"]:
                raise DuplicateKeyError(f"E11000 duplicate key error collection: {self.name} _id")
            for field in self.unique_fields:
                value = _get_path(document, field)
                if value is not _MISSING and value == _get_path(other, field):
                    raise DuplicateKeyError(f"E11000 duplicate key error collection: {self.name} {field}")

    def _first(self, query, sort=None):
        found = [doc for doc in self.documents if matches(doc, query)]
        if sort:
            found = _sort_documents(found, sort)
        return found[0] if found else None

    async def create_index(self, keys, **kwargs):
        self.indexes.append((keys, kwargs))
        if kwargs.get("unique") and isinstance(keys, str):
            self.unique_fields.add(keys)
        return keys if isinstance(keys, str) else "_".join(f"{k}_{d}" for k, d in keys)

    async def insert_one(self, document):
        document = _bson(document)
        document.setdefault("_id", str(uuid.uuid4()))
        self._check_unique(document)
        self.documents.append(document)
        return SimpleNamespace(inserted_id=document["_id"])

    async def find_one(self, query=None, sort=None):
        found = self._first(query or {}, sort)
        return copy.deepcopy(found) if found else None

    def find(self, query=None):
        return FakeCursor([doc for doc in self.documents if matches(doc, query or {})])

    async def count_documents(self, query):
        return len([doc for doc in self.documents if matches(doc, query)])

    @staticmethod
    def _apply(document, update, inserting=False):
        before = copy.deepcopy(document)
        for path, value in update.get("$set", {}).items():
            _set_path(document, path, _bson(value))
        for path, amount in update.get("$inc", {}).items():
            current = _get_path(document, path)
            _set_path(document, path, (0 if current is _MISSING else current) + amount)
        if inserting:
            for path, value in update.get("$setOnInsert", {}).items():
                _set_path(document, path, _bson(value))
        return document != before

    async def update_one(self, query, update, upsert=False):
        document = self._first(query)
        if document is not None:
            modified = self._apply(document, update)
            return SimpleNamespace(matched_count=1, modified_count=int(modified), upserted_id=None)
        if not upsert:
            return SimpleNamespace(matched_count=0, modified_count=0, upserted_id=None)

        document = {
            key: value for key, value in query.items()
            if not key.startswith("$") and not isinstance(value, dict)
        }
        self._apply(document, update, inserting=True)
        document.setdefault("_id", str(uuid.uuid4()))
        self._check_unique(document)
        self.documents.append(document)
        return SimpleNamespace(matched_count=0, modified_count=0, upserted_id=document["_id"])

    async def update_many(self, query, update):
        found = [doc for doc in self.documents if matches(doc, query)]
        modified = sum(1 for doc in found if self._apply(doc, update))
        return SimpleNamespace(matched_count=len(found), modified_count=modified, upserted_id=None)

    async def replace_one(self, query, replacement, upsert=False):
        document = self._first(query)
        replacement = _bson(replacement)
        if document is not None:
            replacement["_id"] = document["_id"]
            self._check_unique(replacement, ignore=document)
            self.documents[self.documents.index(document)] = replacement
            return SimpleNamespace(matched_count=1, modified_count=1, upserted_id=None)
        if not upsert:
            return SimpleNamespace(matched_count=0, modified_count=0, upserted_id=None)
        self._check_unique(replacement)
        self.documents.append(replacement)
        return SimpleNamespace(matched_count=0, modified_count=0, upserted_id=replacement["_id"])

    async def delete_one(self, query):
        document = self._first(query)
        if document is None:
            return SimpleNamespace(deleted_count=0)
        self.documents.remove(document)
        return SimpleNamespace(deleted_count=1)


class RecordingPublisher(IMessagePublisher):
    """Keeps every published record; set `failure` to make publish raise it"""

    def __init__(self):
        self.records = []
        self.failure = None
        self.started = False

    async def start(self):
        self.started = True

    async def publish(self, topic, value, key=None, headers=None, correlation_id=None):
        if self.failure is not None:
            raise self.failure
        self.records.append(SimpleNamespace(topic=topic, value=value, key=key, headers=headers or []))

    async def stop(self):
        self.started = False

    def is_healthy(self):
        return self.started

    def on(self, topic):
        return [record for record in self.records if record.topic == topic]


def make_record(value, topic="company.country.changed", key=b"key", headers=None, partition=0, offset=0):
    """Kafka consumer record as handed to the consumer by the broker"""
    return SimpleNamespace(
        topic=topic,
        partition=partition,
        offset=offset,
        key=key,
        value=value,
        headers=headers or [],
    )


@pytest.fixture
def test_config():
    return Config(
        service_name="company",
        mongodb_uri="mongodb://localhost:27017",
        kafka_bootstrap_servers="localhost:9092",
    )


@pytest.fixture
def account_shards():
    shards = {shard: FakeCollection(COMPANY_ACCOUNTS) for shard in ALL_SHARDS}
    for collection in shards.values():
        collection.unique_fields.add("email")
    return shards


@pytest.fixture
def accounts(account_shards):
    return CompanyAccountRepository(account_shards)


@pytest.fixture
def session_collection():
    return FakeCollection("session_invalidations")


@pytest.fixture
def sessions(session_collection):
    return SessionInvalidationRepository(session_collection)


@pytest.fixture
def undelivered_collection():
    return FakeCollection("undelivered_events")


@pytest.fixture
def publisher():
    return RecordingPublisher()


@pytest.fixture
def event_publisher(publisher, undelivered_collection):
    return EventPublisher(publisher, UndeliveredEventRepository(undelivered_collection), source="job-manager-test")


@pytest.fixture
def auth_service(accounts, sessions, event_publisher):
    return AuthService(accounts, sessions, event_publisher)


@pytest.fixture
def shard_migration_service(accounts, sessions):
    return ShardMigrationService(accounts, sessions)


@pytest.fixture
def company_collection():
    return FakeCollection("companies")


@pytest.fixture
def company_service(company_collection, event_publisher):
    return CompanyService(CompanyRepository(company_collection), event_publisher)


@pytest.fixture
def subscription_collection():
    return FakeCollection("subscriptions")


@pytest.fixture
def subscription_service(subscription_collection):
    return SubscriptionService(SubscriptionRepository(subscription_collection))


@pytest.fixture
def now():
    return datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def record_factory():
    return make_record


@pytest.fixture
def collection_factory():
    return FakeCollection
