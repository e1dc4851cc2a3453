"""Shared pytest fixtures.

Services talk to an in-memory stand-in for pymongo's async collection API, so
the suite runs without a MongoDB server. Only the query and update operators the
services use are supported.
"""

import copy
from collections.abc import AsyncIterator
from dataclasses import dataclass
from typing import Any, cast

import pytest
from pymongo.errors import DuplicateKeyError

# Import the core before any service module (the service registry imports them all)
from justadrop.app import App
from justadrop.config import Config
from justadrop.core.core import Core
from justadrop.core.modules.otp.service import OtpService
from justadrop.core.secrets import EnvSecretProvider

FIXED_OTP_CODE = "123456"

_MISSING = object()


def _compare(op: str, value: Any, expected: Any) -> bool:
    if op == "$ne":
        return bool(value != expected)
    if op == "$in":
        return value in expected
    if value is None or expected is None:
        return False
    if op == "$gt":
        return bool(value > expected)
    if op == "$gte":
        return bool(value >= expected)
    if op == "$lt":
        return bool(value < expected)
    if op == "$lte":
        return bool(value <= expected)
    raise NotImplementedError(f"Unsupported query operator: {op}")


def matches(doc: dict[str, Any], query: dict[str, Any]) -> bool:
    for key, condition in query.items():
        value = doc.get(key)
        if isinstance(condition, dict) and condition and all(op.startswith("$") for op in condition):
            if not all(_compare(op, value, expected) for op, expected in condition.items()):
                return False
        elif value != condition:
            return False
    return True


def _sorted(docs: list[dict[str, Any]], sort: list[tuple[str, int]] | None) -> list[dict[str, Any]]:
    for key, direction in reversed(sort or []):
        docs = sorted(docs, key=lambda doc, key=key: doc.get(key), reverse=direction < 0)
    return docs


@dataclass
class UpdateResult:
    matched_count: int
    modified_count: int


@dataclass
class DeleteResult:
    deleted_count: int


class FakeCursor:
    def __init__(self, docs: list[dict[str, Any]]) -> None:
        self._docs = docs

    def __aiter__(self) -> AsyncIterator[dict[str, Any]]:
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[dict[str, Any]]:
        for doc in self._docs:
            yield doc


class FakeCollection:
    def __init__(self, name: str) -> None:
        self.name = name
        self.docs: list[dict[str, Any]] = []
        self.unique_keys: list[str] = []

    async def create_index(self, keys: list[tuple[str, int]], **kwargs: Any) -> str:
        if kwargs.get("unique") and len(keys) == 1:
            self.unique_keys.append(keys[0][0])
        return "_".join(f"{key}_{direction}" for key, direction in keys)

    async def insert_one(self, document: dict[str, Any]) -> None:
        for key in ["_id", *self.unique_keys]:
            if any(doc.get(key, _MISSING) == document.get(key) for doc in self.docs):
                raise DuplicateKeyError(f"E11000 duplicate key error collection: {self.name} index: {key}")
        self.docs.append(copy.deepcopy(document))

    async def find_one(self, query: dict[str, Any], sort: list[tuple[str, int]] | None = None) -> dict[str, Any] | None:
        found = _sorted([doc for doc in self.docs if matches(doc, query)], sort)
        return copy.deepcopy(found[0]) if found else None

    def find(self, query: dict[str, Any], sort: list[tuple[str, int]] | None = None, limit: int = 0) -> FakeCursor:
        found = _sorted([doc for doc in self.docs if matches(doc, query)], sort)
        if limit:
            found = found[:limit]
        return FakeCursor([copy.deepcopy(doc) for doc in found])

    async def count_documents(self, query: dict[str, Any]) -> int:
        return sum(1 for doc in self.docs if matches(doc, query))

    async def update_one(self, query: dict[str, Any], update: dict[str, Any]) -> UpdateResult:
        for doc in self.docs:
            if matches(doc, query):
                return UpdateResult(matched_count=1, modified_count=int(self._apply(doc, update)))
        return UpdateResult(matched_count=0, modified_count=0)

    async def find_one_and_update(self, query: dict[str, Any], update: dict[str, Any]) -> dict[str, Any] | None:
        """Return the matched document as it was before the update."""
        for doc in self.docs:
            if matches(doc, query):
                before = copy.deepcopy(doc)
                self._apply(doc, update)
                return before
        return None

    async def update_many(self, query: dict[str, Any], update: dict[str, Any]) -> UpdateResult:
        found = [doc for doc in self.docs if matches(doc, query)]
        modified = sum(1 for doc in found if self._apply(doc, update))
        return UpdateResult(matched_count=len(found), modified_count=modified)

    async def delete_one(self, query: dict[str, Any]) -> DeleteResult:
        for doc in self.docs:
            if matches(doc, query):
                self.docs.remove(doc)
                return DeleteResult(deleted_count=1)
        return DeleteResult(deleted_count=0)

    async def delete_many(self, query: dict[str, Any]) -> DeleteResult:
        kept = [doc for doc in self.docs if not matches(doc, query)]
        deleted = len(self.docs) - len(kept)
        self.docs = kept
        return DeleteResult(deleted_count=deleted)

    @staticmethod
    def _apply(doc: dict[str, Any], update: dict[str, Any]) -> bool:
        before = copy.deepcopy(doc)
        for operator, fields in update.items():
            if operator == "$set":
                doc.update(copy.deepcopy(fields))
            elif operator == "$inc":
                for key, amount in fields.items():
                    doc[key] = doc.get(key, 0) + amount
            else:
                raise NotImplementedError(f"Unsupported update operator: {operator}")
        return doc != before


class FakeDatabase:
    def __init__(self) -> None:
        self.collections: dict[str, FakeCollection] = {}
        self.reachable = True

    def get_collection(self, name: str) -> FakeCollection:
        if name not in self.collections:
            self.collections[name] = FakeCollection(name)
        return self.collections[name]

    async def command(self, command: str) -> dict[str, Any]:
        if not self.reachable:
            raise ConnectionError("database unreachable")
        return {"ok": 1.0}


@pytest.fixture
def config() -> Config:
    return Config(
        database_url="mongodb://localhost:27017/justadrop_test",
        email_worker_enabled=False,
        _env_file=None,  # type: ignore[call-arg]
    )


@pytest.fixture
def database() -> FakeDatabase:
    return FakeDatabase()


@pytest.fixture
def secret_provider() -> EnvSecretProvider:
    return EnvSecretProvider({"RESEND_API_KEY": "re_test_key"})


@pytest.fixture
def fixed_otp(monkeypatch: pytest.MonkeyPatch) -> str:
    """Make every issued OTP equal FIXED_OTP_CODE."""
    monkeypatch.setattr(OtpService, "code_generator", staticmethod(lambda length: FIXED_OTP_CODE[:length]))
    return FIXED_OTP_CODE


@pytest.fixture
async def core(config: Config, database: FakeDatabase, secret_provider: EnvSecretProvider) -> AsyncIterator[Core]:
    core = Core(config, database=cast(Any, database), secrets=secret_provider)
    async with core.lifespan():
        yield core


@pytest.fixture
def app(config: Config, database: FakeDatabase, secret_provider: EnvSecretProvider) -> App:
    return App(config, database=cast(Any, database), secrets=secret_provider)
