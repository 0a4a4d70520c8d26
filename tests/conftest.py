import asyncio
from typing import Dict, Set

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import NullPool

from app.api.dependencies.services import ServiceContainer
from app.config.config_settings.config_schema import (
    AppConfig,
    DatabaseConfig,
    LoggingConfig,
    S3Params,
    StorageConfig,
)
from app.infra.db.session import build_session_factory, create_db_and_tables
from app.infra.storage.storage_interface import BlobStore, BlobStoreError
from app.main import create_app
from app.metrics.instrumentation import PrometheusInstrumentation
from app.models.files.file_record import FileRecord
from app.models.health_check import HealthCheck
from app.repo.crud.file.file_record_repo import SqlRecordStore
from app.repo.crud.file.record_store import MetadataStoreError, RecordStore


class InMemoryBlobStore(BlobStore):
    """对象存储的内存实现，fail_on 中的操作会抛出 BlobStoreError。"""

    def __init__(self, qualifier: str = "test-bucket"):
        self._qualifier = qualifier
        self.objects: Dict[str, bytes] = {}
        self.content_types: Dict[str, str] = {}
        self.fail_on: Set[str] = set()
        self.calls = []

    @property
    def qualifier(self) -> str:
        return self._qualifier

    def put(self, key: str, data: bytes, content_type: str) -> None:
        self.calls.append(("put", key))
        if "put" in self.fail_on:
            raise BlobStoreError(f"put failed for {key}")
        self.objects[key] = data
        self.content_types[key] = content_type

    def get(self, key: str) -> bytes:
        self.calls.append(("get", key))
        if "get" in self.fail_on or key not in self.objects:
            raise BlobStoreError(f"get failed for {key}")
        return self.objects[key]

    def delete(self, key: str) -> None:
        self.calls.append(("delete", key))
        if "delete" in self.fail_on:
            raise BlobStoreError(f"delete failed for {key}")
        self.objects.pop(key, None)
        self.content_types.pop(key, None)


class FlakyRecordStore(RecordStore):
    """包装真实的 RecordStore，fail_on 中的操作会抛出 MetadataStoreError。"""

    def __init__(self, inner: RecordStore):
        self.inner = inner
        self.fail_on: Set[str] = set()

    def _maybe_fail(self, operation: str):
        if operation in self.fail_on:
            raise MetadataStoreError(f"{operation} failed")

    async def create(self, record):
        self._maybe_fail("create")
        return await self.inner.create(record)

    async def find_by_id(self, record_id):
        self._maybe_fail("find")
        return await self.inner.find_by_id(record_id)

    async def delete(self, record_id):
        self._maybe_fail("delete")
        return await self.inner.delete(record_id)

    async def record_health_check(self):
        self._maybe_fail("health_check")
        return await self.inner.record_health_check()


@pytest.fixture()
def settings(tmp_path) -> AppConfig:
    return AppConfig(
        database=DatabaseConfig(url=f"sqlite+aiosqlite:///{tmp_path / 'files.db'}"),
        logging=LoggingConfig(enable_file=False),
        storage=StorageConfig(params=S3Params(bucket_name="test-bucket")),
    )


@pytest.fixture()
def engine(settings):
    # NullPool: 每次会话新建连接，避免连接跨事件循环复用
    engine = create_async_engine(settings.database.url, poolclass=NullPool)
    asyncio.run(create_db_and_tables(engine))
    yield engine
    asyncio.run(engine.dispose())


@pytest.fixture()
def blob_store() -> InMemoryBlobStore:
    return InMemoryBlobStore()


@pytest.fixture()
def record_store(engine) -> FlakyRecordStore:
    return FlakyRecordStore(SqlRecordStore(build_session_factory(engine)))


@pytest.fixture()
def instrumentation() -> PrometheusInstrumentation:
    return PrometheusInstrumentation(namespace="file_service")


@pytest.fixture()
def container(settings, blob_store, record_store, instrumentation) -> ServiceContainer:
    return ServiceContainer(
        settings=settings,
        blob_store=blob_store,
        record_store=record_store,
        instrumentation=instrumentation,
    )


@pytest.fixture()
def client(settings, container):
    with TestClient(create_app(settings, container)) as test_client:
        yield test_client


def count_rows(engine, model) -> int:
    async def _count():
        async with build_session_factory(engine)() as session:
            result = await session.execute(select(func.count()).select_from(model))
            return result.scalar_one()

    return asyncio.run(_count())


@pytest.fixture()
def file_record_count(engine):
    return lambda: count_rows(engine, FileRecord)


@pytest.fixture()
def health_check_count(engine):
    return lambda: count_rows(engine, HealthCheck)
