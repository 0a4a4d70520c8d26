from typing import Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.logger import logger
from app.models.files.file_record import FileRecord
from app.models.health_check import HealthCheck
from app.repo.crud.common.base_repo import BaseRepository
from app.repo.crud.file.record_store import MetadataStoreError, RecordStore


class FileRecordRepository(BaseRepository[FileRecord]):
    """文件记录相关的数据库操作。"""

    def __init__(self, db: AsyncSession):
        super().__init__(db, FileRecord)


class HealthCheckRepository(BaseRepository[HealthCheck]):

    def __init__(self, db: AsyncSession):
        super().__init__(db, HealthCheck)


def parse_record_id(record_id: str) -> Optional[UUID]:
    try:
        return UUID(str(record_id))
    except ValueError:
        return None


class SqlRecordStore(RecordStore):
    """
    RecordStore 的 SQL 实现。
    每个操作使用独立的会话并立即提交，saga 的每一步都是一个独立事务。
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def create(self, record: FileRecord) -> FileRecord:
        try:
            async with self.session_factory() as session:
                repo = FileRecordRepository(session)
                await repo.add(record)
                await repo.commit()
                return record
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"[Metadata Store] Failed to insert file record {record.id}: {e}")
            raise MetadataStoreError(f"insert failed for {record.id}") from e

    async def find_by_id(self, record_id: str) -> Optional[FileRecord]:
        parsed_id = parse_record_id(record_id)
        if parsed_id is None:
            logger.debug(f"[Metadata Store] '{record_id}' is not a valid record id.")
            return None
        try:
            async with self.session_factory() as session:
                return await FileRecordRepository(session).get_by_id(parsed_id)
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"[Metadata Store] Failed to look up file record {record_id}: {e}")
            raise MetadataStoreError(f"lookup failed for {record_id}") from e

    async def delete(self, record_id: str) -> bool:
        parsed_id = parse_record_id(record_id)
        if parsed_id is None:
            return False
        try:
            async with self.session_factory() as session:
                repo = FileRecordRepository(session)
                deleted = await repo.delete_by_id(parsed_id)
                await repo.commit()
                return deleted > 0
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"[Metadata Store] Failed to delete file record {record_id}: {e}")
            raise MetadataStoreError(f"delete failed for {record_id}") from e

    async def record_health_check(self) -> None:
        try:
            async with self.session_factory() as session:
                repo = HealthCheckRepository(session)
                await repo.add(HealthCheck())
                await repo.commit()
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"[Metadata Store] Failed to write health check row: {e}")
            raise MetadataStoreError("health check insert failed") from e
