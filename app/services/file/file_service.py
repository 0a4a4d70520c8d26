from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from starlette.concurrency import run_in_threadpool

from app.config.config_settings.config_schema import AppConfig
from app.core.exceptions import BlobDeleteFailedException, DependencyUnavailableException, NotFoundException
from app.infra.storage.storage_interface import BlobStore, BlobStoreError
from app.metrics.instrumentation import Instrumentation
from app.models.files.file_record import FileRecord
from app.repo.crud.file.record_store import MetadataStoreError, RecordStore
from app.schemas.file.file_record_schemas import FileRecordRead
from app.schemas.file.file_schemas import UploadedFile
from app.services._base_service import BaseService

BLOB = "blob_store"
METADATA = "metadata_store"


def build_blob_key(owner_id: str, record_id: str, file_name: str) -> str:
    return f"{owner_id}/{record_id}-{file_name}"


def build_location(qualifier: str, blob_key: str) -> str:
    return f"{qualifier}/{blob_key}"


def blob_key_from_location(location: str) -> str:
    """去掉第一段存储限定名，剩余部分按原分隔符拼回即为 blob key。"""
    return "/".join(location.split("/")[1:])


class FileService(BaseService):
    """
    协调对象存储与元数据库的双写。

    两个存储之间没有分布式事务，一致性由步骤顺序和补偿动作保证：
    上传先写对象再写记录，记录写失败时删除刚写入的对象；
    删除先删对象再删记录，对象删不掉时保留记录。
    所有步骤严格串行执行。
    """

    def __init__(
            self,
            settings: AppConfig,
            blob_store: BlobStore,
            record_store: RecordStore,
            instrumentation: Instrumentation,
    ):
        super().__init__(settings)
        self.blob_store = blob_store
        self.record_store = record_store
        self.instrumentation = instrumentation

    # --- 内部辅助方法 (Internal Helpers) ---

    async def _put_blob(self, key: str, upload: UploadedFile) -> None:
        with self.instrumentation.timer(BLOB, "put"):
            await run_in_threadpool(self.blob_store.put, key, upload.content, upload.content_type)

    async def _delete_blob(self, key: str) -> None:
        with self.instrumentation.timer(BLOB, "delete"):
            await run_in_threadpool(self.blob_store.delete, key)

    async def _find_record(self, record_id: str) -> FileRecord:
        try:
            with self.instrumentation.timer(METADATA, "find"):
                record = await self.record_store.find_by_id(record_id)
        except MetadataStoreError as e:
            self.logger.error(f"Lookup of file record {record_id} failed: {e}")
            raise DependencyUnavailableException(message="Metadata lookup failed.") from e

        if record is None:
            raise NotFoundException(message=f"File record {record_id} not found.")
        return record

    async def _compensate_upload(self, key: str) -> None:
        """
        补偿删除刚写入的对象。失败只记录，不改变已经确定的响应；
        此时存储中会留下一个没有记录的孤儿对象。
        """
        try:
            await self._delete_blob(key)
        except BlobStoreError as e:
            self.instrumentation.count_compensation("failed")
            self.logger.error(f"Compensating delete failed, orphaned blob left at '{key}': {e}")
            return
        self.instrumentation.count_compensation("succeeded")
        self.logger.warning(f"Compensating delete removed blob '{key}'.")

    # --- 公共服务接口 (Public Service API) ---

    async def upload(self, upload: UploadedFile, owner_id: Optional[str] = None) -> FileRecordRead:
        """
        上传 saga：写对象 -> 写记录，记录失败时补偿删除对象。
        """
        owner_id = owner_id or self.settings.upload.default_owner_id
        record_id = uuid4()
        key = build_blob_key(owner_id, str(record_id), upload.file_name)

        # 1. 写对象；失败时两个存储都没有任何数据
        try:
            await self._put_blob(key, upload)
        except BlobStoreError as e:
            self.logger.error(f"Upload of '{key}' to blob store failed: {e}")
            raise DependencyUnavailableException(message="Blob write failed.") from e

        # 2. 写记录
        record = FileRecord(
            id=record_id,
            file_name=upload.file_name,
            url=build_location(self.blob_store.qualifier, key),
            upload_date=datetime.now(timezone.utc).date(),
        )
        try:
            with self.instrumentation.timer(METADATA, "create"):
                record = await self.record_store.create(record)
        except Exception as e:
            # 驱动层未包装的异常 (如连接超时) 同样需要补偿
            self.logger.error(f"Insert of file record {record_id} failed, compensating: {e!r}")
            await self._compensate_upload(key)
            raise DependencyUnavailableException(message="Metadata write failed.") from e

        self.logger.info(f"Stored file {record_id} ({upload.size} bytes) at '{record.url}'")
        return FileRecordRead.model_validate(record)

    async def get_file(self, record_id: str) -> FileRecordRead:
        """只读路径，仅查询元数据。"""
        record = await self._find_record(record_id)
        return FileRecordRead.model_validate(record)

    async def delete_file(self, record_id: str) -> None:
        """
        删除 saga：查记录 -> 删对象 -> 删记录。
        对象删除失败时保留记录，调用方可以重试；
        记录删除失败时对象已不存在，留下可被发现的 "记录指向空对象"。
        """
        record = await self._find_record(record_id)
        key = blob_key_from_location(record.url)

        try:
            await self._delete_blob(key)
        except BlobStoreError as e:
            self.logger.error(f"Delete of blob '{key}' failed, keeping record {record_id}: {e}")
            raise BlobDeleteFailedException(message="Blob delete failed.") from e

        try:
            with self.instrumentation.timer(METADATA, "delete"):
                await self.record_store.delete(record_id)
        except MetadataStoreError as e:
            self.logger.error(f"Blob '{key}' deleted but record {record_id} could not be removed: {e}")
            raise DependencyUnavailableException(message="Metadata delete failed.") from e

        self.logger.info(f"Deleted file {record_id} ('{key}')")
