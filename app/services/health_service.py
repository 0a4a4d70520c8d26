from app.config.config_settings.config_schema import AppConfig
from app.core.exceptions import DependencyUnavailableException
from app.metrics.instrumentation import Instrumentation
from app.repo.crud.file.record_store import MetadataStoreError, RecordStore
from app.services._base_service import BaseService


class HealthService(BaseService):
    """存活探针：向元数据库写入一条哨兵记录来验证其可写。"""

    def __init__(self, settings: AppConfig, record_store: RecordStore, instrumentation: Instrumentation):
        super().__init__(settings)
        self.record_store = record_store
        self.instrumentation = instrumentation

    async def check(self) -> None:
        try:
            with self.instrumentation.timer("metadata_store", "health_check"):
                await self.record_store.record_health_check()
        except MetadataStoreError as e:
            self.logger.error(f"Health check failed: {e}")
            raise DependencyUnavailableException(message="Health check write failed.") from e
