from app.config.config_settings.config_schema import StorageConfig
from app.core.logger import logger
from app.infra.storage.s3_client import S3BlobStore
from app.infra.storage.storage_interface import BlobStore


def build_blob_store(config: StorageConfig) -> BlobStore:
    """
    根据配置创建对象存储客户端。应用启动时调用一次，
    结果通过 ServiceContainer 显式注入到各个服务。
    """
    logger.debug(f"Initializing blob store of type '{config.type}'...")

    if config.type in ("s3", "minio"):
        store = S3BlobStore(config.params)
        if config.params.create_bucket:
            store.create_bucket_if_not_exists()
    else:
        # 理论上 pydantic 的 Literal 会阻止未知类型
        raise ValueError(f"Unsupported storage type '{config.type}'.")

    logger.info(f"Blob store ready: {config.type} (bucket: {store.qualifier})")
    return store
