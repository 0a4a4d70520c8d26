# app/api/dependencies/services.py
from dataclasses import dataclass, field
from typing import Optional

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncEngine

from app.config.config_settings.config_schema import AppConfig
from app.core.admission.single_file import ensure_single_file, parse_single_file_upload
from app.infra.storage.storage_interface import BlobStore
from app.metrics.instrumentation import Instrumentation
from app.repo.crud.file.record_store import RecordStore
from app.schemas.file.file_schemas import UploadedFile
from app.services.file.file_service import FileService
from app.services.health_service import HealthService


@dataclass
class ServiceContainer:
    """
    进程级依赖集合，在启动时构建一次，挂在 app.state 上。
    路由通过下面的 getter 取用，测试中可以整体替换为假实现。
    """
    settings: AppConfig
    blob_store: BlobStore
    record_store: RecordStore
    instrumentation: Instrumentation
    engine: Optional[AsyncEngine] = None
    file_service: FileService = field(init=False)
    health_service: HealthService = field(init=False)

    def __post_init__(self):
        self.file_service = FileService(
            settings=self.settings,
            blob_store=self.blob_store,
            record_store=self.record_store,
            instrumentation=self.instrumentation,
        )
        self.health_service = HealthService(
            settings=self.settings,
            record_store=self.record_store,
            instrumentation=self.instrumentation,
        )


def get_container(request: Request) -> ServiceContainer:
    return request.app.state.container


def get_file_service(request: Request) -> FileService:
    return get_container(request).file_service


def get_health_service(request: Request) -> HealthService:
    return get_container(request).health_service


async def get_uploaded_file(request: Request) -> UploadedFile:
    """
    读取并校验单文件上传。必须在准入校验之后执行。
    """
    upload_config = get_container(request).settings.upload
    context = await parse_single_file_upload(
        request,
        max_file_size=upload_config.max_file_size_mb * 1024 * 1024,
        max_field_size=upload_config.max_field_size_kb * 1024,
    )
    return ensure_single_file(context, upload_config.field_name)
