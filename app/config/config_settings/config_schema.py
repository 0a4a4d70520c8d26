from typing import Literal, Optional

from pydantic import BaseModel, Field


class ServerConfig(BaseModel):
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "info"
    api_prefix: str = ""
    env: str = "dev"


class DatabaseConfig(BaseModel):
    url: str = "sqlite+aiosqlite:///./file_service.db"
    echo: bool = False
    pool_pre_ping: bool = True


class LoggingConfig(BaseModel):
    enable_file: bool = True
    log_dir: str = "logs"
    rotation: str = "1 week"
    retention: str = "1 month"


class S3Params(BaseModel):
    """
    S3 兼容对象存储的客户端参数 (AWS S3 / MinIO)。
    """

    endpoint: Optional[str] = None
    """
    服务地址 (不含 http/https)。
    - AWS S3: 留空 (None)，Boto3 会根据 region 自动生成。
    - MinIO: 必须填写, e.g., 'minio:9000'
    """

    region: str = "us-east-1"
    access_key: Optional[str] = None
    secret_key: Optional[str] = None
    bucket_name: str = "file-service"
    secure: bool = True

    path_style: Literal["auto", "path", "virtual"] = "auto"
    """寻址风格 (本地 MinIO 通常需要 'path')"""

    create_bucket: bool = False
    """启动时若 bucket 不存在是否自动创建"""

    connect_timeout: int = 10
    read_timeout: int = 30


class StorageConfig(BaseModel):
    type: Literal["s3", "minio"] = "s3"
    params: S3Params = Field(default_factory=S3Params)


class UploadConfig(BaseModel):
    max_file_size_mb: int = Field(5, ge=1, description="单个上传文件的大小上限 (MB)")
    max_field_size_kb: int = Field(1024, ge=1, description="单个普通文本字段的大小上限 (KB)")
    field_name: str = Field("file", description="multipart 表单中承载文件的字段名")
    default_owner_id: str = Field("default-user", description="未接入认证时使用的占位 owner")


class MetricsConfig(BaseModel):
    enabled: bool = False
    namespace: str = "file_service"
    exporter_port: Optional[int] = Field(None, description="独立的 Prometheus 抓取端口，为空则不启动")


class AppConfig(BaseModel):
    server: ServerConfig = Field(default_factory=ServerConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    upload: UploadConfig = Field(default_factory=UploadConfig)
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)
