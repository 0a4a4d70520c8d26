# app/models/__init__.py
# 导入所有表模型，确保 SQLModel.metadata 在 create_all 之前完成注册

# === 文件模块 ===
from app.models.files.file_record import FileRecord

# === 健康检查 ===
from app.models.health_check import HealthCheck

__all__ = [
    "FileRecord",
    "HealthCheck",
]
