from abc import ABC, abstractmethod
from typing import Optional

from app.models.files.file_record import FileRecord


class MetadataStoreError(Exception):
    """元数据库调用失败，对上层不透明。"""


class RecordStore(ABC):
    """
    元数据存储接口。实现类负责把底层驱动异常统一转换为 MetadataStoreError。
    """

    @abstractmethod
    async def create(self, record: FileRecord) -> FileRecord:
        """插入一条文件记录并提交。"""

    @abstractmethod
    async def find_by_id(self, record_id: str) -> Optional[FileRecord]:
        """按 id 查询，不存在 (包括 id 格式非法) 时返回 None。"""

    @abstractmethod
    async def delete(self, record_id: str) -> bool:
        """按 id 删除并提交，返回是否确实删除了一行。"""

    @abstractmethod
    async def record_health_check(self) -> None:
        """写入一条健康检查哨兵记录，用于验证数据库可写。"""
