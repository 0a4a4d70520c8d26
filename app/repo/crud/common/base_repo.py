from typing import Any, Generic, Optional, Type, TypeVar

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel, select

ModelType = TypeVar("ModelType", bound=SQLModel)


class BaseRepository(Generic[ModelType]):
    """
    绑定在单个 AsyncSession 上的通用仓储。事务边界由调用方控制。
    """

    def __init__(self, db: AsyncSession, model: Type[ModelType]):
        self.db = db
        self.model = model

    # ==========================
    # 事务控制方法 (Transaction Control)
    # ==========================

    async def commit(self):
        await self.db.commit()

    # ==========================
    # 数据创建方法 (Create)
    # ==========================

    async def add(self, db_obj: ModelType) -> ModelType:
        """将对象加入会话并 flush，但不提交。"""
        self.db.add(db_obj)
        await self.db.flush()
        return db_obj

    # ==========================
    # 数据查询方法 (Read)
    # ==========================

    async def get_by_id(self, item_id: Any, pk_field: str = "id") -> Optional[ModelType]:
        stmt = select(self.model).where(getattr(self.model, pk_field) == item_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    # ==========================
    # 数据删除方法 (Delete)
    # ==========================

    async def delete_by_id(self, item_id: Any, pk_field: str = "id") -> int:
        """物理删除，返回受影响的行数。"""
        stmt = delete(self.model).where(getattr(self.model, pk_field) == item_id)
        result = await self.db.execute(stmt)
        return result.rowcount
