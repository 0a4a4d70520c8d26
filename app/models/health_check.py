from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class HealthCheck(SQLModel, table=True):
    """存活探针的哨兵记录，每次 /healthz 插入一行，仅用于验证数据库可写。"""
    __tablename__ = "health_check"

    check_id: Optional[int] = Field(default=None, primary_key=True)
    checked_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True), nullable=False)
