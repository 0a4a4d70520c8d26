from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

from app.config.config_settings.config_schema import DatabaseConfig
from app.core.logger import logger
import app.models  # noqa: F401  注册所有表模型


def build_engine(config: DatabaseConfig) -> AsyncEngine:
    """初始化数据库引擎，进程启动时调用一次。"""
    kwargs = {"echo": config.echo}
    if not config.url.startswith("sqlite"):
        kwargs["pool_pre_ping"] = config.pool_pre_ping
    return create_async_engine(config.url, **kwargs)


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


# 初始化数据库（启动时调用）
async def create_db_and_tables(engine: AsyncEngine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    logger.info("Database tables synchronized.")
