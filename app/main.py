from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from app.api.dependencies.services import ServiceContainer
from app.api.router import api_router, health_api_router
from app.config.config_settings.config_schema import AppConfig
from app.core.global_exception import register_exception_handlers
from app.core.logger import configure_file_logging, logger
from app.core.middleware import RequestContextMiddleware
from app.infra.db.session import build_engine, build_session_factory, create_db_and_tables
from app.infra.storage.storage_factory import build_blob_store
from app.metrics.instrumentation import Instrumentation, build_instrumentation
from app.repo.crud.file.file_record_repo import SqlRecordStore


async def build_container(settings: AppConfig, instrumentation: Instrumentation) -> ServiceContainer:
    """构建生产环境依赖：对象存储客户端、数据库引擎及表结构。"""
    engine = build_engine(settings.database)
    await create_db_and_tables(engine)
    return ServiceContainer(
        settings=settings,
        blob_store=build_blob_store(settings.storage),
        record_store=SqlRecordStore(build_session_factory(engine)),
        instrumentation=instrumentation,
        engine=engine,
    )


def create_app(settings: AppConfig, container: Optional[ServiceContainer] = None) -> FastAPI:
    """
    创建应用。传入 container 时直接使用 (测试)，否则在 lifespan 中构建。
    """
    if settings.logging.enable_file:
        configure_file_logging(settings.logging.log_dir, settings.logging.rotation, settings.logging.retention)

    instrumentation = container.instrumentation if container else build_instrumentation(settings.metrics)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("🚀 应用启动中，正在初始化资源...")
        if container is None:
            app.state.container = await build_container(settings, instrumentation)
        logger.info("✅ 所有资源初始化完成")

        yield

        engine = app.state.container.engine
        if engine is not None:
            await engine.dispose()
        logger.info("🛑 应用已关闭，数据库连接已释放")

    # 对外只暴露文件接口和健康检查，不提供文档路由
    app = FastAPI(title="File Service", lifespan=lifespan, docs_url=None, redoc_url=None, openapi_url=None)
    # lifespan 之前也能取到 container (例如不进入 lifespan 的 TestClient)
    if container is not None:
        app.state.container = container

    register_exception_handlers(app)
    app.add_middleware(RequestContextMiddleware, instrumentation=instrumentation)
    app.include_router(health_api_router)
    app.include_router(api_router, prefix=settings.server.api_prefix)
    logger.debug(f"Registered routes: {[getattr(r, 'path', r) for r in app.routes]}")
    return app


def get_application() -> FastAPI:
    from app.config.settings import settings
    return create_app(settings)


if __name__ == "__main__":
    import uvicorn
    from app.config.settings import settings

    uvicorn.run(
        "app.main:get_application",
        factory=True,
        host=settings.server.host,
        port=settings.server.port,
        log_level=settings.server.log_level,
    )
