# app/core/middleware.py

import time
from uuid import uuid4

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from app.core.logger import logger
from app.core.request_scope import set_request_scope
from app.metrics.instrumentation import Instrumentation


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    为每个请求分配 request_id，记录访问日志和请求级指标。
    """

    def __init__(self, app, instrumentation: Instrumentation):
        super().__init__(app)
        self.instrumentation = instrumentation

    async def dispatch(self, request: Request, call_next):
        request_id = uuid4().hex
        set_request_scope({"request_id": request_id})

        start = time.perf_counter()
        logger.info(
            f"Request received | id: {request_id}, method: {request.method}, path: {request.url.path}, "
            f"client: {request.client.host if request.client else '-'}, "
            f"user_agent: {request.headers.get('user-agent', '-')}"
        )

        response = await call_next(request)

        duration = time.perf_counter() - start
        try:
            self.instrumentation.observe_request(request.method, response.status_code, duration)
        except Exception as e:
            logger.error(f"[Metrics] Failed to record request {request.method} {request.url.path}: {e}")
        response.headers["X-Request-ID"] = request_id
        logger.info(
            f"Response sent | id: {request_id}, method: {request.method}, path: {request.url.path}, "
            f"status: {response.status_code}, duration_ms: {duration * 1000:.1f}"
        )
        return response
