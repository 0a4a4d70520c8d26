# app/core/global_exception.py

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.api_response import response_empty, response_error
from app.core.exceptions import BaseBusinessException
from app.core.logger import logger
from app.core.request_scope import get_request_id
from app.core.response_codes import ResponseCodeEnum

# 框架层 (路由匹配/方法) 抛出的状态码 -> 业务码
HTTP_STATUS_CODE_MAP = {
    400: ResponseCodeEnum.MALFORMED_REQUEST,
    404: ResponseCodeEnum.NOT_FOUND,
    405: ResponseCodeEnum.METHOD_NOT_ALLOWED,
    413: ResponseCodeEnum.PAYLOAD_TOO_LARGE,
}


async def business_exception_handler(request: Request, exc: BaseBusinessException):
    logger.warning(
        f"Business Exception | http_status: {exc.status_code}, code: {exc.code}, "
        f"message: {exc.message}, extra: {exc.extra}, path: {request.url.path}, "
        f"request_id: {get_request_id()}"
    )
    return response_empty(http_status=exc.status_code)


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    code = HTTP_STATUS_CODE_MAP.get(exc.status_code, ResponseCodeEnum.SERVER_ERROR)
    # 405 需要保留 Allow 头
    return response_error(
        code=code,
        http_status=exc.status_code,
        message=f"{request.method} {request.url.path}: {exc.detail}",
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return response_error(
        code=ResponseCodeEnum.MALFORMED_REQUEST,
        http_status=400,
        message=f"Validation failed: {exc.errors()}",
    )


async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled Exception | {repr(exc)} | path: {request.url.path} | request_id: {get_request_id()}")
    logger.opt(exception=exc).debug("Unhandled exception traceback")
    return response_error(code=ResponseCodeEnum.SERVER_ERROR, http_status=500)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BaseBusinessException, business_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)
