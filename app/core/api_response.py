from typing import Any, Dict, Optional

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel

from app.core.logger import logger
from app.core.response_codes import ResponseCodeEnum

# 所有响应统一追加的缓存控制头
NO_CACHE_HEADERS: Dict[str, str] = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "X-Content-Type-Options": "nosniff",
}


def _merge_headers(headers: Optional[Dict[str, str]]) -> Dict[str, str]:
    merged = dict(NO_CACHE_HEADERS)
    if headers:
        merged.update(headers)
    return merged


# === 成功响应 ===
def response_success(
    data: Any = None,
    code: ResponseCodeEnum = ResponseCodeEnum.SUCCESS,
    http_status: int = 200,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    """
    返回 JSON 响应体，data 直接作为 body，不做额外包装。
    """
    logger.debug(f"Response Success | http_status: {http_status}, code: {code.code}")

    if isinstance(data, BaseModel):
        data = data.model_dump()

    return JSONResponse(
        status_code=http_status,
        content=jsonable_encoder(data),
        headers=_merge_headers(headers),
    )


# === 无 body 响应 ===
def response_empty(
    http_status: int = 200,
    headers: Optional[Dict[str, str]] = None,
) -> Response:
    """
    没有 body 的响应。除 204/304 外显式声明 Content-Length: 0。
    """
    final_headers = _merge_headers(headers)
    if http_status not in (204, 304):
        final_headers["Content-Length"] = "0"
    return Response(status_code=http_status, headers=final_headers)


# === 错误响应 ===
def response_error(
    code: ResponseCodeEnum,
    http_status: int,
    message: Optional[str] = None,
    headers: Optional[Dict[str, str]] = None,
) -> Response:
    """
    错误响应永远不带 body，细节只进入日志。
    """
    final_message = message or code.message
    logger.warning(f"Response Error | http_status: {http_status}, code: {code.code}, message: {final_message}")
    return response_empty(http_status=http_status, headers=headers)
