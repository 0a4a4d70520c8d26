# app/core/admission/gate.py
"""
请求准入校验。

每个路由在 ROUTE_POLICIES 中登记一条策略，本模块只有一个通用的校验函数，
在任何业务逻辑之前执行。校验失败统一抛出 MalformedRequestException，
由全局异常处理器返回无 body 的 400。
"""
from typing import Callable, Optional, Tuple

from python_multipart.multipart import parse_options_header
from starlette.requests import Request

from app.core.admission.route_policies import ROUTE_POLICIES, RoutePolicy
from app.core.exceptions import MalformedRequestException


def get_multipart_boundary(request: Request) -> Optional[bytes]:
    """返回 multipart/form-data 的 boundary；不是 multipart 请求时返回 None。"""
    content_type, options = parse_options_header(request.headers.get("content-type", ""))
    if content_type.strip() != b"multipart/form-data":
        return None
    return options.get(b"boundary") or None


def find_disallowed_headers(request: Request, policy: RoutePolicy) -> Tuple[str, ...]:
    return tuple(
        name for name in request.headers.keys()
        if name.lower() not in policy.allowed_headers
    )


async def admit_request(request: Request, policy: RoutePolicy) -> None:
    if request.method not in policy.methods:
        raise MalformedRequestException(
            message=f"Method {request.method} not supported",
            extra={"path": request.url.path},
        )

    disallowed = find_disallowed_headers(request, policy)
    if disallowed:
        raise MalformedRequestException(
            message="Disallowed headers",
            extra={"headers": disallowed},
        )

    if policy.allows_body:
        if get_multipart_boundary(request) is None:
            raise MalformedRequestException(message="Expected a multipart/form-data body")
        return

    if "content-type" in request.headers:
        raise MalformedRequestException(message="Content-Type on a request without body")
    if request.query_params:
        raise MalformedRequestException(
            message="Query parameters are not accepted",
            extra={"query": str(request.query_params)},
        )
    if await request.body():
        raise MalformedRequestException(message="Request body is not accepted")


def admission_gate(route_name: str) -> Callable:
    """
    为指定路由生成 FastAPI 依赖，在路由装饰器的 dependencies 中使用。
    """
    policy = ROUTE_POLICIES[route_name]

    async def _admit(request: Request) -> None:
        await admit_request(request, policy)

    _admit.__name__ = f"admit_{route_name.replace('.', '_')}"
    return _admit
