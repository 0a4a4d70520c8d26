# app/core/admission/route_policies.py
from dataclasses import dataclass
from typing import Dict, FrozenSet

# 反向代理 / 负载均衡会追加的头
FORWARDING_HEADERS = frozenset({
    "x-forwarded-for",
    "x-forwarded-proto",
    "x-forwarded-port",
    "x-forwarded-host",
    "x-real-ip",
    "x-amzn-trace-id",
    "forwarded",
    "via",
})

# 只读 / 删除类请求允许的头，不包含任何暗示请求体的头
READ_HEADERS = frozenset({
    "cache-control",
    "postman-token",
    "host",
    "user-agent",
    "accept",
    "accept-encoding",
    "connection",
}) | FORWARDING_HEADERS

# 上传请求额外允许声明请求体的头
MUTATING_HEADERS = READ_HEADERS | frozenset({
    "content-type",
    "content-length",
})


@dataclass(frozen=True)
class RoutePolicy:
    methods: FrozenSet[str]
    allowed_headers: FrozenSet[str]
    allows_body: bool


ROUTE_POLICIES: Dict[str, RoutePolicy] = {
    "file.upload": RoutePolicy(
        methods=frozenset({"POST"}),
        allowed_headers=MUTATING_HEADERS,
        allows_body=True,
    ),
    "file.get": RoutePolicy(
        methods=frozenset({"GET"}),
        allowed_headers=READ_HEADERS,
        allows_body=False,
    ),
    "file.delete": RoutePolicy(
        methods=frozenset({"DELETE"}),
        allowed_headers=READ_HEADERS,
        allows_body=False,
    ),
    "healthz": RoutePolicy(
        methods=frozenset({"GET"}),
        allowed_headers=READ_HEADERS,
        allows_body=False,
    ),
}
