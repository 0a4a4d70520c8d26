import asyncio

import pytest
from starlette.requests import Request

from app.core.admission.gate import admit_request, get_multipart_boundary
from app.core.admission.route_policies import READ_HEADERS, ROUTE_POLICIES, RoutePolicy
from app.core.exceptions import MalformedRequestException

GET_POLICY = ROUTE_POLICIES["file.get"]
UPLOAD_POLICY = ROUTE_POLICIES["file.upload"]


def make_request(method="GET", headers=None, body=b"", query=b"") -> Request:
    headers = headers if headers is not None else {"host": "testserver", "user-agent": "pytest"}
    scope = {
        "type": "http",
        "method": method,
        "path": "/file/abc",
        "query_string": query,
        "headers": [(k.lower().encode(), v.encode()) for k, v in headers.items()],
    }

    async def receive():
        return {"type": "http.request", "body": body, "more_body": False}

    return Request(scope, receive)


def admit(request, policy):
    asyncio.run(admit_request(request, policy))


def test_plain_read_request_is_admitted():
    admit(make_request(), GET_POLICY)


def test_header_names_are_case_insensitive():
    admit(make_request(headers={"Host": "testserver", "User-Agent": "pytest", "X-Forwarded-For": "10.0.0.1"}), GET_POLICY)


def test_wrong_method_is_rejected():
    with pytest.raises(MalformedRequestException):
        admit(make_request(method="POST"), GET_POLICY)


def test_unknown_header_is_rejected():
    with pytest.raises(MalformedRequestException) as exc_info:
        admit(make_request(headers={"host": "testserver", "x-custom": "1"}), GET_POLICY)
    assert exc_info.value.extra == {"headers": ("x-custom",)}


def test_body_on_read_route_is_rejected():
    # 仅 body 本身，不带任何声明 body 的头
    with pytest.raises(MalformedRequestException) as exc_info:
        admit(make_request(body=b"{}"), GET_POLICY)
    assert exc_info.value.message == "Request body is not accepted"


def test_content_type_on_read_route_is_rejected():
    relaxed = RoutePolicy(
        methods=frozenset({"GET"}),
        allowed_headers=READ_HEADERS | frozenset({"content-type"}),
        allows_body=False,
    )

    with pytest.raises(MalformedRequestException) as exc_info:
        admit(make_request(headers={"host": "testserver", "content-type": "application/json"}), relaxed)
    assert exc_info.value.message == "Content-Type on a request without body"


def test_query_on_read_route_is_rejected():
    with pytest.raises(MalformedRequestException) as exc_info:
        admit(make_request(query=b"verbose=1"), GET_POLICY)
    assert exc_info.value.message == "Query parameters are not accepted"


def test_upload_requires_multipart():
    request = make_request(
        method="POST",
        headers={"host": "testserver", "content-type": "application/json"},
        body=b"{}",
    )

    with pytest.raises(MalformedRequestException):
        admit(request, UPLOAD_POLICY)


def test_multipart_upload_is_admitted_without_reading_body():
    request = make_request(
        method="POST",
        headers={"host": "testserver", "content-type": "multipart/form-data; boundary=abc"},
    )

    admit(request, UPLOAD_POLICY)
    assert get_multipart_boundary(request) == b"abc"
