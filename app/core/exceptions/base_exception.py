# app/core/exceptions/base_exception.py

from typing import Optional

from app.core.response_codes import ResponseCodeEnum


class BaseBusinessException(Exception):
    """
    所有业务异常的基类。

    `status_code` 决定最终的 HTTP 状态码；`code` / `message` 只写入日志，
    不会出现在响应体中。
    """
    status_code: int = 500

    def __init__(
            self,
            code_enum: Optional[ResponseCodeEnum] = None,
            code: Optional[int] = None,
            status_code: Optional[int] = None,
            message: Optional[str] = None,
            extra: Optional[dict] = None,
    ):
        code_enum = code_enum or ResponseCodeEnum.SERVER_ERROR
        self.code = code if code is not None else code_enum.code
        self.message = message or code_enum.message
        if status_code is not None:
            self.status_code = status_code
        self.extra = extra or {}
        super().__init__(self.message)

    def __str__(self):
        return f"[{self.code}] {self.message}"


class MalformedRequestException(BaseBusinessException):
    """
    请求未通过准入校验 (非法 header、多余的 body / query、缺少或多个文件)。
    """
    status_code = 400

    def __init__(self, message: str = "请求不合法", extra: Optional[dict] = None):
        super().__init__(ResponseCodeEnum.MALFORMED_REQUEST, message=message, extra=extra)


class PayloadTooLargeException(BaseBusinessException):
    status_code = 413

    def __init__(self, message: str = "上传文件过大"):
        super().__init__(ResponseCodeEnum.PAYLOAD_TOO_LARGE, message=message)


class NotFoundException(BaseBusinessException):
    """
    当请求的资源在数据库中不存在时抛出。
    """
    status_code = 404

    def __init__(self, message: str = "资源不存在"):
        super().__init__(ResponseCodeEnum.NOT_FOUND, message=message)
