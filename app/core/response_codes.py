from enum import Enum


class ResponseCodeEnum(Enum):

    # === 通用响应码 ===
    SUCCESS = (0, "请求成功")
    CREATED = (201, "资源创建成功")
    MALFORMED_REQUEST = (40000, "请求不合法")
    NOT_FOUND = (40400, "资源不存在")
    METHOD_NOT_ALLOWED = (40500, "请求方法不被允许")
    PAYLOAD_TOO_LARGE = (41300, "上传文件过大")
    SERVER_ERROR = (50000, "服务器内部错误")

    # === 存储依赖 ===
    BLOB_DELETE_FAILED = (50010, "对象存储删除失败")
    DEPENDENCY_UNAVAILABLE = (50300, "依赖服务不可用")

    def __init__(self, code: int, message: str):
        self._code = code
        self._message = message

    @property
    def code(self):
        return self._code

    @property
    def message(self):
        return self._message
