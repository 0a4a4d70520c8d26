from app.core.exceptions.base_exception import BaseBusinessException
from app.core.response_codes import ResponseCodeEnum


# === 存储依赖相关异常 ===
class DependencyUnavailableException(BaseBusinessException):
    """对象存储或元数据库在关键路径上调用失败。"""
    status_code = 503

    def __init__(self, message: str = None):
        super().__init__(ResponseCodeEnum.DEPENDENCY_UNAVAILABLE, message=message)


class BlobDeleteFailedException(DependencyUnavailableException):
    """删除流程中对象存储删除失败，元数据记录保持不变。"""
    status_code = 500

    def __init__(self, message: str = None):
        BaseBusinessException.__init__(self, ResponseCodeEnum.BLOB_DELETE_FAILED, message=message)
