from abc import ABC, abstractmethod


class BlobStoreError(Exception):
    """对象存储调用失败 (网络、权限、服务端错误等)，对上层不透明。"""


class BlobStore(ABC):
    """
    一个抽象基类 (ABC)，定义了所有对象存储客户端必须实现的统一接口。
    FileService 只通过这三个方法与存储后端交互；实现类负责把底层 SDK
    的异常统一转换为 BlobStoreError。
    """

    @property
    @abstractmethod
    def qualifier(self) -> str:
        """存储限定名 (bucket / container)，作为对外 url 的第一段。"""

    @abstractmethod
    def put(self, key: str, data: bytes, content_type: str) -> None:
        """写入一个对象。"""

    @abstractmethod
    def get(self, key: str) -> bytes:
        """读取一个对象的完整内容。"""

    @abstractmethod
    def delete(self, key: str) -> None:
        """删除一个对象。"""
