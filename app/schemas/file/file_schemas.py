from pydantic import BaseModel, Field


class UploadedFile(BaseModel):
    """
    已完整读入内存的单个上传文件，生命周期仅限于一次请求。
    """
    file_name: str = Field(..., description="客户端提供的原始文件名")
    content_type: str = Field("application/octet-stream", description="客户端声明的 MIME 类型")
    content: bytes = Field(..., repr=False)

    @property
    def size(self) -> int:
        return len(self.content)
