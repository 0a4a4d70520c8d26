from datetime import date
from uuid import UUID

from sqlmodel import Field, SQLModel


class FileRecord(SQLModel, table=True):
    """
    文件记录实体类。
    每条记录对应对象存储中的一个对象，`url` 保存 `{bucket}/{blob_key}`。
    没有更新操作：记录只会被创建和删除。
    """
    __tablename__ = "files"

    id: UUID = Field(primary_key=True, description="上传时由服务端生成的唯一标识")
    file_name: str = Field(..., description="客户端提供的原始文件名，原样保存")
    url: str = Field(..., description="对象在存储中的完整位置: {bucket}/{owner}/{id}-{file_name}")
    upload_date: date = Field(..., description="创建日期 (UTC，不含时间)")
