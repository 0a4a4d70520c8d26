from datetime import date
from uuid import UUID

from pydantic import BaseModel, Field


class FileRecordRead(BaseModel):
    """
    对外返回的文件记录，字段与数据库记录一一对应。
    """
    file_name: str = Field(..., description="文件的原始名称")
    id: UUID
    url: str = Field(..., description="对象在存储中的完整位置 ({bucket}/{owner}/{id}-{file_name})")
    upload_date: date

    # 允许从 ORM 对象模型进行转换
    model_config = {
        "from_attributes": True
    }
