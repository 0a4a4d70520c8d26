from fastapi import APIRouter, Depends

from app.api.dependencies.services import get_file_service, get_uploaded_file
from app.core.admission.gate import admission_gate
from app.core.api_response import response_empty, response_success
from app.core.response_codes import ResponseCodeEnum
from app.schemas.file.file_record_schemas import FileRecordRead
from app.schemas.file.file_schemas import UploadedFile
from app.services.file.file_service import FileService

router = APIRouter()


@router.post(
    "",
    status_code=201,
    response_model=FileRecordRead,
    summary="上传单个文件",
    dependencies=[Depends(admission_gate("file.upload"))],
)
async def upload_file(
    upload: UploadedFile = Depends(get_uploaded_file),
    file_service: FileService = Depends(get_file_service),
):
    """
    multipart/form-data 上传，表单中只能有一个文件字段 `file`。
    """
    record = await file_service.upload(upload)
    return response_success(data=record, code=ResponseCodeEnum.CREATED, http_status=201)


@router.get(
    "/{file_id}",
    response_model=FileRecordRead,
    summary="查询文件记录",
    dependencies=[Depends(admission_gate("file.get"))],
)
async def get_file(
    file_id: str,
    file_service: FileService = Depends(get_file_service),
):
    record = await file_service.get_file(file_id)
    return response_success(data=record)


@router.delete(
    "/{file_id}",
    status_code=204,
    summary="删除文件及其记录",
    dependencies=[Depends(admission_gate("file.delete"))],
)
async def delete_file(
    file_id: str,
    file_service: FileService = Depends(get_file_service),
):
    """先删除对象存储中的文件，成功后再删除记录。"""
    await file_service.delete_file(file_id)
    return response_empty(http_status=204)
