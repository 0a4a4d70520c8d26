# app/core/admission/single_file.py
"""
单文件上传约束。

逐块读取 multipart 请求体：第一个文件部分被缓存在内存中，之后出现的任何
文件部分只会在 UploadContext 上打标记，其内容直接丢弃。解析结束后由
ensure_single_file() 检查标记，再决定是否进入上传流程。
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from python_multipart.exceptions import MultipartParseError
from python_multipart.multipart import MultipartParser, parse_options_header
from starlette.requests import ClientDisconnect, Request

from app.core.admission.gate import get_multipart_boundary
from app.core.exceptions import MalformedRequestException, PayloadTooLargeException
from app.core.logger import logger
from app.schemas.file.file_schemas import UploadedFile


def _decode(value: bytes) -> str:
    try:
        return value.decode("utf-8")
    except UnicodeDecodeError:
        return value.decode("latin-1")


@dataclass
class UploadContext:
    """一次上传请求的解析状态，只在该请求内有效。"""
    file: Optional[UploadedFile] = None
    file_field: Optional[str] = None
    multiple_files_attempted: bool = False
    discarded_files: int = 0
    fields: Dict[str, str] = field(default_factory=dict)


class SingleFileMultipartReader:
    """
    基于 python-multipart 的流式解析器回调实现。
    回调内部只修改状态，不抛异常；超限等情况在 feed() 之后统一检查。
    """

    def __init__(self, boundary: bytes, max_file_size: int, max_field_size: int = 1024 * 1024):
        self.max_file_size = max_file_size
        self.max_field_size = max_field_size
        self.context = UploadContext()
        self.too_large = False

        self._header_field = b""
        self._header_value = b""
        self._headers: List[Tuple[bytes, bytes]] = []
        self._mode: Optional[str] = None
        self._part_name = ""
        self._part_filename: Optional[str] = None
        self._part_content_type = ""
        self._buffer = bytearray()

        self.parser = MultipartParser(boundary, {
            "on_part_begin": self._on_part_begin,
            "on_part_data": self._on_part_data,
            "on_part_end": self._on_part_end,
            "on_header_field": self._on_header_field,
            "on_header_value": self._on_header_value,
            "on_header_end": self._on_header_end,
            "on_headers_finished": self._on_headers_finished,
        })

    # --- 解析器回调 ---

    def _on_part_begin(self) -> None:
        self._headers = []
        self._mode = None
        self._part_name = ""
        self._part_filename = None
        self._part_content_type = ""
        self._buffer = bytearray()

    def _on_header_field(self, data: bytes, start: int, end: int) -> None:
        self._header_field += data[start:end]

    def _on_header_value(self, data: bytes, start: int, end: int) -> None:
        self._header_value += data[start:end]

    def _on_header_end(self) -> None:
        self._headers.append((self._header_field.lower(), self._header_value))
        self._header_field = b""
        self._header_value = b""

    def _on_headers_finished(self) -> None:
        headers = dict(self._headers)
        _, options = parse_options_header(headers.get(b"content-disposition", b""))
        self._part_name = _decode(options.get(b"name", b""))
        self._part_content_type = _decode(headers.get(b"content-type", b"application/octet-stream"))

        if b"filename" not in options:
            self._mode = "field"
            return

        self._part_filename = _decode(options[b"filename"])
        if self.context.file is None:
            self._mode = "file"
        else:
            self._mode = "discard"
            self.context.multiple_files_attempted = True
            self.context.discarded_files += 1
            logger.warning(
                f"Additional file part '{self._part_name}' ({self._part_filename}) rejected, "
                f"only one file is accepted per upload"
            )

    def _on_part_data(self, data: bytes, start: int, end: int) -> None:
        if self._mode == "discard" or self.too_large:
            return
        self._buffer.extend(data[start:end])
        limit = self.max_file_size if self._mode == "file" else self.max_field_size
        if len(self._buffer) > limit:
            self.too_large = True
            self._buffer = bytearray()

    def _on_part_end(self) -> None:
        if self._mode == "field":
            self.context.fields[self._part_name] = _decode(bytes(self._buffer))
        elif self._mode == "file" and not self.too_large:
            self.context.file = UploadedFile(
                file_name=self._part_filename or "",
                content_type=self._part_content_type,
                content=bytes(self._buffer),
            )
            self.context.file_field = self._part_name
        self._buffer = bytearray()
        self._mode = None

    # --- 对外接口 ---

    def feed(self, chunk: bytes) -> None:
        try:
            self.parser.write(chunk)
        except MultipartParseError as e:
            raise MalformedRequestException(message=f"Malformed multipart body: {e}") from e
        if self.too_large:
            raise PayloadTooLargeException(
                message=f"Part exceeds limit (file: {self.max_file_size} bytes, field: {self.max_field_size} bytes)"
            )

    def finish(self) -> UploadContext:
        try:
            self.parser.finalize()
        except MultipartParseError as e:
            raise MalformedRequestException(message=f"Malformed multipart body: {e}") from e
        return self.context


async def parse_single_file_upload(request: Request, max_file_size: int, max_field_size: int) -> UploadContext:
    """逐块消费请求体，返回解析后的 UploadContext。"""
    boundary = get_multipart_boundary(request)
    if boundary is None:
        raise MalformedRequestException(message="Expected a multipart/form-data body")

    reader = SingleFileMultipartReader(boundary, max_file_size, max_field_size)
    try:
        async for chunk in request.stream():
            if chunk:
                reader.feed(chunk)
    except ClientDisconnect as e:
        raise MalformedRequestException(message="Client disconnected during upload") from e
    return reader.finish()


def ensure_single_file(context: UploadContext, field_name: str) -> UploadedFile:
    """解析结束后的检查：多文件或缺少文件都视为非法请求。"""
    if context.multiple_files_attempted:
        raise MalformedRequestException(
            message="Multiple files in a single upload",
            extra={"discarded_files": context.discarded_files},
        )
    if context.file is None or context.file_field != field_name or not context.file.file_name:
        raise MalformedRequestException(
            message=f"Missing file field '{field_name}'",
            extra={"received_field": context.file_field},
        )
    return context.file
