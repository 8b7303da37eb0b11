"""配置文件管理接口。

GET  /api/v1/admin/file?file=synonyms.txt                      读取文件
GET  /api/v1/admin/file?file=synonyms.txt&contents=a,b          覆盖写入
GET  /api/v1/admin/file                                        列出配置根目录
POST /api/v1/admin/file  (form: file, contents)                同上，适合较大内容
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Form, Query
from fastapi.responses import JSONResponse, PlainTextResponse, Response, StreamingResponse

from pushfile.api.dependencies import get_file_service, get_request_id
from pushfile.files.access import FileAccessResult, FileAccessService
from pushfile.observability.logging import get_logger
from pushfile.schemas.common import ApiResponse
from pushfile.schemas.files import DirectoryListing

router = APIRouter()
logger = get_logger(__name__)

# 配置文件是运维状态，每次都必须重新读取
NO_CACHE_HEADERS = {
    "Cache-Control": "no-cache, no-store, must-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}
RAW_MEDIA_TYPE = "application/octet-stream"


def _to_response(result: FileAccessResult, request_id: str) -> Response:
    if result.mode == "write":
        # PlainTextResponse 默认 text/plain; charset=utf-8
        return PlainTextResponse(result.text, headers=NO_CACHE_HEADERS)
    if result.mode == "list":
        body = ApiResponse[DirectoryListing](data=result.listing, request_id=request_id)
        return JSONResponse(body.model_dump(mode="json"), headers=NO_CACHE_HEADERS)
    return StreamingResponse(result.stream, media_type=RAW_MEDIA_TYPE, headers=NO_CACHE_HEADERS)


@router.get(
    "/file",
    summary="读取 / 写入配置文件",
    description=(
        "未传 file 时列出配置根目录；只传 file 时返回文件原始字节；"
        "同时传 contents 时用其覆盖文件并回显。"
    ),
    response_class=Response,
)
async def access_file(
    file: str | None = Query(None, description="相对配置根目录的路径"),
    contents: str | None = Query(None, description="写入内容；不传为读取"),
    request_id: str = Depends(get_request_id),
    service: FileAccessService = Depends(get_file_service),
) -> Response:
    result = await service.handle(file, contents)
    return _to_response(result, request_id)


@router.post(
    "/file",
    summary="以表单提交读取 / 写入配置文件",
    response_class=Response,
)
async def push_file(
    file: str | None = Form(None, description="相对配置根目录的路径"),
    contents: str | None = Form(None, description="写入内容；不传为读取"),
    request_id: str = Depends(get_request_id),
    service: FileAccessService = Depends(get_file_service),
) -> Response:
    result = await service.handle(file, contents)
    logger.info("file_push_handled", file=file, mode=result.mode)
    return _to_response(result, request_id)
