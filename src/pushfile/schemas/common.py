"""通用响应契约：成功响应 ApiResponse 与错误响应 ErrorDetail。"""

from typing import Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class ErrorDetail(BaseModel):
    """统一错误响应体，由全局异常处理器生成。"""

    code: int = Field(..., description="HTTP 状态码")
    message: str = Field(..., description="错误信息；Forbidden 仅包含请求的相对路径")
    request_id: str = Field("", description="便于日志关联的请求 ID")


class ApiResponse(BaseModel, Generic[T]):
    """统一成功响应体（JSON 接口使用；文件流与写入回显不包装）。"""

    code: int = Field(0, description="0 表示成功")
    message: str = Field("ok", description="提示信息")
    data: T | None = Field(None, description="业务数据")
    request_id: str = Field("", description="请求 ID")
