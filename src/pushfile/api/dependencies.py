"""全局依赖：Request ID、文件访问服务。"""

from uuid import uuid4

from fastapi import Request

from pushfile.files.access import FileAccessService
from pushfile.observability.logging import set_request_id


async def get_request_id(request: Request) -> str:
    """从请求头获取或生成 request_id，并注入上下文。"""
    rid = request.headers.get("X-Request-ID") or str(uuid4())
    set_request_id(rid)
    return rid


def get_file_service(request: Request) -> FileAccessService:
    """应用级共享的文件访问服务，在 create_application 中创建。"""
    return request.app.state.file_service


__all__ = ["get_request_id", "get_file_service"]
