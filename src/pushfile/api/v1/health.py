"""健康检查：/health/live（存活）、/health/ready（就绪，返回节点属性）。"""

from fastapi import APIRouter, Depends, Request

from pushfile.api.dependencies import get_request_id
from pushfile.cluster.node import describe_node
from pushfile.schemas.common import ApiResponse

router = APIRouter()


@router.get("/live")
async def liveness() -> dict[str, str]:
    """仅校验进程存活。"""
    return {"status": "ok"}


@router.get("/ready", response_model=ApiResponse[dict[str, str]])
async def readiness(request: Request, request_id: str = Depends(get_request_id)) -> ApiResponse[dict[str, str]]:
    props = describe_node(request.app.state.settings)
    return ApiResponse(
        code=0,
        message="ok",
        data=dict(props),
        request_id=request_id,
    )
