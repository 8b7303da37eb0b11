"""API v1 路由聚合。"""

from fastapi import APIRouter

from pushfile.api.v1 import files

api_router = APIRouter(prefix="/api/v1", tags=["v1"])

# 管理接口：配置文件读写
api_router.include_router(files.router, prefix="/admin", tags=["admin"])
