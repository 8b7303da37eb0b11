"""服务入口：FastAPI 初始化、中间件、全局异常处理、健康检查与管理接口挂载。"""

from uuid import uuid4

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from prometheus_fastapi_instrumentator import Instrumentator
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from pushfile.api.v1 import api_router, health
from pushfile.core.config import APP_VERSION, Settings, get_settings
from pushfile.core.errors import FileAccessError
from pushfile.files.access import FileAccessService
from pushfile.observability.http_trace import http_trace_middleware
from pushfile.observability.logging import configure_logging, get_logger, get_request_id, set_request_id
from pushfile.schemas.common import ErrorDetail

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """应用生命周期：启动时初始化日志，关闭时记录。"""
    settings: Settings = app.state.settings
    configure_logging(settings.log_level, settings.log_dir)
    service: FileAccessService = app.state.file_service
    logger.info(
        "application_started",
        env=settings.env,
        port=settings.port,
        config_dir=settings.config_dir,
        hidden_files=len(service.registry),
    )
    yield
    logger.info("application_shutdown")


def _error_response(request: Request, status_code: int, message: str) -> JSONResponse:
    rid = getattr(request.state, "request_id", None) or get_request_id() or ""
    return JSONResponse(
        status_code=status_code,
        content=ErrorDetail(code=status_code, message=message, request_id=rid).model_dump(),
    )


def create_application(settings: Settings | None = None) -> FastAPI:
    settings = settings or get_settings()
    limiter = Limiter(
        key_func=lambda request: request.client.host if request.client else "unknown"
    )

    app = FastAPI(
        title="PushFile Admin",
        description="集群节点配置文件管理服务：受保护的配置文件读写",
        version=APP_VERSION,
        lifespan=lifespan,
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
    )

    # 文件访问服务在应用生命周期内唯一，隐藏文件注册表此时即加载完成
    app.state.settings = settings
    app.state.file_service = FileAccessService.from_settings(settings)

    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_middleware(SlowAPIMiddleware)

    # 后注册的先执行：trace 先执行，request_id 可读到 trace_id
    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next):
        rid = (
            request.headers.get("X-Request-ID")
            or getattr(request.state, "trace_id", None)
            or str(uuid4())
        )
        set_request_id(rid)
        request.state.request_id = rid
        response = await call_next(request)
        response.headers["X-Request-ID"] = rid
        return response

    @app.middleware("http")
    async def trace_middleware(request: Request, call_next):
        return await http_trace_middleware(request, call_next)

    @app.exception_handler(FileAccessError)
    async def file_access_exception_handler(request: Request, exc: FileAccessError):
        return _error_response(request, exc.status_code, exc.message)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return _error_response(
            request, exc.status_code, str(exc.detail) if exc.detail is not None else ""
        )

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.exception("unhandled_exception", exc_info=exc)
        return _error_response(request, 500, "Internal server error")

    app.include_router(health.router, prefix="/health", tags=["health"])
    app.include_router(api_router)

    Instrumentator().instrument(app).expose(app, endpoint="/metrics")

    return app


app = create_application()
