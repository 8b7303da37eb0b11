"""结构化日志（structlog）：注入 request_id 与 trace_id/span_id，按小时轮转写文件，error 单独成文件。"""

import json
import logging
import logging.handlers
import os
from contextvars import ContextVar
from uuid import uuid4

import structlog

from pushfile.observability.trace import get_span_id, get_trace_id

request_id_ctx: ContextVar[str] = ContextVar("request_id", default="")

# 项目根 logger 名称，所有模块 logger 都在其下
ROOT_LOGGER = "pushfile"


def get_request_id() -> str:
    return request_id_ctx.get() or ""


def set_request_id(rid: str | None = None) -> str:
    rid = rid or str(uuid4())
    request_id_ctx.set(rid)
    return rid


def add_request_id(logger: logging.Logger, method_name: str, event_dict: dict) -> dict:
    rid = get_request_id()
    if rid:
        event_dict["request_id"] = rid
    return event_dict


def add_trace_context(logger: logging.Logger, method_name: str, event_dict: dict) -> dict:
    """注入 W3C 兼容的 trace_id、span_id。"""
    tid = get_trace_id()
    sid = get_span_id()
    if tid:
        event_dict["trace_id"] = tid
    if sid:
        event_dict["span_id"] = sid
    return event_dict


def _shared_processors() -> list:
    return [
        structlog.contextvars.merge_contextvars,
        add_request_id,
        add_trace_context,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]


def _rotating_handler(path: str, level: int, backup_hours: int, formatter: logging.Formatter) -> logging.Handler:
    handler = logging.handlers.TimedRotatingFileHandler(
        filename=path,
        when="H",
        interval=1,
        backupCount=backup_hours,
        encoding="utf-8",
    )
    handler.setFormatter(formatter)
    handler.setLevel(level)
    return handler


def configure_logging(log_level: str = "INFO", log_dir: str = "./logs") -> None:
    """配置 structlog：app.log 记录全部级别（保留约 7 天），error.log 仅 ERROR（保留约 30 天），JSON 输出。"""
    os.makedirs(log_dir, exist_ok=True)
    level = getattr(logging, log_level.upper(), logging.INFO)

    formatter = structlog.stdlib.ProcessorFormatter(
        processor=structlog.processors.JSONRenderer(
            serializer=lambda obj, **kw: json.dumps(obj, ensure_ascii=False, **kw)
        ),
        foreign_pre_chain=_shared_processors(),
    )

    root_logger = logging.getLogger(ROOT_LOGGER)
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    root_logger.addHandler(
        _rotating_handler(os.path.join(log_dir, "app.log"), level, 24 * 7, formatter)
    )
    root_logger.addHandler(
        _rotating_handler(os.path.join(log_dir, "error.log"), logging.ERROR, 24 * 30, formatter)
    )
    root_logger.propagate = False

    structlog.configure(
        processors=[
            *_shared_processors(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
