"""HTTP 请求 Trace 中间件：记录请求参数与响应概要，注入 traceparent 响应头。

配置文件内容（contents 参数）可能包含口令等敏感信息，查询参数、表单与 JSON 请求体中
均按敏感字段脱敏后再写日志；文件流响应不记录内容。
"""

import json
import time
from typing import Any
from urllib.parse import parse_qsl

from fastapi import Request
from starlette.requests import Request as StarletteRequest

from pushfile.observability.logging import get_logger
from pushfile.observability.trace import (
    build_traceparent,
    parse_traceparent,
    set_trace_context,
)

logger = get_logger(__name__)

# 请求/响应体日志最大长度（字符），超出截断
MAX_BODY_LOG_LEN = 2048
# 需脱敏的键名（不区分大小写）
SENSITIVE_KEYS = frozenset(
    {"contents", "password", "api_key", "apikey", "secret", "token", "authorization"}
)
MASK = "***"


def _mask_sensitive(obj: Any) -> Any:
    """递归脱敏：将敏感字段值替换为 ***。"""
    if isinstance(obj, dict):
        return {k: MASK if (k and k.lower() in SENSITIVE_KEYS) else _mask_sensitive(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_mask_sensitive(i) for i in obj]
    return obj


def _truncate(s: str, max_len: int = MAX_BODY_LOG_LEN) -> str:
    if len(s) <= max_len:
        return s
    return s[:max_len] + "...[truncated]"


async def _get_request_body_for_log(request: Request) -> tuple[bytes, Request]:
    """
    读取请求体并返回 (body_bytes, new_request)；new_request 的 receive 返回已缓存的 body，
    供后续路由（如表单解析）正常读取。
    """
    if request.method not in ("POST", "PUT", "PATCH", "DELETE"):
        return b"", request
    body_bytes = await request.body()

    async def receive():
        return {"type": "http.request", "body": body_bytes, "more_body": False}

    return body_bytes, StarletteRequest(request.scope, receive)


def _body_preview(body_bytes: bytes, content_type: str = "") -> str | None:
    """生成可打印的请求体预览：JSON 与表单脱敏后截断，其余原样截断。"""
    if not body_bytes:
        return None
    text = body_bytes.decode("utf-8", errors="replace").strip()
    if not text:
        return None
    if content_type.startswith("application/x-www-form-urlencoded"):
        form = dict(parse_qsl(text, keep_blank_values=True))
        return _truncate(json.dumps(_mask_sensitive(form), ensure_ascii=False))
    if content_type.startswith("multipart/form-data"):
        # multipart 可能携带文件内容，只记录大小
        return f"<multipart {len(body_bytes)} bytes>"
    try:
        obj = json.loads(text)
    except json.JSONDecodeError:
        return _truncate(text)
    return _truncate(json.dumps(_mask_sensitive(obj), ensure_ascii=False, default=str))


async def http_trace_middleware(request: Request, call_next):
    """解析或生成 trace 上下文，记录请求开始/结束日志，并回写 traceparent 响应头。"""
    trace_id, span_id = set_trace_context(trace_id=parse_traceparent(request.headers.get("traceparent")))
    request.state.trace_id = trace_id
    request.state.span_id = span_id

    body_bytes, req_to_call = await _get_request_body_for_log(request)
    query = _mask_sensitive(dict(req_to_call.query_params)) if req_to_call.query_params else None

    logger.info(
        "http_request_start",
        method=req_to_call.method,
        path=req_to_call.url.path,
        query=query,
        body_preview=_body_preview(body_bytes, request.headers.get("content-type", "")),
    )

    start = time.perf_counter()
    response = await call_next(req_to_call)
    duration_ms = round((time.perf_counter() - start) * 1000, 2)

    logger.info(
        "http_request_finish",
        method=req_to_call.method,
        path=req_to_call.url.path,
        status_code=response.status_code,
        duration_ms=duration_ms,
        media_type=response.headers.get("content-type"),
    )

    response.headers["traceparent"] = build_traceparent(trace_id, span_id)
    return response
