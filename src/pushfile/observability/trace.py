"""W3C Trace Context：trace_id / span_id 上下文、traceparent 头的解析与构造。"""

import secrets
from contextvars import ContextVar

# trace_id 32 位十六进制，span_id 16 位十六进制
TRACE_ID_HEX_LEN = 32
SPAN_ID_HEX_LEN = 16

trace_id_ctx: ContextVar[str] = ContextVar("trace_id", default="")
span_id_ctx: ContextVar[str] = ContextVar("span_id", default="")


def set_trace_context(trace_id: str | None = None, span_id: str | None = None) -> tuple[str, str]:
    """设置当前请求的 trace 上下文，缺省值随机生成；返回 (trace_id, span_id)。"""
    tid = trace_id or secrets.token_hex(TRACE_ID_HEX_LEN // 2)
    sid = span_id or secrets.token_hex(SPAN_ID_HEX_LEN // 2)
    trace_id_ctx.set(tid)
    span_id_ctx.set(sid)
    return tid, sid


def get_trace_id() -> str:
    return trace_id_ctx.get() or ""


def get_span_id() -> str:
    return span_id_ctx.get() or ""


def _is_hex(value: str, length: int) -> bool:
    if len(value) != length:
        return False
    try:
        int(value, 16)
    except ValueError:
        return False
    return True


def parse_traceparent(header_value: str | None) -> str | None:
    """
    解析 traceparent 头（version-trace_id-parent_id-flags），返回上游 trace_id。
    格式不合法时返回 None，由调用方生成新的 trace。
    """
    if not header_value or not header_value.strip():
        return None
    parts = header_value.strip().split("-")
    if len(parts) != 4:
        return None
    _version, tid, parent_sid, _flags = parts
    if not _is_hex(tid, TRACE_ID_HEX_LEN) or not _is_hex(parent_sid, SPAN_ID_HEX_LEN):
        return None
    return tid


def build_traceparent(trace_id: str, span_id: str, sampled: bool = True) -> str:
    flags = "01" if sampled else "00"
    return f"00-{trace_id}-{span_id}-{flags}"
