"""配套查询工具：供非管理场景读取配置文件内容。

与管理接口不同，命中隐藏文件或文件不存在时返回空串而不报错；
但路径穿越与其他 I/O 失败不会被吞掉，分别抛出 Forbidden 与 InternalFileError。
"""

from __future__ import annotations

from pathlib import Path

from pushfile.core.errors import InternalFileError
from pushfile.files.guard import PathGuard
from pushfile.files.hidden import HiddenFileRegistry
from pushfile.observability.logging import get_logger

logger = get_logger(__name__)


def get_file_contents(path: str, *, root: Path, registry: HiddenFileRegistry) -> str:
    """读取 root 下 path 的 UTF-8 文本；隐藏（含等价写法）或缺失时返回空串。"""
    guard = PathGuard(registry)
    if guard.is_hidden(path, root):
        logger.debug("file_lookup_hidden", file=path)
        return ""

    target = guard.check(path, root)
    try:
        return target.read_text(encoding="utf-8")
    except FileNotFoundError:
        logger.info("file_lookup_missing", file=path)
        return ""
    except (OSError, UnicodeDecodeError) as exc:
        logger.exception("file_lookup_failed", file=path, error=str(exc))
        raise InternalFileError() from exc
