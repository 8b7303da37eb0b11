"""路径守卫：校验调用方传入的相对路径，返回位于配置根目录下的绝对路径。

校验顺序：
1. 未传路径时目标即配置根目录；
2. 反斜杠统一替换为正斜杠；
3. 字面路径命中隐藏文件注册表（不区分大小写）→ Forbidden；
4. 路径中任意位置出现 ``..`` 或 NUL 字符 → Forbidden；
5. 拼接到根目录，规范化后仍须位于根目录之下 → 否则 Forbidden；
6. 规范化后的相对路径命中注册表（``./a``、``a/``、``a/.`` 等写法）→ Forbidden；
7. 目标须存在、可读且未被文件系统隐藏 → 否则 BadRequest。

3~6 步不访问目标是否存在，拒绝结果不会泄露磁盘上有哪些文件。
"""

from __future__ import annotations

import os
import stat
from pathlib import Path

from pushfile.core.errors import BadRequestError, ForbiddenError
from pushfile.files.hidden import HiddenFileRegistry
from pushfile.observability.logging import get_logger
from pushfile.observability.metrics import file_access_rejections_total

logger = get_logger(__name__)

TRAVERSAL_MARKER = ".."
NUL = "\x00"


def is_filesystem_hidden(path: Path) -> bool:
    """点号开头的文件名，或 Windows 上带隐藏属性的文件。"""
    if path.name.startswith("."):
        return True
    attrs = getattr(os.stat(path), "st_file_attributes", 0)
    return bool(attrs & getattr(stat, "FILE_ATTRIBUTE_HIDDEN", 0))


def canonical_relative(candidate: Path, root: Path) -> str | None:
    """candidate 规范化后相对 root 的 POSIX 路径；不在 root 之下时返回 None。"""
    try:
        return candidate.resolve().relative_to(root.resolve()).as_posix()
    except ValueError:
        return None


class PathGuard:
    """基于隐藏文件注册表与配置根目录的路径校验。"""

    def __init__(self, registry: HiddenFileRegistry):
        self.registry = registry

    def is_hidden(self, requested: str, root: Path) -> bool:
        """字面路径或其规范化后的相对路径命中注册表。"""
        fname = requested.replace("\\", "/")
        if self.registry.is_hidden(fname):
            return True
        if TRAVERSAL_MARKER in fname or NUL in fname:
            return False
        relative = canonical_relative(root / fname, root)
        return relative is not None and self.registry.is_hidden(relative)

    def check(self, requested: str, root: Path) -> Path:
        """只做与磁盘内容无关的校验（3~6 步），返回拼接后的候选路径。"""
        fname = requested.replace("\\", "/")
        if self.registry.is_hidden(fname):
            self._reject("hidden", fname)
            raise ForbiddenError(f"Can not access: {fname}")
        if TRAVERSAL_MARKER in fname:
            self._reject("traversal", fname)
            raise ForbiddenError(f"Invalid path: {fname}")
        if NUL in fname:
            self._reject("malformed", fname)
            raise ForbiddenError(f"Invalid path: {fname!r}")

        candidate = root / fname
        relative = canonical_relative(candidate, root)
        if relative is None:
            self._reject("escape", fname)
            raise ForbiddenError(f"Invalid path: {fname}")
        if self.registry.is_hidden(relative):
            self._reject("hidden", fname)
            raise ForbiddenError(f"Can not access: {fname}")
        return candidate

    def resolve(self, requested: str | None, root: Path) -> Path:
        target = root if requested is None else self.check(requested, root)

        # 以下错误信息包含绝对路径，便于运维定位（仅管理通道可见）
        if not target.exists():
            raise BadRequestError(f"Can not find: {target.name} [{target.absolute()}]")
        if not os.access(target, os.R_OK) or is_filesystem_hidden(target):
            raise BadRequestError(f"Can not show: {target.name} [{target.absolute()}]")
        return target

    def _reject(self, reason: str, fname: str) -> None:
        file_access_rejections_total.labels(reason=reason).inc()
        logger.warning("file_access_rejected", reason=reason, file=fname)
