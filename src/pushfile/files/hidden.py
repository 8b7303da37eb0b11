"""隐藏文件注册表：启动时从配置加载一次，之后只读。"""

from __future__ import annotations

from collections.abc import Iterable

from pushfile.core.config import Settings


def normalize_name(name: str) -> str:
    """统一路径分隔符并转大写，作为注册表的比较键。"""
    return name.replace("\\", "/").upper()


class HiddenFileRegistry:
    """
    管理员配置的隐藏文件集合。

    成员判断是对规范化后的相对路径做不区分大小写的精确匹配，
    不支持通配符，也不做前缀匹配：配置 ``secrets.txt`` 不会隐藏 ``sub/secrets.txt``。
    """

    def __init__(self, names: Iterable[str] = ()):
        self._hidden = frozenset(
            normalize_name(n.strip()) for n in names if n and n.strip()
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "HiddenFileRegistry":
        return cls(settings.get_hidden_files())

    @property
    def hidden_files(self) -> frozenset[str]:
        """只读视图，供诊断与配套查询工具使用。"""
        return self._hidden

    def is_hidden(self, name: str) -> bool:
        return normalize_name(name) in self._hidden

    def __len__(self) -> int:
        return len(self._hidden)

    def __repr__(self) -> str:
        return f"HiddenFileRegistry(count={len(self._hidden)})"
