"""集群节点属性：不可变的字符串到字符串映射，以扁平 JSON 对象存入协调服务。"""

from __future__ import annotations

import json
from collections.abc import Iterator, KeysView, Mapping
from types import MappingProxyType

from pydantic import TypeAdapter, ValidationError

from pushfile.core.errors import InvalidPropertiesError

_PROPS_ADAPTER = TypeAdapter(dict[str, str])


class NodeProps(Mapping[str, str]):
    """
    分片 / 节点的不可变属性快照。

    构造后不再修改；“更新”即构造新实例。支持三种构造方式：
    - ``NodeProps({"a": "1"})``：完整映射；
    - ``NodeProps(other_props)``：复制已有实例；
    - ``NodeProps.from_pairs("a", "1", "b", "2")``：扁平键值列表。
    """

    __slots__ = ("_props",)

    def __init__(self, props: Mapping[str, str] | None = None):
        self._props: dict[str, str] = dict(props or {})

    @classmethod
    def from_pairs(cls, *key_vals: str) -> "NodeProps":
        if len(key_vals) % 2 != 0:
            raise InvalidPropertiesError("arguments should be key,value")
        return cls(dict(zip(key_vals[::2], key_vals[1::2])))

    @classmethod
    def load(cls, data: bytes | str) -> "NodeProps":
        """从协调服务中存储的 JSON 文本构造。"""
        try:
            return cls(_PROPS_ADAPTER.validate_json(data))
        except ValidationError as exc:
            raise InvalidPropertiesError(f"invalid node properties: {exc.error_count()} error(s)") from exc

    def to_json(self) -> bytes:
        return json.dumps(self._props, ensure_ascii=False).encode("utf-8")

    @property
    def properties(self) -> Mapping[str, str]:
        return MappingProxyType(self._props)

    def key_set(self) -> KeysView[str]:
        return self.properties.keys()

    def contains_key(self, key: str) -> bool:
        return key in self._props

    def __getitem__(self, key: str) -> str:
        return self._props[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._props)

    def __len__(self) -> int:
        return len(self._props)

    def __hash__(self) -> int:
        return hash(frozenset(self._props.items()))

    def __repr__(self) -> str:
        return f"NodeProps({self._props!r})"

    def __str__(self) -> str:
        return "".join(f"{k}={v}\n" for k, v in self._props.items())
