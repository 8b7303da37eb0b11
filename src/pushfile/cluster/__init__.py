"""集群元数据：节点属性快照及其 JSON 序列化。"""

from pushfile.cluster.node import describe_node
from pushfile.cluster.props import NodeProps

__all__ = ["NodeProps", "describe_node"]
