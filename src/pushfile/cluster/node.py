"""本节点的属性快照，用于就绪检查与集群元数据上报。"""

from pushfile.cluster.props import NodeProps
from pushfile.core.config import APP_VERSION, Settings


def describe_node(settings: Settings) -> NodeProps:
    return NodeProps.from_pairs(
        "env", settings.env,
        "port", str(settings.port),
        "version", APP_VERSION,
        "write_strategy", settings.write_strategy,
    )
