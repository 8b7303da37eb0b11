"""Prometheus 指标：HTTP 通用 + 配置文件访问专用（读写次数、拒绝原因、写入大小）。"""

from prometheus_client import Counter, Histogram

# HTTP 通用由 prometheus-fastapi-instrumentator 自动暴露

# 文件访问专用指标
file_access_total = Counter(
    "file_access_total",
    "配置文件访问次数",
    ["mode", "outcome"],
)
file_access_rejections_total = Counter(
    "file_access_rejections_total",
    "路径守卫拒绝次数",
    ["reason"],
)
file_write_bytes = Histogram(
    "file_write_bytes",
    "单次写入内容大小分布（字节）",
    buckets=(64, 512, 4096, 32768, 262144, 1048576),
)
