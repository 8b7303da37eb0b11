"""配置文件访问接口的响应模型。"""

from datetime import datetime

from pydantic import BaseModel, Field


class FileEntry(BaseModel):
    """目录中的单个条目。"""

    name: str = Field(..., description="文件或子目录名")
    directory: bool = Field(False, description="是否为目录")
    size: int | None = Field(None, description="文件大小（字节），目录为空")
    modified: datetime = Field(..., description="最后修改时间（UTC）")


class DirectoryListing(BaseModel):
    """目录列表：已过滤隐藏文件与文件系统隐藏条目。"""

    path: str = Field("", description="相对配置根目录的路径，根目录为空串")
    entries: list[FileEntry] = Field(default_factory=list)
