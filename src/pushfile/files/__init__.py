"""受保护的配置文件访问。

当前包括：
- HiddenFileRegistry：管理员配置的隐藏文件集合；
- ConfigRootResolver：配置根目录解析；
- PathGuard：路径校验（隐藏文件、穿越标记、根目录边界、存在性）；
- FileAccessService：读、写与目录列举；
- get_file_contents：非管理场景的配套查询。
"""

from pushfile.files.access import FileAccessResult, FileAccessService
from pushfile.files.config_root import ConfigRootResolver
from pushfile.files.guard import PathGuard
from pushfile.files.hidden import HiddenFileRegistry
from pushfile.files.lookup import get_file_contents

__all__ = [
    "ConfigRootResolver",
    "FileAccessResult",
    "FileAccessService",
    "HiddenFileRegistry",
    "PathGuard",
    "get_file_contents",
]
