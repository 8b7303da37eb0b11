"""文件访问异常体系：每类异常对应一个 HTTP 状态码，由 main 中的异常处理器统一渲染。"""

from fastapi import status


class FileAccessError(Exception):
    """文件访问失败的基类。"""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ForbiddenError(FileAccessError):
    """命中隐藏文件、包含穿越标记，或无法确定安全的配置根目录。"""

    status_code = status.HTTP_403_FORBIDDEN


class BadRequestError(FileAccessError):
    """目标不存在、不可读或被文件系统标记为隐藏。"""

    status_code = status.HTTP_400_BAD_REQUEST


class InternalFileError(FileAccessError):
    """读写过程中的 I/O 失败；对调用方只暴露通用信息。"""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)


class InvalidPropertiesError(ValueError):
    """节点属性构造参数非法（键值个数为奇数、JSON 非字符串映射等）。"""

    pass
