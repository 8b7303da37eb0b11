"""配置根目录解析：优先使用磁盘上的配置目录，不存在时回退到包内资源目录。"""

from __future__ import annotations

from importlib import resources
from pathlib import Path

from pushfile.core.errors import ForbiddenError
from pushfile.observability.logging import get_logger

logger = get_logger(__name__)


class ConfigRootResolver:
    """解析并缓存配置根目录；成功结果在实例生命周期内只计算一次，失败不缓存。"""

    def __init__(self, config_dir: str, resource_package: str | None = None):
        self.config_dir = config_dir
        self.resource_package = resource_package or None
        self._root: Path | None = None

    def resolve(self) -> Path:
        if self._root is None:
            self._root = self._locate()
            logger.info("config_root_resolved", config_root=str(self._root))
        return self._root

    def _locate(self) -> Path:
        on_disk = Path(self.config_dir).expanduser()
        if on_disk.is_dir():
            return on_disk.resolve()

        packaged = self._from_package()
        if packaged is not None:
            return packaged

        logger.error(
            "config_root_unresolved",
            config_dir=self.config_dir,
            resource_package=self.resource_package,
        )
        raise ForbiddenError("Can not access configuration directory!")

    def _from_package(self) -> Path | None:
        """在资源包中查找 config_dir；只接受真实存在于文件系统上的目录（不支持 zip 内资源）。"""
        if not self.resource_package:
            return None
        try:
            base = resources.files(self.resource_package)
        except (ModuleNotFoundError, TypeError) as exc:
            logger.warning(
                "config_resource_package_unavailable",
                resource_package=self.resource_package,
                error=str(exc),
            )
            return None

        candidate = base.joinpath(self.config_dir)
        if not isinstance(candidate, Path):
            return None
        if not candidate.is_dir():
            return None
        return candidate.resolve()
