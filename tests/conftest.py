"""全局测试 fixtures：临时配置目录、Settings 工厂、文件访问服务与应用实例。"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable

import pytest
from httpx import ASGITransport, AsyncClient

from pushfile.core.config import Settings
from pushfile.files.access import FileAccessService
from pushfile.main import create_application


# ---------------------------------------------------------------------------
# 测试数据
# ---------------------------------------------------------------------------

SYNONYMS = "a,b"
HIDDEN_FILES = "secrets.txt"


@pytest.fixture
def config_dir(tmp_path: Path) -> Path:
    """
    conf/
      synonyms.txt
      Secrets.txt        注册表隐藏（配置为 secrets.txt）
      .hidden            文件系统隐藏
      sub/stopwords.txt
    outside.txt          根目录之外
    """
    conf = tmp_path / "conf"
    (conf / "sub").mkdir(parents=True)
    (conf / "synonyms.txt").write_text(SYNONYMS, encoding="utf-8")
    (conf / "Secrets.txt").write_text("password=hunter2", encoding="utf-8")
    (conf / ".hidden").write_text("dot", encoding="utf-8")
    (conf / "sub" / "stopwords.txt").write_text("the\nand\n", encoding="utf-8")
    (tmp_path / "outside.txt").write_text("outside", encoding="utf-8")
    return conf


# ---------------------------------------------------------------------------
# Settings / 服务 / 应用
# ---------------------------------------------------------------------------


@pytest.fixture
def settings_factory(config_dir: Path, tmp_path: Path) -> Callable[..., Settings]:
    """返回一个不依赖 .env 的 Settings 工厂，默认指向临时配置目录。"""

    def _make(**overrides: Any) -> Settings:
        values: dict[str, Any] = {
            "config_dir": str(config_dir),
            "hidden_files": HIDDEN_FILES,
            "log_dir": str(tmp_path / "logs"),
            "env": "development",
        }
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return _make


@pytest.fixture
def settings(settings_factory) -> Settings:
    return settings_factory()


@pytest.fixture
def service(settings: Settings) -> FileAccessService:
    return FileAccessService.from_settings(settings)


@pytest.fixture
def app(settings: Settings):
    return create_application(settings)


@pytest.fixture
def client(app) -> AsyncClient:
    """进程内 ASGI 客户端，测试中以 async with client 使用。"""
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")
