"""文件访问服务（读 / 写 / 目录列举）的单元测试。"""

import asyncio
import stat
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
from prometheus_client import REGISTRY

from pushfile.core.errors import BadRequestError, ForbiddenError, InternalFileError
from pushfile.files.access import FileAccessService


async def _collect(stream) -> bytes:
    return b"".join([chunk async for chunk in stream])


def _tmp_leftovers(directory: Path) -> list[str]:
    return [p.name for p in directory.iterdir() if p.name.endswith(".tmp")]


# ---------------------------------------------------------------------------
# 读取
# ---------------------------------------------------------------------------


class TestRead:
    @pytest.mark.asyncio
    async def test_read_file(self, service: FileAccessService):
        result = await service.handle("synonyms.txt", None)
        assert result.mode == "read"
        assert await _collect(result.stream) == b"a,b"

    @pytest.mark.asyncio
    async def test_read_large_file_in_chunks(self, service: FileAccessService, config_dir: Path):
        payload = bytes(range(256)) * 1024  # 256 KiB，跨多个分块
        (config_dir / "big.bin").write_bytes(payload)
        result = await service.handle("big.bin", None)
        assert await _collect(result.stream) == payload

    @pytest.mark.asyncio
    async def test_open_failure_is_internal(self, service: FileAccessService, config_dir: Path):
        with patch("pushfile.files.access.aiofiles.open", side_effect=PermissionError("denied")):
            with pytest.raises(InternalFileError) as exc_info:
                await service.open_stream(config_dir / "synonyms.txt")
        assert exc_info.value.message == "Internal server error"
        assert exc_info.value.status_code == 500


# ---------------------------------------------------------------------------
# 写入
# ---------------------------------------------------------------------------


class TestWrite:
    @pytest.mark.asyncio
    async def test_write_then_read_round_trip(self, service: FileAccessService, config_dir: Path):
        result = await service.handle("synonyms.txt", "fast,quick")
        assert result.mode == "write"
        assert result.text == "fast,quick"

        again = await service.handle("synonyms.txt", None)
        assert await _collect(again.stream) == b"fast,quick"

    @pytest.mark.asyncio
    async def test_utf8_bytes(self, service: FileAccessService, config_dir: Path):
        payload = "café,咖啡,✓"
        await service.handle("synonyms.txt", payload)
        assert (config_dir / "synonyms.txt").read_bytes() == payload.encode("utf-8")

    @pytest.mark.asyncio
    async def test_truncates_longer_content(self, service: FileAccessService, config_dir: Path):
        (config_dir / "synonyms.txt").write_text("x" * 1000, encoding="utf-8")
        await service.handle("synonyms.txt", "short")
        assert (config_dir / "synonyms.txt").read_text(encoding="utf-8") == "short"

    @pytest.mark.asyncio
    async def test_empty_contents_is_write(self, service: FileAccessService, config_dir: Path):
        result = await service.handle("synonyms.txt", "")
        assert result.mode == "write"
        assert (config_dir / "synonyms.txt").read_bytes() == b""

    @pytest.mark.asyncio
    async def test_atomic_leaves_no_temp_files(self, service: FileAccessService, config_dir: Path):
        assert service.write_strategy == "atomic"
        await service.handle("synonyms.txt", "x")
        assert _tmp_leftovers(config_dir) == []

    @pytest.mark.asyncio
    async def test_atomic_preserves_mode(self, service: FileAccessService, config_dir: Path):
        target = config_dir / "synonyms.txt"
        target.chmod(0o640)
        await service.handle("synonyms.txt", "x")
        assert stat.S_IMODE(target.stat().st_mode) == 0o640

    @pytest.mark.asyncio
    async def test_overwrite_strategy(self, settings_factory, config_dir: Path):
        service = FileAccessService.from_settings(settings_factory(write_strategy="overwrite"))
        target = config_dir / "synonyms.txt"
        inode = target.stat().st_ino
        await service.handle("synonyms.txt", "in place")
        assert target.read_text(encoding="utf-8") == "in place"
        assert target.stat().st_ino == inode

    @pytest.mark.asyncio
    async def test_write_to_directory_rejected(self, service: FileAccessService):
        with pytest.raises(BadRequestError, match="Can not write to directory"):
            await service.handle("sub", "data")

    @pytest.mark.asyncio
    async def test_write_to_root_rejected(self, service: FileAccessService):
        with pytest.raises(BadRequestError):
            await service.handle(None, "data")

    @pytest.mark.asyncio
    async def test_cannot_create_new_file(self, service: FileAccessService, config_dir: Path):
        with pytest.raises(BadRequestError, match="Can not find"):
            await service.handle("new.txt", "data")
        assert not (config_dir / "new.txt").exists()

    @pytest.mark.asyncio
    async def test_guard_runs_before_write(self, service: FileAccessService, config_dir: Path):
        with pytest.raises(ForbiddenError):
            await service.handle("Secrets.txt", "leak")
        with pytest.raises(ForbiddenError):
            await service.handle("../outside.txt", "overwrite")
        assert (config_dir / "Secrets.txt").read_text(encoding="utf-8") == "password=hunter2"
        assert (config_dir.parent / "outside.txt").read_text(encoding="utf-8") == "outside"

    @pytest.mark.asyncio
    async def test_io_failure_is_internal(self, service: FileAccessService, config_dir: Path):
        with patch.object(service, "_write_atomic", AsyncMock(side_effect=OSError("disk full"))):
            with pytest.raises(InternalFileError):
                await service.handle("synonyms.txt", "x")
        assert (config_dir / "synonyms.txt").read_text(encoding="utf-8") == "a,b"

    @pytest.mark.asyncio
    async def test_atomic_cleans_up_on_failure(self, service: FileAccessService, config_dir: Path):
        with patch("pushfile.files.access.aiofiles.os.replace", AsyncMock(side_effect=OSError("boom"))):
            with pytest.raises(InternalFileError):
                await service.handle("synonyms.txt", "x")
        assert _tmp_leftovers(config_dir) == []
        assert (config_dir / "synonyms.txt").read_text(encoding="utf-8") == "a,b"

    @pytest.mark.asyncio
    async def test_concurrent_writes_same_path(self, service: FileAccessService, config_dir: Path):
        payloads = [f"payload-{i}-" + "z" * 4096 for i in range(10)]
        await asyncio.gather(*(service.handle("synonyms.txt", p) for p in payloads))
        assert (config_dir / "synonyms.txt").read_text(encoding="utf-8") in payloads
        assert _tmp_leftovers(config_dir) == []

    def test_lock_shared_per_path(self, service: FileAccessService, config_dir: Path):
        a = service._lock_for(config_dir / "synonyms.txt")
        b = service._lock_for(config_dir / "sub" / ".." / "synonyms.txt")
        c = service._lock_for(config_dir / "sub" / "stopwords.txt")
        assert a is b
        assert a is not c


# ---------------------------------------------------------------------------
# 目录列举
# ---------------------------------------------------------------------------


class TestListing:
    @pytest.mark.asyncio
    async def test_root_listing_skips_hidden(self, service: FileAccessService):
        result = await service.handle(None, None)
        assert result.mode == "list"
        names = [e.name for e in result.listing.entries]
        assert names == ["sub", "synonyms.txt"]
        assert result.listing.path == ""

    @pytest.mark.asyncio
    async def test_entry_details(self, service: FileAccessService):
        result = await service.handle(None, None)
        by_name = {e.name: e for e in result.listing.entries}
        assert by_name["sub"].directory is True
        assert by_name["sub"].size is None
        assert by_name["synonyms.txt"].directory is False
        assert by_name["synonyms.txt"].size == 3

    @pytest.mark.asyncio
    async def test_subdirectory_listing(self, service: FileAccessService):
        result = await service.handle("sub", None)
        assert result.listing.path == "sub"
        assert [e.name for e in result.listing.entries] == ["stopwords.txt"]

    @pytest.mark.asyncio
    async def test_nested_hidden_uses_relative_path(self, settings_factory, config_dir: Path):
        (config_dir / "sub" / "private.xml").write_text("<x/>", encoding="utf-8")
        service = FileAccessService.from_settings(settings_factory(hidden_files="sub/private.xml"))
        result = await service.handle("sub", None)
        assert [e.name for e in result.listing.entries] == ["stopwords.txt"]


# ---------------------------------------------------------------------------
# 根目录与指标
# ---------------------------------------------------------------------------


class TestServiceWiring:
    @pytest.mark.asyncio
    async def test_unresolvable_root(self, settings_factory, tmp_path: Path):
        service = FileAccessService.from_settings(
            settings_factory(config_dir=str(tmp_path / "absent"), config_resource_package="")
        )
        with pytest.raises(ForbiddenError, match="Can not access configuration directory!"):
            await service.handle("synonyms.txt", None)

    def test_config_root_property(self, service: FileAccessService, config_dir: Path):
        assert service.config_root == config_dir.resolve()

    @pytest.mark.asyncio
    async def test_metrics_counted(self, service: FileAccessService):
        labels = {"mode": "read", "outcome": "forbidden"}
        before = REGISTRY.get_sample_value("file_access_total", labels) or 0.0
        with pytest.raises(ForbiddenError):
            await service.handle("../x", None)
        assert REGISTRY.get_sample_value("file_access_total", labels) == before + 1

    @pytest.mark.asyncio
    async def test_rejection_reason_counted(self, service: FileAccessService):
        labels = {"reason": "hidden"}
        before = REGISTRY.get_sample_value("file_access_rejections_total", labels) or 0.0
        with pytest.raises(ForbiddenError):
            await service.handle("SECRETS.txt", None)
        assert REGISTRY.get_sample_value("file_access_rejections_total", labels) == before + 1
