"""配置文件读写：守卫通过后执行读取（流式返回）、写入（覆盖并回显）或目录列举。"""

from __future__ import annotations

import asyncio
import os
import shutil
import tempfile
import weakref
from collections.abc import AsyncIterator
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Literal

import aiofiles
import aiofiles.os

from pushfile.core.config import Settings
from pushfile.core.errors import BadRequestError, FileAccessError, InternalFileError
from pushfile.files.config_root import ConfigRootResolver
from pushfile.files.guard import PathGuard, is_filesystem_hidden
from pushfile.files.hidden import HiddenFileRegistry
from pushfile.observability.logging import get_logger
from pushfile.observability.metrics import file_access_total, file_write_bytes
from pushfile.schemas.files import DirectoryListing, FileEntry

logger = get_logger(__name__)

# 流式读取的分块大小
CHUNK_SIZE = 64 * 1024

WriteStrategy = Literal["atomic", "overwrite"]


@dataclass
class FileAccessResult:
    """一次访问的结果，由 API 层转换为具体的 HTTP 响应。"""

    mode: Literal["read", "write", "list"]
    path: Path
    text: str | None = None
    stream: AsyncIterator[bytes] | None = None
    listing: DirectoryListing | None = None


class FileAccessService:
    """
    配置文件访问服务，每个应用实例一个，在并发请求间共享。

    注册表与根目录在初始化后只读；对同一路径的并发写入通过按路径创建的锁串行化。
    """

    def __init__(
        self,
        resolver: ConfigRootResolver,
        registry: HiddenFileRegistry,
        write_strategy: WriteStrategy = "atomic",
    ):
        self.resolver = resolver
        self.registry = registry
        self.guard = PathGuard(registry)
        self.write_strategy = write_strategy
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()

    @classmethod
    def from_settings(cls, settings: Settings) -> "FileAccessService":
        return cls(
            resolver=ConfigRootResolver(settings.config_dir, settings.config_resource_package),
            registry=HiddenFileRegistry.from_settings(settings),
            write_strategy=settings.write_strategy,
        )

    @property
    def config_root(self) -> Path:
        return self.resolver.resolve()

    async def handle(self, file: str | None, contents: str | None) -> FileAccessResult:
        """处理一次访问：有 contents 为写入，否则读取文件或列举目录。"""
        mode = "write" if contents is not None else "read"
        try:
            root = self.resolver.resolve()
            target = self.guard.resolve(file, root)
            if contents is not None:
                await self.write(target, contents)
                result = FileAccessResult(mode="write", path=target, text=contents)
            elif target.is_dir():
                result = FileAccessResult(
                    mode="list", path=target, listing=self.list_directory(target, root)
                )
            else:
                result = FileAccessResult(mode="read", path=target, stream=await self.open_stream(target))
        except FileAccessError as exc:
            outcome = {403: "forbidden", 400: "bad_request"}.get(exc.status_code, "error")
            file_access_total.labels(mode=mode, outcome=outcome).inc()
            raise
        file_access_total.labels(mode=result.mode, outcome="ok").inc()
        return result

    # ------------------------------------------------------------------
    # 写入
    # ------------------------------------------------------------------

    def _lock_for(self, path: Path) -> asyncio.Lock:
        key = str(path.resolve())
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    async def write(self, path: Path, contents: str) -> None:
        """用 contents 的 UTF-8 字节替换目标文件内容。目录不可写。"""
        if path.is_dir():
            raise BadRequestError(f"Can not write to directory: {path.name}")

        data = contents.encode("utf-8")
        lock = self._lock_for(path)
        async with lock:
            try:
                if self.write_strategy == "atomic":
                    await self._write_atomic(path, data)
                else:
                    await self._write_in_place(path, data)
            except OSError as exc:
                logger.exception("file_write_failed", path=str(path), error=str(exc))
                raise InternalFileError() from exc

        file_write_bytes.observe(len(data))
        logger.info(
            "file_write_succeeded",
            path=str(path),
            size=len(data),
            strategy=self.write_strategy,
        )

    async def _write_in_place(self, path: Path, data: bytes) -> None:
        async with aiofiles.open(path, "wb") as f:
            await f.write(data)

    async def _write_atomic(self, path: Path, data: bytes) -> None:
        """写入同目录下的临时文件（点号开头，列举时不可见），再原子替换目标。"""
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        os.close(fd)
        try:
            async with aiofiles.open(tmp_name, "wb") as f:
                await f.write(data)
                await f.flush()
            shutil.copymode(path, tmp_name)
            await aiofiles.os.replace(tmp_name, path)
        except BaseException:
            if os.path.exists(tmp_name):
                await aiofiles.os.remove(tmp_name)
            raise

    # ------------------------------------------------------------------
    # 读取
    # ------------------------------------------------------------------

    async def open_stream(self, path: Path) -> AsyncIterator[bytes]:
        """先打开文件，使打开失败能在响应开始前以 500 返回；之后按块读取。"""
        try:
            handle = await aiofiles.open(path, "rb")
        except OSError as exc:
            logger.exception("file_open_failed", path=str(path), error=str(exc))
            raise InternalFileError() from exc
        logger.info("file_read_started", path=str(path))
        return self._iter_chunks(handle, path)

    async def _iter_chunks(self, handle, path: Path) -> AsyncIterator[bytes]:
        try:
            while True:
                chunk = await handle.read(CHUNK_SIZE)
                if not chunk:
                    break
                yield chunk
        except OSError as exc:
            # 响应头已发出，只能记录日志并中断传输
            logger.exception("file_read_failed", path=str(path), error=str(exc))
            raise
        finally:
            await handle.close()

    async def read_bytes(self, path: Path) -> bytes:
        stream = await self.open_stream(path)
        return b"".join([chunk async for chunk in stream])

    # ------------------------------------------------------------------
    # 目录列举
    # ------------------------------------------------------------------

    def list_directory(self, directory: Path, root: Path) -> DirectoryListing:
        """列出目录的直接子项，跳过注册表隐藏与文件系统隐藏的条目。"""
        rel_dir = directory.relative_to(root).as_posix() if directory != root else ""
        entries: list[FileEntry] = []
        try:
            with os.scandir(directory) as it:
                children = sorted(it, key=lambda e: e.name)
        except OSError as exc:
            logger.exception("directory_list_failed", path=str(directory), error=str(exc))
            raise InternalFileError() from exc

        for child in children:
            rel = f"{rel_dir}/{child.name}" if rel_dir else child.name
            child_path = Path(child.path)
            try:
                if self.registry.is_hidden(rel) or is_filesystem_hidden(child_path):
                    continue
                st = child.stat()
                is_dir = child.is_dir()
            except OSError:
                # 列举期间被删除的条目直接跳过
                continue
            entries.append(
                FileEntry(
                    name=child.name,
                    directory=is_dir,
                    size=None if is_dir else st.st_size,
                    modified=datetime.fromtimestamp(st.st_mtime, tz=timezone.utc),
                )
            )
        return DirectoryListing(path=rel_dir, entries=entries)
