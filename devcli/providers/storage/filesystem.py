from __future__ import annotations

import shutil
from datetime import datetime
from pathlib import Path
from typing import Any, Mapping

from devcli.config_loader import Config
from devcli.errors import ResourceNotFoundError
from devcli.executors.api import Executor
from devcli.providers.storage.base import StorageEntry, StorageProvider, sort_entries
from devcli.util import ensure_dir, format_bytes, resolve_path


class FilesystemProvider(StorageProvider):
    """
    Project-local storage directory.

    The resource is this machine's filesystem, so operations use pathlib and
    shutil directly instead of going through the executor.
    """

    driver = "filesystem"

    def __init__(self, section: Mapping[str, Any], config: Config, executor: Executor) -> None:
        super().__init__(section, config, executor)
        fs = self.section.get("filesystem") or {}
        base = fs.get("base_path") if isinstance(fs, Mapping) else None
        self.base_path = resolve_path(config.paths.project_root, base or "./storage")

    def get_base_path(self) -> str:
        return str(self.base_path)

    def is_available(self) -> bool:
        return self.base_path.is_dir()

    def full_path(self, path: str) -> Path:
        target = (self.base_path / path.lstrip("/")).resolve()
        if target != self.base_path and self.base_path not in target.parents:
            raise ValueError(f"Path escapes the storage root: {path}")
        return target

    def _entry(self, p: Path) -> StorageEntry:
        st = p.stat()
        rel = p.relative_to(self.base_path).as_posix()
        return StorageEntry(
            name=p.name,
            path=rel,
            is_dir=p.is_dir(),
            size=0 if p.is_dir() else st.st_size,
            modified=datetime.fromtimestamp(st.st_mtime),
        )

    def _require(self, path: str) -> Path:
        target = self.full_path(path)
        if not target.exists():
            raise ResourceNotFoundError(f"Path not found: {path}")
        return target

    def list(self, path: str = "", *, sort: str = "name") -> list[StorageEntry]:
        target = self.full_path(path)
        if not target.exists():
            return []
        if target.is_file():
            return [self._entry(target)]
        return sort_entries([self._entry(p) for p in target.iterdir()], sort)

    def upload(self, local_path: str | Path, remote_path: str) -> None:
        source = Path(local_path)
        if not source.exists():
            raise ResourceNotFoundError(f"Local file not found: {source}")
        target = self.full_path(remote_path)
        ensure_dir(target.parent)
        if source.is_dir():
            shutil.copytree(source, target, dirs_exist_ok=True)
        else:
            shutil.copy2(source, target)

    def download(self, remote_path: str, local_path: str | Path) -> Path:
        source = self._require(remote_path)
        target = Path(local_path)
        ensure_dir(target.parent)
        if source.is_dir():
            shutil.copytree(source, target, dirs_exist_ok=True)
        else:
            shutil.copy2(source, target)
        return target

    def delete(self, path: str, *, recursive: bool = False) -> None:
        target = self.full_path(path)
        if target == self.base_path:
            raise ValueError("Refusing to delete the storage root")
        if not target.exists():
            return
        if target.is_dir():
            if recursive:
                shutil.rmtree(target)
            else:
                target.rmdir()
            return
        target.unlink()

    def copy(self, source: str, destination: str) -> None:
        src = self._require(source)
        dst = self.full_path(destination)
        ensure_dir(dst.parent)
        if src.is_dir():
            shutil.copytree(src, dst, dirs_exist_ok=True)
        else:
            shutil.copy2(src, dst)

    def move(self, source: str, destination: str) -> None:
        src = self._require(source)
        dst = self.full_path(destination)
        ensure_dir(dst.parent)
        shutil.move(str(src), str(dst))

    def exists(self, path: str) -> bool:
        return self.full_path(path).exists()

    def stat(self, path: str) -> StorageEntry:
        return self._entry(self._require(path))

    def mkdir(self, path: str) -> None:
        ensure_dir(self.full_path(path))

    def read_text(self, path: str) -> str:
        return self._require(path).read_text(encoding="utf-8")

    def write_text(self, path: str, content: str) -> None:
        target = self.full_path(path)
        ensure_dir(target.parent)
        target.write_text(content, encoding="utf-8")

    def get_usage(self) -> dict[str, Any]:
        used = 0
        if self.base_path.is_dir():
            used = sum(p.stat().st_size for p in self.base_path.rglob("*") if p.is_file())
        probe = self.base_path if self.base_path.exists() else self.config.paths.project_root
        try:
            total = shutil.disk_usage(probe).total
        except OSError:
            total = None
        return {"used": used, "total": total, "formatted": format_bytes(used)}
