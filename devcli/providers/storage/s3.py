from __future__ import annotations

import json
import os
import re
from datetime import datetime
from pathlib import Path
from typing import Any, Mapping

from devcli.config_loader import Config
from devcli.errors import ConfigurationError, ResourceNotFoundError
from devcli.executors.api import Executor
from devcli.providers.storage.base import StorageEntry, StorageProvider, sort_entries
from devcli.util import RunResult, format_bytes, load_env_file

CLI_TOOLS = ("mc", "aws")
MC_ALIAS = "devcli"

_AWS_PREFIX_RE = re.compile(r"^\s*PRE\s+(.+)/$")
_AWS_OBJECT_RE = re.compile(r"^(\d{4}-\d{2}-\d{2}\s+\d{2}:\d{2}:\d{2})\s+(\d+)\s+(.+)$")


def _parse_time(value: Any) -> datetime | None:
    if not isinstance(value, str) or not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


class S3Provider(StorageProvider):
    """
    Bucket storage through the MinIO client (`mc`) or the AWS CLI.

    Every call goes through the executor, so the CLI tool may live in a
    container, on the host, or on the remote machine.
    """

    driver = "s3"

    def __init__(self, section: Mapping[str, Any], config: Config, executor: Executor) -> None:
        super().__init__(section, config, executor)
        obj = self.section.get("object_storage") or {}
        if not isinstance(obj, Mapping):
            raise ConfigurationError("'storage.object_storage' must be a mapping")
        self.endpoint = str(obj.get("endpoint") or "")
        self.bucket = str(obj.get("bucket") or "")
        self.region = str(obj.get("region") or "us-east-1")
        self.credential_source = str(obj.get("credential_source") or "env")
        self.access_key = str(obj.get("access_key") or "")
        self.secret_key = str(obj.get("secret_key") or "")
        self.cli_tool = str(obj.get("cli_tool") or "auto")
        self._tool: str | None = None
        self._alias_ready = False

    def get_base_path(self) -> str:
        return self.bucket

    def credentials(self) -> tuple[str, str]:
        if self.credential_source == "config":
            return self.access_key, self.secret_key
        env_file = self.config.paths.env_file
        env: Mapping[str, str] = load_env_file(env_file) if env_file.is_file() else os.environ
        access = env.get("AWS_ACCESS_KEY_ID") or env.get("MINIO_ROOT_USER") or self.access_key
        secret = env.get("AWS_SECRET_ACCESS_KEY") or env.get("MINIO_ROOT_PASSWORD") or self.secret_key
        return access, secret

    def tool_env(self) -> dict[str, str]:
        access, secret = self.credentials()
        return {
            "AWS_ACCESS_KEY_ID": access,
            "AWS_SECRET_ACCESS_KEY": secret,
            "AWS_DEFAULT_REGION": self.region,
        }

    def detect_tool(self) -> str:
        if self._tool is not None:
            return self._tool
        if self.cli_tool != "auto":
            if self.cli_tool not in CLI_TOOLS:
                raise ConfigurationError(
                    f"Unknown storage.object_storage.cli_tool: {self.cli_tool} (known: auto, mc, aws)"
                )
            self._tool = self.cli_tool
            return self._tool
        for tool in CLI_TOOLS:
            if self.executor.run(tool, ["--version"]).ok:
                self._tool = tool
                return tool
        raise ConfigurationError(
            "No S3 CLI tool found",
            hint="install the MinIO client (mc) or the AWS CLI where commands run",
        )

    def _require_bucket(self) -> str:
        if not self.bucket:
            raise ConfigurationError(
                "Storage bucket not configured",
                hint="set storage.object_storage.bucket in your config",
            )
        return self.bucket

    def _mc(self, args: list[str], *, interactive: bool = False, input: str | None = None) -> RunResult:
        if not self._alias_ready:
            access, secret = self.credentials()
            res = self.executor.run(
                "mc",
                ["alias", "set", MC_ALIAS, self.endpoint or "https://s3.amazonaws.com", access, secret],
            )
            if not res.ok:
                raise ConfigurationError(f"Failed to configure mc alias: {res.stderr.strip()}")
            self._alias_ready = True
        return self.executor.run("mc", args, interactive=interactive, env=self.tool_env(), input=input)

    def _aws(self, args: list[str], *, interactive: bool = False) -> RunResult:
        argv = list(args)
        if self.endpoint:
            argv.extend(["--endpoint-url", self.endpoint])
        return self.executor.run("aws", argv, interactive=interactive, env=self.tool_env())

    def _target(self, path: str) -> str:
        bucket = self._require_bucket()
        path = path.lstrip("/")
        if self.detect_tool() == "mc":
            return f"{MC_ALIAS}/{bucket}/{path}" if path else f"{MC_ALIAS}/{bucket}"
        return f"s3://{bucket}/{path}"

    def _call(self, mc_args: list[str], aws_args: list[str], *, interactive: bool = False) -> RunResult:
        if self.detect_tool() == "mc":
            return self._mc(mc_args, interactive=interactive)
        return self._aws(aws_args, interactive=interactive)

    def _check(self, res: RunResult, action: str) -> None:
        if not res.ok:
            raise RuntimeError(f"Storage {action} failed: {res.stderr.strip() or res.returncode}")

    def is_available(self) -> bool:
        if not self.bucket:
            return False
        try:
            target = self._target("")
            res = self._call(["ls", target], ["s3", "ls", target])
        except ConfigurationError:
            return False
        return res.ok

    def list(self, path: str = "", *, sort: str = "name") -> list[StorageEntry]:
        prefix = path.strip("/")
        out: list[StorageEntry] = []
        if self.detect_tool() == "mc":
            res = self._mc(["ls", "--json", self._target(prefix)])
            if not res.ok:
                return []
            for line in res.stdout.splitlines():
                try:
                    item = json.loads(line)
                except ValueError:
                    continue
                key = str(item.get("key", "")).rstrip("/")
                out.append(
                    StorageEntry(
                        name=key,
                        path=f"{prefix}/{key}" if prefix else key,
                        is_dir=item.get("type") == "folder",
                        size=int(item.get("size") or 0),
                        modified=_parse_time(item.get("lastModified")),
                    )
                )
            return sort_entries(out, sort)

        target = self._target(f"{prefix}/" if prefix else "")
        res = self._aws(["s3", "ls", target])
        if not res.ok:
            return []
        for line in res.stdout.splitlines():
            m = _AWS_PREFIX_RE.match(line)
            if m:
                name = m.group(1)
                out.append(StorageEntry(name, f"{prefix}/{name}" if prefix else name, True, 0, None))
                continue
            m = _AWS_OBJECT_RE.match(line)
            if m:
                name = m.group(3)
                out.append(
                    StorageEntry(
                        name=name,
                        path=f"{prefix}/{name}" if prefix else name,
                        is_dir=False,
                        size=int(m.group(2)),
                        modified=datetime.strptime(m.group(1), "%Y-%m-%d %H:%M:%S"),
                    )
                )
        return sort_entries(out, sort)

    def upload(self, local_path: str | Path, remote_path: str) -> None:
        source = Path(local_path)
        if not source.exists():
            raise ResourceNotFoundError(f"Local file not found: {source}")
        target = self._target(remote_path)
        aws = ["s3", "cp", str(source), target]
        mc = ["cp", str(source), target]
        if source.is_dir():
            aws.append("--recursive")
            mc.insert(1, "--recursive")
        self._check(self._call(mc, aws), "upload")

    def download(self, remote_path: str, local_path: str | Path) -> Path:
        target = Path(local_path)
        target.parent.mkdir(parents=True, exist_ok=True)
        source = self._target(remote_path)
        self._check(self._call(["cp", source, str(target)], ["s3", "cp", source, str(target)]), "download")
        return target

    def delete(self, path: str, *, recursive: bool = False) -> None:
        target = self._target(path)
        mc = ["rm", "--recursive", "--force", target] if recursive else ["rm", target]
        aws = ["s3", "rm", target, "--recursive"] if recursive else ["s3", "rm", target]
        self._check(self._call(mc, aws), "delete")

    def copy(self, source: str, destination: str) -> None:
        src, dst = self._target(source), self._target(destination)
        self._check(self._call(["cp", src, dst], ["s3", "cp", src, dst]), "copy")

    def move(self, source: str, destination: str) -> None:
        src, dst = self._target(source), self._target(destination)
        self._check(self._call(["mv", src, dst], ["s3", "mv", src, dst]), "move")

    def exists(self, path: str) -> bool:
        try:
            self.stat(path)
        except ResourceNotFoundError:
            return False
        return True

    def stat(self, path: str) -> StorageEntry:
        key = path.strip("/")
        if self.detect_tool() == "mc":
            res = self._mc(["stat", "--json", self._target(key)])
            if not res.ok:
                raise ResourceNotFoundError(f"Object not found: {path}")
            info = json.loads(res.stdout or "{}")
            return StorageEntry(
                name=str(info.get("name") or key.rsplit("/", 1)[-1]),
                path=key,
                is_dir=info.get("type") == "folder",
                size=int(info.get("size") or 0),
                modified=_parse_time(info.get("lastModified")),
            )
        res = self._aws(["s3api", "head-object", "--bucket", self._require_bucket(), "--key", key])
        if not res.ok:
            raise ResourceNotFoundError(f"Object not found: {path}")
        info = json.loads(res.stdout or "{}")
        return StorageEntry(
            name=key.rsplit("/", 1)[-1],
            path=key,
            is_dir=False,
            size=int(info.get("ContentLength") or 0),
            modified=_parse_time(info.get("LastModified")),
        )

    def mkdir(self, path: str) -> None:
        # Object stores have no directories; an empty "key/" object stands in.
        key = path.strip("/") + "/"
        if self.detect_tool() == "mc":
            res = self._mc(["pipe", self._target(key)], input="")
        else:
            res = self._aws(["s3api", "put-object", "--bucket", self._require_bucket(), "--key", key])
        self._check(res, "mkdir")

    def get_usage(self) -> dict[str, Any]:
        used = 0
        if self.detect_tool() == "mc":
            res = self._mc(["du", "--json", self._target("")])
            if res.ok:
                for line in res.stdout.splitlines():
                    try:
                        used = int(json.loads(line).get("size") or 0)
                    except (ValueError, AttributeError):
                        continue
        else:
            res = self._aws(["s3", "ls", self._target(""), "--recursive", "--summarize"])
            if res.ok:
                m = re.search(r"Total Size:\s*(\d+)", res.stdout)
                if m:
                    used = int(m.group(1))
        return {"used": used, "total": None, "formatted": format_bytes(used)}

    def get_info(self) -> dict[str, Any]:
        return {
            "driver": self.driver,
            "bucket": self.bucket,
            "endpoint": self.endpoint or None,
            "region": self.region,
            "cli_tool": self.cli_tool,
        }
