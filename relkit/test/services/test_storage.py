from __future__ import annotations

from pathlib import Path

import pytest

from relkit.core.config import StorageConfig, StorageCredentials
from relkit.core.result import Err, Ok
from relkit.platform.process import ProcessError
from relkit.services import storage as storage_mod
from relkit.services.storage import MemoryStorage, ObjectStorage, OssutilStorage, object_key

CREDS = StorageCredentials(access_key_id="id", access_key_secret="secret")


def test_object_key() -> None:
    path = Path("/tmp/rustfs-linux-x86_64-v1.zip")
    assert object_key(path, "oss://b/p/release/") == "oss://b/p/release/rustfs-linux-x86_64-v1.zip"
    assert object_key(path, "oss://b/latest.json") == "oss://b/latest.json"


def test_adapters_satisfy_port(tmp_path: Path) -> None:
    assert isinstance(MemoryStorage(), ObjectStorage)
    assert isinstance(
        OssutilStorage(storage=StorageConfig(), credentials=CREDS, workdir=tmp_path), ObjectStorage
    )


class TestOssutilStorage:
    def test_upload_passes_credentials_through_env(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        pkg = tmp_path / "a.zip"
        pkg.write_bytes(b"zip")
        seen: dict[str, object] = {}

        def fake_run(cmd: list[str], cwd: Path, *, extra_env=None, timeout=None):
            seen["cmd"] = cmd
            seen["env"] = extra_env
            seen["timeout"] = timeout
            return Ok("")

        monkeypatch.setattr(storage_mod, "run_process", fake_run)
        storage = OssutilStorage(storage=StorageConfig(), credentials=CREDS, workdir=tmp_path)
        result = storage.upload(pkg, "oss://b/p/dev/")

        assert result == Ok("oss://b/p/dev/a.zip")
        assert seen["cmd"] == ["ossutil", "cp", str(pkg), "oss://b/p/dev/", "--force"]
        env = seen["env"]
        assert isinstance(env, dict)
        assert env["OSS_ACCESS_KEY_SECRET"] == "secret"
        assert "secret" not in " ".join(seen["cmd"])  # type: ignore[arg-type]
        assert seen["timeout"] == 600.0

    def test_upload_failure(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        pkg = tmp_path / "a.zip"
        pkg.write_bytes(b"zip")

        def fake_run(cmd: list[str], cwd: Path, *, extra_env=None, timeout=None):
            return Err(ProcessError(tuple(cmd), 1, "", "AccessDenied"))

        monkeypatch.setattr(storage_mod, "run_process", fake_run)
        storage = OssutilStorage(storage=StorageConfig(), credentials=CREDS, workdir=tmp_path)
        result = storage.upload(pkg, "oss://b/p/dev/")

        assert isinstance(result, Err)
        assert result.error.hint == "AccessDenied"

    def test_missing_file_is_not_uploaded(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        def fake_run(*_args: object, **_kwargs: object):
            raise AssertionError("ossutil must not run")

        monkeypatch.setattr(storage_mod, "run_process", fake_run)
        storage = OssutilStorage(storage=StorageConfig(), credentials=CREDS, workdir=tmp_path)
        assert isinstance(storage.upload(tmp_path / "missing.zip", "oss://b/"), Err)


class TestMemoryStorage:
    def test_overwrite(self, tmp_path: Path) -> None:
        path = tmp_path / "latest.json"
        storage = MemoryStorage()
        path.write_text("1", encoding="utf-8")
        storage.upload(path, "oss://v/latest.json")
        path.write_text("2", encoding="utf-8")
        storage.upload(path, "oss://v/latest.json")
        assert storage.objects == {"oss://v/latest.json": b"2"}
        assert len(storage.uploads) == 2

    def test_fail_on(self, tmp_path: Path) -> None:
        path = tmp_path / "a.zip"
        path.write_bytes(b"")
        result = MemoryStorage(fail_on={"a.zip"}).upload(path, "oss://b/")
        assert isinstance(result, Err)
