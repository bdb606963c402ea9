from __future__ import annotations

import json
from pathlib import Path

import pytest

from relkit.core.result import Err, Ok, Result
from relkit.platform.process import ProcessError
from relkit.services import release_host as host_mod
from relkit.services.release_host import GhReleaseHost, MemoryReleaseHost, ReleaseHandle, ReleaseHost


def _view(tag: str = "1.2.3", *, draft: bool = True, prerelease: bool = False) -> Ok[str]:
    return Ok(
        json.dumps(
            {
                "databaseId": 42,
                "url": f"https://github.com/rustfs/rustfs/releases/tag/{tag}",
                "isDraft": draft,
                "isPrerelease": prerelease,
                "tagName": tag,
            }
        )
    )


def _err(stderr: str, returncode: int = 1) -> Err[ProcessError]:
    return Err(ProcessError(command=("gh", "release"), returncode=returncode, stdout="", stderr=stderr))


def _no_sleep(seconds: float) -> None:
    del seconds


class FakeGh:
    def __init__(self, responses: list[Result[str, ProcessError]]) -> None:
        self.responses = responses
        self.calls: list[list[str]] = []

    def __call__(self, cmd: list[str], *, cwd: Path, timeout: float | None = None):
        del cwd, timeout
        self.calls.append(cmd)
        return self.responses.pop(0)


def _host(monkeypatch: pytest.MonkeyPatch, tmp_path: Path, fake: FakeGh) -> GhReleaseHost:
    monkeypatch.setattr(host_mod, "run_process", fake)
    monkeypatch.setattr(host_mod, "sleep", _no_sleep)
    return GhReleaseHost(repo="rustfs/rustfs", workdir=tmp_path)


def _handle(draft: bool = True) -> ReleaseHandle:
    return ReleaseHandle(
        tag="1.2.3",
        release_id=42,
        url="https://github.com/rustfs/rustfs/releases/tag/1.2.3",
        draft=draft,
        prerelease=False,
    )


class TestGhFind:
    def test_found(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        fake = FakeGh([_view()])
        result = _host(monkeypatch, tmp_path, fake).find("1.2.3")
        assert result == Ok(_handle())
        assert fake.calls[0][:4] == ["gh", "release", "view", "1.2.3"]

    def test_not_found_is_none(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        fake = FakeGh([_err("release not found")])
        assert _host(monkeypatch, tmp_path, fake).find("1.2.3") == Ok(None)

    def test_transient_error_is_retried(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        fake = FakeGh([_err("HTTP 503 Service Unavailable"), _view()])
        result = _host(monkeypatch, tmp_path, fake).find("1.2.3")
        assert isinstance(result, Ok)
        assert len(fake.calls) == 2

    def test_permanent_error(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        fake = FakeGh([_err("HTTP 401 Bad credentials")])
        result = _host(monkeypatch, tmp_path, fake).find("1.2.3")
        assert isinstance(result, Err)
        assert len(fake.calls) == 1

    def test_invalid_payload(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        fake = FakeGh([Ok('{"tagName": "1.2.3"}')])
        result = _host(monkeypatch, tmp_path, fake).find("1.2.3")
        assert isinstance(result, Err)
        assert result.error.kind == "invalid_response"


class TestGhCreate:
    def test_create_draft_prerelease(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        fake = FakeGh([Ok("https://github.com/..."), _view("1.2.3-rc1", prerelease=True)])
        result = _host(monkeypatch, tmp_path, fake).create(
            "1.2.3-rc1", title="RustFS 1.2.3-rc1 (rc)", notes="notes", prerelease=True
        )
        assert isinstance(result, Ok)
        assert result.value.prerelease
        create = fake.calls[0]
        assert create[:4] == ["gh", "release", "create", "1.2.3-rc1"]
        assert "--draft" in create
        assert "--verify-tag" in create
        assert "--prerelease" in create

    def test_existing_release(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        fake = FakeGh([_err("a release with the same tag name already exists: 1.2.3")])
        result = _host(monkeypatch, tmp_path, fake).create(
            "1.2.3", title="t", notes="n", prerelease=False
        )
        assert isinstance(result, Err)
        assert result.error.kind == "release_exists"

    def test_create_is_not_retried(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        fake = FakeGh([_err("HTTP 502 Bad Gateway")])
        result = _host(monkeypatch, tmp_path, fake).create(
            "1.2.3", title="t", notes="n", prerelease=False
        )
        assert isinstance(result, Err)
        assert result.error.kind == "create_failed"
        assert len(fake.calls) == 1


class TestGhAssetsAndPublish:
    def test_upload_clobbers(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        fake = FakeGh([Ok("")])
        asset = tmp_path / "SHA256SUMS"
        result = _host(monkeypatch, tmp_path, fake).upload_asset(_handle(), asset)
        assert result == Ok(None)
        assert fake.calls[0] == [
            "gh", "release", "upload", "1.2.3", str(asset), "--repo", "rustfs/rustfs", "--clobber",
        ]

    def test_publish_clears_draft(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        fake = FakeGh([Ok(""), _view(draft=False)])
        result = _host(monkeypatch, tmp_path, fake).publish(_handle())
        assert result == Ok(_handle(draft=False))
        assert "--draft=false" in fake.calls[0]

    def test_publish_public_release_is_noop(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        fake = FakeGh([])
        result = _host(monkeypatch, tmp_path, fake).publish(_handle(draft=False))
        assert result == Ok(_handle(draft=False))
        assert fake.calls == []

    def test_asset_names(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        fake = FakeGh([Ok(json.dumps({"assets": [{"name": "a.zip"}, {"name": "SHA256SUMS"}, {}]}))])
        result = _host(monkeypatch, tmp_path, fake).asset_names(_handle())
        assert result == Ok(["a.zip", "SHA256SUMS"])


class TestMemoryReleaseHost:
    def test_satisfies_port(self) -> None:
        assert isinstance(MemoryReleaseHost(), ReleaseHost)

    def test_create_twice_reports_existing(self) -> None:
        host = MemoryReleaseHost()
        first = host.create("1.2.3", title="t", notes="n", prerelease=False)
        second = host.create("1.2.3", title="t", notes="n", prerelease=False)
        assert isinstance(first, Ok)
        assert first.value.draft
        assert isinstance(second, Err)
        assert second.error.kind == "release_exists"

    def test_upload_overwrites(self, tmp_path: Path) -> None:
        host = MemoryReleaseHost()
        created = host.create("1.2.3", title="t", notes="n", prerelease=False)
        assert isinstance(created, Ok)
        asset = tmp_path / "a.zip"
        asset.write_bytes(b"1")
        host.upload_asset(created.value, asset)
        asset.write_bytes(b"2")
        host.upload_asset(created.value, asset)
        assert host.releases["1.2.3"].assets == {"a.zip": b"2"}

    def test_publish_twice(self) -> None:
        host = MemoryReleaseHost()
        created = host.create("1.2.3", title="t", notes="n", prerelease=False)
        assert isinstance(created, Ok)
        first = host.publish(created.value)
        second = host.publish(created.value)
        assert isinstance(first, Ok) and isinstance(second, Ok)
        assert first.value == second.value
        assert not first.value.draft
        assert host.publish_calls == ["1.2.3"]
