from __future__ import annotations

import io
import zipfile
from pathlib import Path

from relkit.build.context import BuildContext, TriggerKind
from relkit.build.matrix import DEFAULT_MATRIX
from relkit.core.config import AssetsConfig, PipelineConfig
from relkit.core.errors import ErrorCode
from relkit.output.console import MockConsole
from relkit.platform.http import MockHttpClient
from relkit.services.package import PrebuiltBinaryProducer
from relkit.services.pipeline import PipelineAdapters, rules_from_config, run_pipeline
from relkit.services.release_host import MemoryReleaseHost
from relkit.services.storage import MemoryStorage

from ._support import write_binary

CONFIG = PipelineConfig()
DEV = "oss://rustfs-artifacts/artifacts/rustfs/dev/"


def _console_zip() -> bytes:
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        zf.writestr("index.html", "<html></html>")
    return buf.getvalue()


def _adapters(tmp_path: Path, *, with_assets: bool = True) -> PipelineAdapters:
    http = MockHttpClient()
    if with_assets:
        http.set_download(AssetsConfig().console_url, _console_zip())
    storage = MemoryStorage()
    return PipelineAdapters(
        storage=storage,
        host=MemoryReleaseHost(),
        http=http,
        producer=PrebuiltBinaryProducer(root=tmp_path, product="rustfs"),
        latest_storage=storage,
    )


def _ctx(ref: str, trigger: TriggerKind, *, build_docker: bool | None = None) -> BuildContext:
    return BuildContext(trigger=trigger, ref=ref, short_hash="abcdef1", build_docker=build_docker)


def _build_all(root: Path) -> None:
    for cell in DEFAULT_MATRIX:
        write_binary(root, cell)


def test_rules_from_config() -> None:
    rules = rules_from_config(PipelineConfig(main_branch="trunk", build_marker="[build]"))
    assert rules.main_branch == "trunk"
    assert rules.build_marker == "[build]"


def test_none_build_does_nothing(tmp_path: Path) -> None:
    adapters = _adapters(tmp_path)
    result = run_pipeline(
        _ctx("refs/heads/feature", TriggerKind.BRANCH_PUSH),
        config=CONFIG, adapters=adapters, root=tmp_path, workdir=tmp_path / "w",
        console=MockConsole(),
    )
    assert result.code is ErrorCode.OK
    assert result.matrix is None
    assert isinstance(adapters.http, MockHttpClient) and adapters.http.calls == []


def test_main_push_publishes_dev_artifacts(tmp_path: Path) -> None:
    _build_all(tmp_path)
    adapters = _adapters(tmp_path)

    result = run_pipeline(
        _ctx("refs/heads/main", TriggerKind.BRANCH_PUSH),
        config=CONFIG, adapters=adapters, root=tmp_path, workdir=tmp_path / "w",
        console=MockConsole(),
    )

    assert result.code is ErrorCode.OK
    assert result.release is None
    assert result.image_decision == "triggered"
    assert isinstance(adapters.storage, MemoryStorage)
    assert DEV + "rustfs-linux-x86_64-main-latest.zip" in adapters.storage.objects
    assert DEV + "rustfs-macos-aarch64-dev-latest.zip" in adapters.storage.objects
    assert isinstance(adapters.host, MemoryReleaseHost) and adapters.host.releases == {}


def test_tag_push_releases(tmp_path: Path) -> None:
    _build_all(tmp_path)
    adapters = _adapters(tmp_path)

    result = run_pipeline(
        _ctx("refs/tags/1.2.3", TriggerKind.TAG_PUSH),
        config=CONFIG, adapters=adapters, root=tmp_path, workdir=tmp_path / "w",
        console=MockConsole(), tag_message="Notes from the tag",
    )

    assert result.code is ErrorCode.OK
    assert result.release is not None
    assert len(result.release.packages) == 4
    assert result.release.latest == "updated"
    assert isinstance(adapters.host, MemoryReleaseHost)
    assert adapters.host.releases["1.2.3"].notes == "Notes from the tag"


def test_partial_failure_still_releases(tmp_path: Path) -> None:
    write_binary(tmp_path, DEFAULT_MATRIX[0])
    adapters = _adapters(tmp_path)

    result = run_pipeline(
        _ctx("refs/tags/1.2.3", TriggerKind.TAG_PUSH),
        config=CONFIG, adapters=adapters, root=tmp_path, workdir=tmp_path / "w",
        console=MockConsole(),
    )

    assert result.code is ErrorCode.BUILD_ERROR
    assert result.release is not None
    assert result.release.packages == ("rustfs-linux-x86_64-v1.2.3.zip",)
    assert result.image_decision == "skipped_on_failure"


def test_all_cells_failing_is_a_release_error(tmp_path: Path) -> None:
    adapters = _adapters(tmp_path)

    result = run_pipeline(
        _ctx("refs/tags/1.2.3", TriggerKind.TAG_PUSH),
        config=CONFIG, adapters=adapters, root=tmp_path, workdir=tmp_path / "w",
        console=MockConsole(),
    )

    assert result.code is ErrorCode.RELEASE_ERROR
    assert result.release_error is not None
    assert result.release_error.kind == "empty_aggregate"
    assert isinstance(adapters.host, MemoryReleaseHost) and adapters.host.create_calls == []


def test_missing_console_assets_degrade(tmp_path: Path) -> None:
    _build_all(tmp_path)
    console = MockConsole()

    result = run_pipeline(
        _ctx("refs/heads/main", TriggerKind.BRANCH_PUSH, build_docker=False),
        config=CONFIG, adapters=_adapters(tmp_path, with_assets=False), root=tmp_path,
        workdir=tmp_path / "w", console=console,
    )

    assert result.code is ErrorCode.OK
    assert result.matrix is not None
    assert all(p.degraded for p in result.matrix.packages)
    assert result.image_decision == "skipped_by_request"
    assert console.has_warning()


def test_invalid_classification_fails(tmp_path: Path) -> None:
    result = run_pipeline(
        BuildContext(trigger=TriggerKind.BRANCH_PUSH, ref="refs/heads/main", short_hash=""),
        config=CONFIG, adapters=_adapters(tmp_path), root=tmp_path, workdir=tmp_path / "w",
        console=MockConsole(),
    )
    assert result.code is ErrorCode.BUILD_ERROR
    assert result.matrix is None
