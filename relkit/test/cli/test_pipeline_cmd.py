from __future__ import annotations

from pathlib import Path

import pytest
import typer

from relkit.build.matrix import DEFAULT_MATRIX
from relkit.cli import context as context_mod
from relkit.core.config import AssetsConfig
from relkit.core.errors import ErrorCode
from relkit.platform import git as git_mod
from relkit.platform.http import MockHttpClient

from ..services._support import write_binary
from ._support import clean_env, cli_context, console_of, console_zip


def _offline(monkeypatch: pytest.MonkeyPatch) -> None:
    http = MockHttpClient()
    http.set_download(AssetsConfig().console_url, console_zip())
    monkeypatch.setattr(context_mod, "RealHttpClient", lambda **_: http)
    monkeypatch.setattr(git_mod, "tag_message", lambda root, tag: "Highlights")


def test_pipeline_dry_run_release(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    import relkit.cli.commands.pipeline_cmd as pipeline_cmd

    clean_env(monkeypatch)
    _offline(monkeypatch)
    for cell in DEFAULT_MATRIX:
        write_binary(tmp_path, cell)
    ctx = cli_context(tmp_path)
    monkeypatch.setattr(pipeline_cmd, "build_context", lambda: ctx)

    pipeline_cmd.pipeline(
        ref="refs/tags/1.2.3",
        event_name="push",
        short_sha="abcdef1",
        commit_message=None,
        build_docker=None,
    )

    console = console_of(ctx)
    assert not console.has_error()
    assert console.find("image build will be triggered")
    assert (ctx.workdir / "release-assets" / "rustfs-macos-aarch64-v1.2.3.zip").is_file()


def test_pipeline_exits_with_release_error(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    import relkit.cli.commands.pipeline_cmd as pipeline_cmd

    clean_env(monkeypatch)
    _offline(monkeypatch)
    ctx = cli_context(tmp_path)
    monkeypatch.setattr(pipeline_cmd, "build_context", lambda: ctx)

    with pytest.raises(typer.Exit) as exc:
        pipeline_cmd.pipeline(
            ref="refs/tags/1.2.3",
            event_name="push",
            short_sha="abcdef1",
            commit_message=None,
            build_docker=None,
        )

    assert exc.value.exit_code == int(ErrorCode.RELEASE_ERROR)


def test_pipeline_exits_with_build_error(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    import relkit.cli.commands.pipeline_cmd as pipeline_cmd

    clean_env(monkeypatch)
    _offline(monkeypatch)
    write_binary(tmp_path, DEFAULT_MATRIX[0])
    ctx = cli_context(tmp_path)
    monkeypatch.setattr(pipeline_cmd, "build_context", lambda: ctx)

    with pytest.raises(typer.Exit) as exc:
        pipeline_cmd.pipeline(
            ref="refs/heads/main",
            event_name="push",
            short_sha="abcdef1",
            commit_message=None,
            build_docker=None,
        )

    assert exc.value.exit_code == int(ErrorCode.BUILD_ERROR)
    assert console_of(ctx).find("image build skipped due to build failure")
