from __future__ import annotations

import typer

from relkit.cli.commands._helpers import (
    BUILD_DOCKER_OPTION,
    EVENT_OPTION,
    MESSAGE_OPTION,
    REF_OPTION,
    SHORT_SHA_OPTION,
    trigger_context,
)
from relkit.cli.context import build_context
from relkit.platform import git
from relkit.services.pipeline import run_pipeline


def pipeline(
    ref: str | None = REF_OPTION,
    event_name: str | None = EVENT_OPTION,
    short_sha: str | None = SHORT_SHA_OPTION,
    commit_message: str | None = MESSAGE_OPTION,
    build_docker: bool | None = BUILD_DOCKER_OPTION,
) -> None:
    """Run every stage in one process: package, publish, release, summarize."""
    ctx = build_context()
    build = trigger_context(
        ctx,
        ref=ref,
        event_name=event_name,
        short_sha=short_sha,
        commit_message=commit_message,
        build_docker=build_docker,
    )

    tag = build.resolved_tag
    result = run_pipeline(
        build,
        config=ctx.config,
        adapters=ctx.adapters(),
        root=ctx.root,
        workdir=ctx.workdir,
        console=ctx.console,
        tag_message=git.tag_message(ctx.root, tag) if tag else None,
    )
    if not result.code.is_success:
        raise typer.Exit(code=int(result.code))
