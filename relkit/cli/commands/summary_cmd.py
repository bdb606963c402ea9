from __future__ import annotations

import typer

from relkit.cli.commands._helpers import (
    BUILD_DOCKER_OPTION,
    EVENT_OPTION,
    REF_OPTION,
    SHORT_SHA_OPTION,
    checked_classification,
    trigger_context,
)
from relkit.cli.context import build_context
from relkit.platform.github import write_step_outputs
from relkit.services.summary import render_summary


def summary(
    build_status: str = typer.Option(
        ..., "--build-status", help="Result of the matrix jobs (success, failure, cancelled)"
    ),
    ref: str | None = REF_OPTION,
    event_name: str | None = EVENT_OPTION,
    short_sha: str | None = SHORT_SHA_OPTION,
    build_docker: bool | None = BUILD_DOCKER_OPTION,
) -> None:
    """Print the build summary and the image-build decision."""
    ctx = build_context()
    build = trigger_context(
        ctx,
        ref=ref,
        event_name=event_name,
        short_sha=short_sha,
        commit_message=None,
        build_docker=build_docker,
    )
    classification = checked_classification(ctx, build)

    decision = render_summary(
        classification,
        console=ctx.console,
        build_docker=build.build_docker,
        builds_ok=build_status == "success",
    )
    write_step_outputs([("image_build", decision)])
