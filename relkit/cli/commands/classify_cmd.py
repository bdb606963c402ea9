from __future__ import annotations

import typer

from relkit.build.classify import classification_outputs
from relkit.cli.commands._helpers import (
    BUILD_DOCKER_OPTION,
    EVENT_OPTION,
    MESSAGE_OPTION,
    REF_OPTION,
    SHORT_SHA_OPTION,
    checked_classification,
    trigger_context,
)
from relkit.cli.context import build_context
from relkit.output.console import Style
from relkit.platform.github import write_step_outputs


def classify(
    ref: str | None = REF_OPTION,
    event_name: str | None = EVENT_OPTION,
    short_sha: str | None = SHORT_SHA_OPTION,
    commit_message: str | None = MESSAGE_OPTION,
    build_docker: bool | None = BUILD_DOCKER_OPTION,
    outputs: bool = typer.Option(
        True, "--outputs/--no-outputs", help="Append results to $GITHUB_OUTPUT when set"
    ),
) -> None:
    """Decide whether and what to build for the current trigger."""
    ctx = build_context()
    build = trigger_context(
        ctx,
        ref=ref,
        event_name=event_name,
        short_sha=short_sha,
        commit_message=commit_message,
        build_docker=build_docker,
    )
    classification = checked_classification(ctx, build)

    items = classification_outputs(classification)
    for key, value in items:
        ctx.console.field(key, value)

    if outputs:
        written = write_step_outputs(items)
        if written is not None:
            ctx.console.print(f"outputs written to {written}", Style.DIM)
