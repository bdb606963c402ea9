from __future__ import annotations

from relkit.cli.commands._helpers import (
    EVENT_OPTION,
    REF_OPTION,
    checked_classification,
    exit_on_error,
    trigger_context,
)
from relkit.cli.context import build_context
from relkit.core.errors import ErrorCode
from relkit.services.latest import update_latest_pointer


def latest(
    ref: str | None = REF_OPTION,
    event_name: str | None = EVENT_OPTION,
) -> None:
    """Point latest.json at this release (stable tags only)."""
    ctx = build_context()
    build = trigger_context(
        ctx,
        ref=ref,
        event_name=event_name,
        short_sha=None,
        commit_message=None,
        build_docker=None,
    )
    classification = checked_classification(ctx, build)
    if not classification.is_tagged:
        ctx.console.info(f"{classification.build_type} build, latest.json unchanged")
        return

    status = exit_on_error(
        update_latest_pointer(
            classification,
            storage=ctx.storage(),
            destination=ctx.config.storage.latest_uri,
            repository=ctx.config.repository,
            console=ctx.console,
        ),
        ctx,
        ErrorCode.NETWORK_ERROR,
    )
    if status == "skipped_prerelease":
        ctx.console.info("prerelease, latest.json unchanged")
