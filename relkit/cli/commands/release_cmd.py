from __future__ import annotations

from pathlib import Path

import typer

from relkit.cli.commands._helpers import (
    EVENT_OPTION,
    REF_OPTION,
    SHORT_SHA_OPTION,
    checked_classification,
    trigger_context,
)
from relkit.cli.context import build_context
from relkit.core.errors import ErrorCode
from relkit.core.result import Err
from relkit.output.console import Style
from relkit.platform import git
from relkit.services.coordinator import ReleaseCoordinator, aggregate_from_dir
from relkit.services.release_host import GhReleaseHost


def release(
    artifacts: Path = typer.Option(
        Path("artifacts"), "--artifacts", help="Directory holding the packages of every cell"
    ),
    ref: str | None = REF_OPTION,
    event_name: str | None = EVENT_OPTION,
    short_sha: str | None = SHORT_SHA_OPTION,
) -> None:
    """Create or reuse the release for a tag, attach assets, and publish it."""
    ctx = build_context()
    build = trigger_context(
        ctx,
        ref=ref,
        event_name=event_name,
        short_sha=short_sha,
        commit_message=None,
        build_docker=None,
    )
    classification = checked_classification(ctx, build)
    if not classification.is_tagged:
        ctx.console.info(f"{classification.build_type} build, no release to create")
        return

    if not ctx.dry_run:
        available = GhReleaseHost.available()
        if isinstance(available, Err):
            ctx.console.error(available.error.message)
            if available.error.hint:
                ctx.console.print(f"hint: {available.error.hint}", Style.DIM)
            raise typer.Exit(code=int(ErrorCode.RELEASE_ERROR))

    directory = artifacts if artifacts.is_absolute() else ctx.root / artifacts
    packages = aggregate_from_dir(
        directory, product=ctx.config.product, version=classification.version
    )

    coordinator = ReleaseCoordinator(
        host=ctx.release_host(),
        config=ctx.config,
        console=ctx.console,
        workdir=ctx.workdir,
        latest_storage=ctx.storage(),
        tag_message=git.tag_message(ctx.root, classification.version),
    )
    outcome = coordinator.run(classification, packages)
    if isinstance(outcome, Err):
        error = outcome.error
        ctx.console.error(f"{error.message} (state: {error.last_state})")
        if error.hint:
            ctx.console.print(f"hint: {error.hint}", Style.DIM)
        raise typer.Exit(code=int(ErrorCode.RELEASE_ERROR))

    report = outcome.value
    ctx.console.field("Release", report.handle.url)
    ctx.console.field("Assets", str(len(report.assets)))
