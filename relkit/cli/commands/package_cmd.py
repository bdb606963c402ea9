from __future__ import annotations

from pathlib import Path

import typer

from relkit.build.naming import package_name
from relkit.cli.commands._helpers import (
    EVENT_OPTION,
    MESSAGE_OPTION,
    REF_OPTION,
    SHORT_SHA_OPTION,
    checked_classification,
    exit_on_error,
    select_cell,
    trigger_context,
)
from relkit.cli.context import build_context
from relkit.core.errors import ErrorCode
from relkit.platform.github import write_step_outputs
from relkit.services.package import PrebuiltBinaryProducer, bundle_static_assets, package_binary


def package(
    target: str = typer.Option(..., "--target", help="Target triple of the matrix cell"),
    out: Path = typer.Option(Path("dist"), "--out", help="Output directory"),
    assets: bool = typer.Option(
        True, "--assets/--no-assets", help="Download the console bundle before packaging"
    ),
    ref: str | None = REF_OPTION,
    event_name: str | None = EVENT_OPTION,
    short_sha: str | None = SHORT_SHA_OPTION,
    commit_message: str | None = MESSAGE_OPTION,
) -> None:
    """Zip the built binary of one matrix cell under its canonical name."""
    ctx = build_context()
    cell = select_cell(ctx, target)
    build = trigger_context(
        ctx,
        ref=ref,
        event_name=event_name,
        short_sha=short_sha,
        commit_message=commit_message,
        build_docker=None,
    )
    classification = checked_classification(ctx, build)
    if not classification.should_build:
        ctx.console.info("nothing to build for this trigger")
        return

    degraded = False
    if assets:
        degraded = not bundle_static_assets(
            http=ctx.http(), assets=ctx.config.assets, root=ctx.root, console=ctx.console
        )

    producer = PrebuiltBinaryProducer(root=ctx.root, product=ctx.config.product)
    binary = exit_on_error(producer.produce(cell), ctx, ErrorCode.BUILD_ERROR)

    name = package_name(
        classification,
        cell.platform,
        cell.arch,
        classification.short_hash,
        product=ctx.config.product,
    )
    out_dir = out if out.is_absolute() else ctx.root / out
    pkg = exit_on_error(
        package_binary(binary, name=name, out_dir=out_dir, cell=cell, degraded=degraded),
        ctx,
        ErrorCode.BUILD_ERROR,
    )

    ctx.console.success(f"{pkg.path} ({pkg.size} bytes)")
    write_step_outputs(
        [
            ("package_name", str(pkg.name)),
            ("package_file", pkg.filename),
            ("package_path", str(pkg.path)),
        ]
    )
