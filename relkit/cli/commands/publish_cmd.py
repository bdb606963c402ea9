from __future__ import annotations

from pathlib import Path

import typer

from relkit.build.naming import parse_package_name
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
from relkit.core.result import Err
from relkit.output.console import Style
from relkit.services.package import ArtifactPackage
from relkit.services.publisher import publish_package


def publish(
    package_file: Path = typer.Argument(..., help="Package produced by 'relkit package'"),
    target: str = typer.Option(..., "--target", help="Target triple of the matrix cell"),
    ref: str | None = REF_OPTION,
    event_name: str | None = EVENT_OPTION,
    short_sha: str | None = SHORT_SHA_OPTION,
    commit_message: str | None = MESSAGE_OPTION,
) -> None:
    """Upload a package and its pointer copies to object storage."""
    ctx = build_context()
    cell = select_cell(ctx, target)

    path = package_file if package_file.is_absolute() else ctx.root / package_file
    if not path.is_file():
        ctx.console.error(f"package not found: {path}")
        raise typer.Exit(code=int(ErrorCode.IO_ERROR))

    name = parse_package_name(path.name, product=ctx.config.product)
    if name is None or name.is_pointer:
        ctx.console.error(f"not a {ctx.config.product} package: {path.name}")
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))

    build = trigger_context(
        ctx,
        ref=ref,
        event_name=event_name,
        short_sha=short_sha,
        commit_message=commit_message,
        build_docker=None,
    )
    classification = checked_classification(ctx, build)

    storage = ctx.storage()
    if storage is None:
        ctx.console.warning("storage credentials not available, skipping upload")
        return

    pkg = ArtifactPackage(name=name, path=path, size=path.stat().st_size, cell=cell)
    result = publish_package(
        pkg,
        classification,
        cell=cell,
        storage=storage,
        layout=ctx.config.storage,
        primary_platform=ctx.config.primary_platform,
        console=ctx.console,
    )
    code = ErrorCode.NETWORK_ERROR
    if isinstance(result, Err) and result.error.kind != "upload_failed":
        code = ErrorCode.USER_ERROR
    report = exit_on_error(result, ctx, code)

    ctx.console.field("Package", report.primary_uri)
    for uri in report.pointer_uris:
        ctx.console.print(f"  {uri}", Style.DIM)
    for failure in report.pointer_failures:
        ctx.console.warning(failure.message)
