"""Shared helpers for CLI commands."""

from __future__ import annotations

import os
from dataclasses import replace
from typing import TYPE_CHECKING, TypeVar

import typer

from relkit.build.classify import BuildClassification, check_classification, classify
from relkit.build.context import BuildContext, context_from_github
from relkit.build.matrix import MatrixCell
from relkit.core.errors import ErrorCode
from relkit.core.result import Err, Ok, Result
from relkit.output.console import Style
from relkit.platform import git
from relkit.platform.github import load_event_payload
from relkit.services.pipeline import rules_from_config

if TYPE_CHECKING:
    from relkit.cli.context import CLIContext


T = TypeVar("T")
E = TypeVar("E")


# Trigger overrides shared by every command that classifies the build.
# Unset options fall back to the GitHub Actions environment.
REF_OPTION = typer.Option(None, "--ref", help="Git ref (default: $GITHUB_REF)")
EVENT_OPTION = typer.Option(
    None, "--event-name", help="Trigger event (default: $GITHUB_EVENT_NAME)"
)
SHORT_SHA_OPTION = typer.Option(
    None, "--short-sha", help="Abbreviated commit hash (default: $GITHUB_SHA or git)"
)
MESSAGE_OPTION = typer.Option(
    None, "--commit-message", help="Head commit message (default: from the event payload)"
)
BUILD_DOCKER_OPTION = typer.Option(
    None,
    "--build-docker/--no-build-docker",
    help="Trigger the image build after this run (default: from the event payload)",
)


def exit_on_error(
    result: Result[T, E],
    ctx: CLIContext,
    error_code: ErrorCode = ErrorCode.BUILD_ERROR,
) -> T:
    """Return the value of an Ok result, or report the error and exit.

    Expects error objects to have 'message' and optional 'hint' attributes.
    """
    if isinstance(result, Err):
        error = result.error
        message: str = getattr(error, "message", str(error))
        hint: str | None = getattr(error, "hint", None)
        ctx.console.error(message)
        if hint:
            ctx.console.print(f"hint: {hint}", Style.DIM)
        raise typer.Exit(code=int(error_code))
    return result.value


def trigger_context(
    ctx: CLIContext,
    *,
    ref: str | None,
    event_name: str | None,
    short_sha: str | None,
    commit_message: str | None,
    build_docker: bool | None,
) -> BuildContext:
    environ = dict(os.environ)
    if ref is not None:
        environ["GITHUB_REF"] = ref
    if event_name is not None:
        environ["GITHUB_EVENT_NAME"] = event_name

    short_hash = short_sha
    if not short_hash and not environ.get("GITHUB_SHA"):
        found = git.short_hash(ctx.root)
        if isinstance(found, Ok):
            short_hash = found.value

    build = context_from_github(environ, load_event_payload(environ), short_hash=short_hash)
    if commit_message is not None:
        build = replace(build, commit_message=commit_message)
    if build_docker is not None:
        build = replace(build, build_docker=build_docker)
    return build


def checked_classification(ctx: CLIContext, build: BuildContext) -> BuildClassification:
    """Classify with the configured rules; an invalid result ends the command."""
    classification = classify(build, rules_from_config(ctx.config))
    return exit_on_error(check_classification(classification), ctx, ErrorCode.BUILD_ERROR)


def select_cell(ctx: CLIContext, target: str) -> MatrixCell:
    for cell in ctx.config.matrix:
        if cell.target == target:
            return cell
    known = ", ".join(c.target for c in ctx.config.matrix)
    ctx.console.error(f"unknown target: {target}")
    ctx.console.print(f"hint: configured targets: {known}", Style.DIM)
    raise typer.Exit(code=int(ErrorCode.USER_ERROR))
