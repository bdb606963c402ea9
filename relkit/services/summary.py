"""End-of-run build summary and the downstream image-build decision."""

from __future__ import annotations

from typing import Literal

from relkit.build.classify import BuildClassification, BuildType
from relkit.output.console import ConsoleProtocol, Style
from relkit.services.coordinator import CoordinatorReport
from relkit.services.matrix import MatrixReport

__all__ = ["ImageDecision", "image_build_decision", "render_summary"]

ImageDecision = Literal["skipped_by_request", "skipped_on_failure", "triggered"]

_CHANNEL_LINES: dict[BuildType, tuple[str, str]] = {
    BuildType.DEVELOPMENT: (
        "development artifacts uploaded to the dev channel",
        "development build, not suitable for production use",
    ),
    BuildType.RELEASE: (
        "release artifacts uploaded to the release channel",
        "this build is ready for production use",
    ),
    BuildType.PRERELEASE: (
        "prerelease artifacts uploaded to the release channel",
        "prerelease build, use with caution",
    ),
}


def image_build_decision(*, build_docker: bool | None, builds_ok: bool) -> ImageDecision:
    """Whether the image build downstream of this run should start.

    ``build_docker`` is only ever False when a manual run opted out; an
    absent flag means the default (build images).
    """
    if build_docker is False:
        return "skipped_by_request"
    if not builds_ok:
        return "skipped_on_failure"
    return "triggered"


def render_summary(
    classification: BuildClassification,
    *,
    console: ConsoleProtocol,
    matrix: MatrixReport | None = None,
    release: CoordinatorReport | None = None,
    build_docker: bool | None = None,
    builds_ok: bool | None = None,
) -> ImageDecision:
    """Print the summary and return the image-build decision.

    ``builds_ok`` overrides the status derived from ``matrix``; the CLI uses
    it when the matrix ran in other jobs.
    """
    if builds_ok is None:
        builds_ok = matrix.all_succeeded if matrix is not None else False

    console.header("Build summary")
    console.field("Build type", str(classification.build_type))
    console.field("Version", classification.version or "-")
    console.field("All platforms", "success" if builds_ok else "failure")

    if matrix is not None:
        console.newline()
        for outcome in matrix.outcomes:
            if outcome.ok:
                name = outcome.package.filename if outcome.package else "-"
                line = f"{outcome.cell.key}: {name}"
                if outcome.package is not None and outcome.package.degraded:
                    line += " (without console assets)"
                failed = len(outcome.report.pointer_failures) if outcome.report else 0
                if failed:
                    console.warning(f"{line} ({failed} pointer upload(s) failed)")
                else:
                    console.success(line)
            else:
                console.error(f"{outcome.cell.key}: {outcome.status} ({outcome.error or 'no details'})")

    lines = _CHANNEL_LINES.get(classification.build_type)
    if lines is not None:
        console.newline()
        uploaded, advice = lines
        console.info(uploaded)
        if classification.build_type is BuildType.RELEASE:
            console.success(advice)
        else:
            console.warning(advice)

    if release is not None:
        console.newline()
        console.field("Release", f"{release.tag} ({release.state})")
        console.field("URL", release.handle.url)
        console.print(f"{len(release.assets)} asset(s) attached", Style.DIM)
        for warning in release.warnings:
            console.warning(warning)

    decision = image_build_decision(build_docker=build_docker, builds_ok=builds_ok)
    console.newline()
    if decision == "skipped_by_request":
        console.info("image build skipped (binary only build)")
    elif decision == "skipped_on_failure":
        console.error("image build skipped due to build failure")
    else:
        console.success("image build will be triggered")
    return decision
