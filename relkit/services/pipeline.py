"""End-to-end run: classify, gate, fan out, join, release, summarize.

This is the single-process equivalent of the CI workflow. Each stage is
also reachable on its own through the CLI so CI jobs can run them
separately.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from relkit.build.classify import (
    BuildClassification,
    ClassifierRules,
    check_classification,
    classify,
)
from relkit.build.context import BuildContext
from relkit.core.config import PipelineConfig
from relkit.core.errors import ErrorCode
from relkit.core.result import Err
from relkit.output.console import ConsoleProtocol
from relkit.platform.http import HttpClient
from relkit.services.coordinator import (
    CoordinatorError,
    CoordinatorReport,
    ReleaseCoordinator,
    aggregate_from_report,
)
from relkit.services.matrix import MatrixReport, make_cell_job, run_matrix
from relkit.services.package import ArtifactProducer, bundle_static_assets
from relkit.services.release_host import ReleaseHost
from relkit.services.storage import ObjectStorage
from relkit.services.summary import ImageDecision, render_summary

__all__ = ["PipelineAdapters", "PipelineResult", "rules_from_config", "run_pipeline"]


@dataclass(frozen=True, slots=True)
class PipelineAdapters:
    """External collaborators of a run.

    ``latest_storage`` is None when storage credentials are unavailable.
    """

    storage: ObjectStorage
    host: ReleaseHost
    http: HttpClient
    producer: ArtifactProducer
    latest_storage: ObjectStorage | None = None


@dataclass(frozen=True, slots=True)
class PipelineResult:
    classification: BuildClassification
    code: ErrorCode
    matrix: MatrixReport | None = None
    release: CoordinatorReport | None = None
    release_error: CoordinatorError | None = None
    image_decision: ImageDecision | None = None


def rules_from_config(config: PipelineConfig) -> ClassifierRules:
    return ClassifierRules(main_branch=config.main_branch, build_marker=config.build_marker)


def run_pipeline(
    ctx: BuildContext,
    *,
    config: PipelineConfig,
    adapters: PipelineAdapters,
    root: Path,
    workdir: Path,
    console: ConsoleProtocol,
    tag_message: str | None = None,
    now: datetime | None = None,
) -> PipelineResult:
    classification = classify(ctx, rules_from_config(config))
    checked = check_classification(classification)
    if isinstance(checked, Err):
        console.error(checked.error.message)
        if checked.error.hint:
            console.print(checked.error.hint)
        return PipelineResult(classification=classification, code=ErrorCode.BUILD_ERROR)

    console.field("Build type", str(classification.build_type))
    console.field("Version", classification.version or "-")
    if not classification.should_build:
        console.info("nothing to build for this trigger")
        return PipelineResult(classification=classification, code=ErrorCode.OK)

    degraded = not bundle_static_assets(
        http=adapters.http, assets=config.assets, root=root, console=console
    )

    console.header(f"Building {len(config.matrix)} target(s)")
    job = make_cell_job(
        producer=adapters.producer,
        classification=classification,
        config=config,
        storage=adapters.storage,
        out_root=workdir / "packages",
        console=console,
        degraded=degraded,
    )
    matrix = run_matrix(config.matrix, job, max_workers=config.max_workers)

    release: CoordinatorReport | None = None
    release_error: CoordinatorError | None = None
    if classification.is_tagged:
        coordinator = ReleaseCoordinator(
            host=adapters.host,
            config=config,
            console=console,
            workdir=workdir,
            latest_storage=adapters.latest_storage,
            tag_message=tag_message,
            now=now,
        )
        outcome = coordinator.run(classification, aggregate_from_report(matrix))
        if isinstance(outcome, Err):
            release_error = outcome.error
            console.error(f"release failed in state {release_error.last_state}: {release_error.message}")
            if release_error.hint:
                console.print(release_error.hint)
        else:
            release = outcome.value

    decision = render_summary(
        classification,
        console=console,
        matrix=matrix,
        release=release,
        build_docker=ctx.build_docker,
    )

    if release_error is not None:
        code = ErrorCode.RELEASE_ERROR
    elif not matrix.all_succeeded:
        code = ErrorCode.BUILD_ERROR
    else:
        code = ErrorCode.OK

    return PipelineResult(
        classification=classification,
        code=code,
        matrix=matrix,
        release=release,
        release_error=release_error,
        image_decision=decision,
    )
