"""Matrix fan-out and join barrier.

Each cell runs produce -> package -> publish on its own worker with its own
output directory. The barrier drains every future: a failing or crashing
cell becomes an outcome, it never cancels its siblings or disappears from
the report.
"""

from __future__ import annotations

import concurrent.futures
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from relkit.build.classify import BuildClassification
from relkit.build.matrix import MatrixCell
from relkit.build.naming import package_name
from relkit.core.config import PipelineConfig
from relkit.core.result import Err
from relkit.output.console import ConsoleProtocol
from relkit.services.package import ArtifactPackage, ArtifactProducer, package_binary
from relkit.services.publisher import PublishReport, publish_package
from relkit.services.storage import ObjectStorage

__all__ = [
    "CellJob",
    "CellOutcome",
    "CellStatus",
    "MatrixReport",
    "make_cell_job",
    "run_matrix",
]

CellStatus = Literal["published", "publish_failed", "produce_failed", "crashed"]


@dataclass(frozen=True, slots=True)
class CellOutcome:
    cell: MatrixCell
    status: CellStatus
    package: ArtifactPackage | None = None
    report: PublishReport | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == "published"


@dataclass(frozen=True, slots=True)
class MatrixReport:
    outcomes: tuple[CellOutcome, ...]

    @property
    def succeeded(self) -> tuple[CellOutcome, ...]:
        return tuple(o for o in self.outcomes if o.ok)

    @property
    def failed(self) -> tuple[CellOutcome, ...]:
        return tuple(o for o in self.outcomes if not o.ok)

    @property
    def all_succeeded(self) -> bool:
        return bool(self.outcomes) and not self.failed

    @property
    def packages(self) -> tuple[ArtifactPackage, ...]:
        return tuple(o.package for o in self.succeeded if o.package is not None)


CellJob = Callable[[MatrixCell], CellOutcome]


def run_matrix(
    cells: Sequence[MatrixCell],
    job: CellJob,
    *,
    max_workers: int = 4,
) -> MatrixReport:
    """Run job for every cell in parallel and wait for all of them."""
    outcomes: dict[MatrixCell, CellOutcome] = {}
    if not cells:
        return MatrixReport(outcomes=())

    with concurrent.futures.ThreadPoolExecutor(max_workers=max(1, max_workers)) as executor:
        futures = {executor.submit(job, cell): cell for cell in cells}
        for future in concurrent.futures.as_completed(futures):
            cell = futures[future]
            try:
                outcomes[cell] = future.result()
            except Exception as e:  # noqa: BLE001
                outcomes[cell] = CellOutcome(cell=cell, status="crashed", error=repr(e))

    return MatrixReport(outcomes=tuple(outcomes[cell] for cell in cells))


def make_cell_job(
    *,
    producer: ArtifactProducer,
    classification: BuildClassification,
    config: PipelineConfig,
    storage: ObjectStorage,
    out_root: Path,
    console: ConsoleProtocol,
    degraded: bool = False,
) -> CellJob:
    """Bind the per-cell produce/package/publish sequence for run_matrix."""

    def job(cell: MatrixCell) -> CellOutcome:
        built = producer.produce(cell)
        if isinstance(built, Err):
            console.error(f"[{cell.key}] {built.error.message}")
            return CellOutcome(cell=cell, status="produce_failed", error=built.error.message)

        name = package_name(
            classification,
            cell.platform,
            cell.arch,
            classification.short_hash,
            product=config.product,
        )
        packaged = package_binary(
            built.value,
            name=name,
            out_dir=out_root / cell.key,
            cell=cell,
            degraded=degraded,
        )
        if isinstance(packaged, Err):
            console.error(f"[{cell.key}] {packaged.error.message}")
            return CellOutcome(cell=cell, status="produce_failed", error=packaged.error.message)

        published = publish_package(
            packaged.value,
            classification,
            cell=cell,
            storage=storage,
            layout=config.storage,
            primary_platform=config.primary_platform,
            console=console,
        )
        if isinstance(published, Err):
            console.error(f"[{cell.key}] {published.error.message}")
            return CellOutcome(
                cell=cell,
                status="publish_failed",
                package=packaged.value,
                error=published.error.message,
            )

        return CellOutcome(
            cell=cell,
            status="published",
            package=packaged.value,
            report=published.value,
        )

    return job
