# SPDX-License-Identifier: MIT
"""Application services for relkit.

Services implement the release pipeline, coordinating between the pure
build layer (build/) and the infrastructure adapters (platform/, storage,
release hosts).
"""

from relkit.services.coordinator import (
    CoordinatorError,
    CoordinatorReport,
    ReleaseCoordinator,
    ReleaseState,
)
from relkit.services.matrix import CellOutcome, MatrixReport, run_matrix
from relkit.services.pipeline import PipelineAdapters, PipelineResult, run_pipeline
from relkit.services.release_host import GhReleaseHost, MemoryReleaseHost, ReleaseHandle
from relkit.services.storage import MemoryStorage, OssutilStorage

__all__ = [
    # Release lifecycle
    "CoordinatorError",
    "CoordinatorReport",
    "ReleaseCoordinator",
    "ReleaseState",
    # Matrix
    "CellOutcome",
    "MatrixReport",
    "run_matrix",
    # Pipeline
    "PipelineAdapters",
    "PipelineResult",
    "run_pipeline",
    # Adapters
    "GhReleaseHost",
    "MemoryReleaseHost",
    "MemoryStorage",
    "OssutilStorage",
    "ReleaseHandle",
]
