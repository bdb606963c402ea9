from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import typer

from relkit.core.config import (
    DEFAULT_CONFIG_NAME,
    PipelineConfig,
    StorageCredentials,
    load_config_or_default,
)
from relkit.core.errors import ErrorCode
from relkit.core.result import Err
from relkit.output.console import ConsoleProtocol, RichConsole
from relkit.platform.http import HttpClient, RealHttpClient
from relkit.services.pipeline import PipelineAdapters
from relkit.services.package import PrebuiltBinaryProducer
from relkit.services.release_host import GhReleaseHost, MemoryReleaseHost, ReleaseHost
from relkit.services.storage import MemoryStorage, ObjectStorage, OssutilStorage

# Set by the app callback from --root, --config and --dry-run.
ROOT_ENV = "RELKIT_ROOT"
CONFIG_ENV = "RELKIT_CONFIG"
DRY_RUN_ENV = "RELKIT_DRY_RUN"


@dataclass(frozen=True, slots=True)
class CLIContext:
    root: Path
    config: PipelineConfig
    console: ConsoleProtocol
    dry_run: bool
    credentials: StorageCredentials | None

    @property
    def workdir(self) -> Path:
        return self.root / "target" / "relkit"

    def storage(self) -> ObjectStorage | None:
        """Artifact storage, or None when credentials are unavailable."""
        if self.dry_run:
            return MemoryStorage()
        if self.credentials is None:
            return None
        return OssutilStorage(
            storage=self.config.storage,
            credentials=self.credentials,
            workdir=self.root,
        )

    def release_host(self) -> ReleaseHost:
        if self.dry_run:
            return MemoryReleaseHost(base_url=f"https://github.com/{self.config.repository}")
        return GhReleaseHost(repo=self.config.repository, workdir=self.root)

    def http(self) -> HttpClient:
        assets = self.config.assets
        return RealHttpClient(
            timeout=assets.timeout,
            retries=assets.retries,
            retry_delay=assets.retry_delay,
        )

    def adapters(self) -> PipelineAdapters:
        storage = self.storage()
        if storage is None:
            self.console.warning("storage credentials not available, packages will not be uploaded")
        return PipelineAdapters(
            storage=storage if storage is not None else MemoryStorage(),
            host=self.release_host(),
            http=self.http(),
            producer=PrebuiltBinaryProducer(root=self.root, product=self.config.product),
            latest_storage=storage,
        )


def build_context() -> CLIContext:
    root = Path(os.environ.get(ROOT_ENV) or Path.cwd())
    config_path = Path(os.environ.get(CONFIG_ENV) or root / DEFAULT_CONFIG_NAME)

    config_result = load_config_or_default(config_path)
    if isinstance(config_result, Err):
        error = config_result.error
        typer.echo(f"error: {error.message}", err=True)
        if error.hint:
            typer.echo(f"hint: {error.hint}", err=True)
        raise typer.Exit(code=int(ErrorCode.CONFIG_ERROR))

    return CLIContext(
        root=root,
        config=config_result.value,
        console=RichConsole(),
        dry_run=os.environ.get(DRY_RUN_ENV) == "1",
        credentials=StorageCredentials.from_env(),
    )
