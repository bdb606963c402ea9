"""Typed configuration loading and access.

relkit works without any config file: every setting has a default matching
the production pipeline. A ``relkit.toml`` at the repository root can
override any of them:

    product = "rustfs"
    repository = "rustfs/rustfs"
    main_branch = "main"

    [storage]
    bucket = "rustfs-artifacts"
    prefix = "artifacts/rustfs"

    [[matrix]]
    os = "ubuntu-latest"
    target = "x86_64-unknown-linux-musl"
    cross = false
    platform = "linux"

Storage credentials are never read from the file; see StorageCredentials.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from relkit.build.matrix import DEFAULT_MATRIX, MatrixCell

from .result import Err, Ok, Result
from .structured import (
    StrDict,
    as_str_dict,
    get_bool,
    get_float,
    get_int,
    get_list,
    get_str,
    get_table,
)

__all__ = [
    "AssetsConfig",
    "ConfigError",
    "DEFAULT_CONFIG_NAME",
    "PipelineConfig",
    "StorageConfig",
    "StorageCredentials",
    "load_config",
    "load_config_or_default",
]

DEFAULT_CONFIG_NAME = "relkit.toml"


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or parsed."""

    message: str
    path: Path | None = None

    @property
    def hint(self) -> str | None:
        return str(self.path) if self.path is not None else None


@dataclass(frozen=True, slots=True)
class StorageConfig:
    """Object storage layout.

    Packages land under ``oss://<bucket>/<prefix>/dev/`` or ``.../release/``.
    """

    bucket: str = "rustfs-artifacts"
    prefix: str = "artifacts/rustfs"
    latest_uri: str = "oss://rustfs-version/latest.json"
    region: str = "cn-beijing"
    endpoint: str = "https://oss-cn-beijing.aliyuncs.com"
    upload_timeout: float = 600.0

    def channel_uri(self, channel: str) -> str:
        prefix = self.prefix.strip("/")
        return f"oss://{self.bucket}/{prefix}/{channel}/"


@dataclass(frozen=True, slots=True)
class AssetsConfig:
    """Static console assets bundled into each binary."""

    console_url: str = "https://dl.rustfs.com/artifacts/console/rustfs-console-latest.zip"
    static_dir: str = "rustfs/static"
    retries: int = 3
    retry_delay: float = 5.0
    timeout: float = 300.0


@dataclass(frozen=True, slots=True)
class PipelineConfig:
    product: str = "rustfs"
    display_name: str = "RustFS"
    repository: str = "rustfs/rustfs"
    main_branch: str = "main"
    build_marker: str = "--build"
    primary_platform: str = "linux"
    max_workers: int = 4
    storage: StorageConfig = field(default_factory=StorageConfig)
    assets: AssetsConfig = field(default_factory=AssetsConfig)
    matrix: tuple[MatrixCell, ...] = DEFAULT_MATRIX

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> PipelineConfig:
        """Create a PipelineConfig from parsed TOML."""
        default = cls()
        storage: StrDict = get_table(data, "storage") or {}
        assets: StrDict = get_table(data, "assets") or {}
        d_storage = default.storage
        d_assets = default.assets

        return cls(
            product=get_str(data, "product") or default.product,
            display_name=get_str(data, "display_name") or default.display_name,
            repository=get_str(data, "repository") or default.repository,
            main_branch=get_str(data, "main_branch") or default.main_branch,
            build_marker=get_str(data, "build_marker") or default.build_marker,
            primary_platform=get_str(data, "primary_platform") or default.primary_platform,
            max_workers=get_int(data, "max_workers") or default.max_workers,
            storage=StorageConfig(
                bucket=get_str(storage, "bucket") or d_storage.bucket,
                prefix=get_str(storage, "prefix") or d_storage.prefix,
                latest_uri=get_str(storage, "latest_uri") or d_storage.latest_uri,
                region=get_str(storage, "region") or d_storage.region,
                endpoint=get_str(storage, "endpoint") or d_storage.endpoint,
                upload_timeout=get_float(storage, "upload_timeout") or d_storage.upload_timeout,
            ),
            assets=AssetsConfig(
                console_url=get_str(assets, "console_url") or d_assets.console_url,
                static_dir=get_str(assets, "static_dir") or d_assets.static_dir,
                retries=get_int(assets, "retries") or d_assets.retries,
                retry_delay=get_float(assets, "retry_delay") or d_assets.retry_delay,
                timeout=get_float(assets, "timeout") or d_assets.timeout,
            ),
            matrix=_parse_matrix(data) or default.matrix,
        )


def _parse_matrix(data: Mapping[str, object]) -> tuple[MatrixCell, ...]:
    raw = get_list(data, "matrix")
    if raw is None:
        return ()

    cells: list[MatrixCell] = []
    for item in raw:
        table = as_str_dict(item)
        if table is None:
            raise ValueError("matrix entries must be tables")
        target = get_str(table, "target")
        platform = get_str(table, "platform")
        if target is None or platform is None:
            raise ValueError("matrix entries need 'target' and 'platform'")
        cells.append(
            MatrixCell(
                os=get_str(table, "os") or "ubuntu-latest",
                target=target,
                cross=get_bool(table, "cross") or False,
                platform=platform,
            )
        )
    return tuple(cells)


@dataclass(frozen=True, slots=True)
class StorageCredentials:
    """Object storage credentials, taken from the CI environment.

    Their absence is not an error: stages needing them are skipped.
    """

    access_key_id: str
    access_key_secret: str
    region: str | None = None
    endpoint: str | None = None

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> StorageCredentials | None:
        env = os.environ if environ is None else environ
        key_id = env.get("OSS_ACCESS_KEY_ID", "").strip()
        secret = env.get("OSS_ACCESS_KEY_SECRET", "").strip()
        if not key_id or not secret:
            return None
        return cls(
            access_key_id=key_id,
            access_key_secret=secret,
            region=env.get("OSS_REGION") or None,
            endpoint=env.get("OSS_ENDPOINT") or None,
        )

    def as_env(self, storage: StorageConfig) -> dict[str, str]:
        """Environment variables for an ossutil subprocess."""
        return {
            "OSS_ACCESS_KEY_ID": self.access_key_id,
            "OSS_ACCESS_KEY_SECRET": self.access_key_secret,
            "OSS_REGION": self.region or storage.region,
            "OSS_ENDPOINT": self.endpoint or storage.endpoint,
        }


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    import tomllib

    try:
        data_obj: object = tomllib.loads(path.read_bytes().decode("utf-8"))
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))

    data = as_str_dict(data_obj)
    if data is None:
        return Err(ConfigError("Config root must be a TOML table", path=path))
    return Ok(data)


def load_config(path: Path) -> Result[PipelineConfig, ConfigError]:
    """Load and validate a relkit.toml file."""
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    try:
        return Ok(PipelineConfig.from_dict(result.value))
    except (KeyError, TypeError, ValueError) as e:
        return Err(ConfigError(f"Invalid config structure: {e}", path=path))


def load_config_or_default(path: Path) -> Result[PipelineConfig, ConfigError]:
    """Load config if the file exists, otherwise return defaults.

    A file that exists but is invalid is still an error.
    """
    if not path.exists():
        return Ok(PipelineConfig())
    return load_config(path)
