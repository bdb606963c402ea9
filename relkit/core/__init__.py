"""Core types shared by every layer."""

from .config import (
    ConfigError,
    PipelineConfig,
    StorageConfig,
    StorageCredentials,
    load_config,
    load_config_or_default,
)
from .errors import ErrorCode
from .result import Err, Ok, Result

__all__ = [
    # config
    "ConfigError",
    "PipelineConfig",
    "StorageConfig",
    "StorageCredentials",
    "load_config",
    "load_config_or_default",
    # errors
    "ErrorCode",
    # result
    "Err",
    "Ok",
    "Result",
]
