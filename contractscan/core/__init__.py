"""
ContractScan Core Module

Contains configuration, logging, error taxonomy and data models.
"""

from .config import Config, get_config, set_config
from .exceptions import (
    ErrorKind,
    ContractScanError,
    ConfigError,
    InvalidRequestError,
    UnsafePathError,
    SandboxCreationError,
    EngineLaunchError,
    EngineTimeoutError,
)
from .logging import (
    logger,
    setup_logging,
    setup_console_only,
    get_gateway_banner,
)
from .models import FileBundle, CacheEntry, AnalysisResult, validate_bundle

__all__ = [
    # Config
    "Config",
    "get_config",
    "set_config",
    # Errors
    "ErrorKind",
    "ContractScanError",
    "ConfigError",
    "InvalidRequestError",
    "UnsafePathError",
    "SandboxCreationError",
    "EngineLaunchError",
    "EngineTimeoutError",
    # Logging
    "logger",
    "setup_logging",
    "setup_console_only",
    "get_gateway_banner",
    # Models
    "FileBundle",
    "CacheEntry",
    "AnalysisResult",
    "validate_bundle",
]
