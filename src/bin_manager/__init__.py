"""Platform-aware download, install and invocation of external binaries."""

from bin_manager.manager import BinManager, normalize_args
from bin_manager.types import ErrorKind, ExecResult, ManagerConfig, PlatformInfo, Source
from bin_manager.errors import (
    BinManagerError,
    NotConfiguredError,
    NoMatchingBinaryError,
    DownloadError,
    ExecutionError,
    UnsafeRemovalError,
    error_kind,
)
from bin_manager.platforms import executable_name, filter_sources, get_platform_info
from bin_manager.config import Settings, default_destination
from bin_manager.logging import configure_logging, get_logger

__version__ = "0.1.0"

__all__ = [
    # Manager
    "BinManager",
    "normalize_args",

    # Types
    "Source",
    "PlatformInfo",
    "ExecResult",
    "ErrorKind",
    "ManagerConfig",

    # Platform helpers
    "get_platform_info",
    "filter_sources",
    "executable_name",

    # Configuration
    "Settings",
    "default_destination",
    "configure_logging",
    "get_logger",

    # Error types
    "BinManagerError",
    "NotConfiguredError",
    "NoMatchingBinaryError",
    "DownloadError",
    "ExecutionError",
    "UnsafeRemovalError",
    "error_kind",
]
