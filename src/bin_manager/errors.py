"""Error types for binary management."""

from typing import Any, Dict, Optional

from bin_manager.types import ErrorKind, ExecResult


class BinManagerError(Exception):
    """Base error class for binary management."""

    def __init__(
        self,
        message: str,
        kind: ErrorKind,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.kind = kind
        self.details = details or {}


class NotConfiguredError(BinManagerError):
    """Binary name was never set."""

    def __init__(self):
        super().__init__(
            "No binary path set. Call set_binary_name(name).",
            kind=ErrorKind.NOT_CONFIGURED,
        )


class NoMatchingBinaryError(BinManagerError):
    """No registered source matches the running platform."""

    def __init__(self, os_name: str, arch: str):
        super().__init__(
            "No binary found matching your system. It's probably not supported.",
            kind=ErrorKind.NO_MATCHING_BINARY,
            details={"os": os_name, "arch": arch}
        )


class DownloadError(BinManagerError):
    """Fetching or extracting a source failed."""

    def __init__(self, message: str, uri: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message,
            kind=ErrorKind.DOWNLOAD,
            details={"uri": uri, **(details or {})}
        )
        self.uri = uri


class ExecutionError(BinManagerError):
    """Binary failed to start or exited non-zero."""

    def __init__(self, message: str, args: list, result: Optional[ExecResult] = None):
        details: Dict[str, Any] = {"args": args}
        if result is not None:
            details["exit_code"] = result.exit_code
        super().__init__(message, kind=ErrorKind.EXECUTION, details=details)
        self.result = result

    @property
    def exit_code(self) -> Optional[int]:
        return self.result.exit_code if self.result is not None else None


class UnsafeRemovalError(BinManagerError):
    """Refused to delete the working directory or a path outside it."""

    def __init__(self, path: str):
        super().__init__(
            f"Refusing to delete {path} outside the current working directory. Pass force=True.",
            kind=ErrorKind.IO,
            details={"path": path}
        )


def error_kind(error: BaseException) -> Optional[ErrorKind]:
    """Classify an error raised by a manager operation."""
    if isinstance(error, BinManagerError):
        return error.kind
    if isinstance(error, OSError):
        return ErrorKind.IO
    return None
