"""Core type definitions"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class ErrorKind(Enum):
    """Failure categories surfaced by manager operations."""

    NOT_CONFIGURED = "not_configured"
    NO_MATCHING_BINARY = "no_matching_binary"
    IO = "io"
    DOWNLOAD = "download"
    EXECUTION = "execution"


@dataclass(frozen=True)
class PlatformInfo:
    """Running host as seen by source filtering."""

    os_name: str
    arch: str


@dataclass(frozen=True)
class Source:
    """Remote artifact location, optionally tagged with a platform."""

    uri: str
    os: Optional[str] = None
    arch: Optional[str] = None

    def matches(self, platform_info: PlatformInfo) -> bool:
        """Unset fields act as wildcards."""
        if self.os is not None and self.os != platform_info.os_name:
            return False
        if self.arch is not None and self.arch != platform_info.arch:
            return False
        return True


@dataclass(frozen=True)
class ExecResult:
    """Completed process"""

    args: List[str]
    exit_code: int
    stdout: str = ""
    stderr: str = ""

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0


@dataclass(frozen=True)
class SourceConfig:
    """Source entry as written in a manager configuration mapping."""

    uri: str
    os: Optional[str] = None
    arch: Optional[str] = None


@dataclass(frozen=True)
class ManagerConfig:
    """Declarative manager configuration"""

    destination: str = "."
    namespace: str = ""
    binary: str = ""
    sources: List[SourceConfig] = field(default_factory=list)
