"""Platform detection and source filtering."""
import platform
import re
import sys
from typing import Iterable, List, Optional

from bin_manager.constants import WINDOWS_EXECUTABLE_SUFFIX
from bin_manager.types import PlatformInfo, Source

# Architecture aliases, keyed by lower-cased platform.machine()
ARCH_MAPPINGS = {
    "x86_64": "x64",
    "amd64": "x64",
    "x64": "x64",
    "aarch64": "arm64",
    "arm64": "arm64",
    "i386": "ia32",
    "i686": "ia32",
    "x86": "ia32",
    "ia32": "ia32",
    "armv6l": "arm",
    "armv7l": "arm",
    "arm": "arm",
    "ppc64le": "ppc64",
    "ppc64": "ppc64",
    "s390x": "s390x",
}

# Operating systems known by name; anything else passes through sys.platform
OS_NAMES = {
    "linux",
    "darwin",
    "win32",
    "cygwin",
    "freebsd",
    "openbsd",
    "netbsd",
    "sunos",
    "aix",
}


def normalize_os(name: str) -> str:
    """Map a sys.platform value to its stable identifier."""
    name = name.lower()
    if name.startswith("linux"):
        return "linux"
    stripped = re.sub(r"\d+$", "", name)
    if stripped in OS_NAMES:
        return stripped
    return name


def normalize_arch(machine: str) -> str:
    """Map a platform.machine() value to its canonical architecture."""
    machine = machine.lower()
    return ARCH_MAPPINGS.get(machine, machine)


def get_platform_info() -> PlatformInfo:
    """Get current platform information."""
    return PlatformInfo(
        os_name=normalize_os(sys.platform),
        arch=normalize_arch(platform.machine()),
    )


def filter_sources(
    sources: Iterable[Source],
    platform_info: Optional[PlatformInfo] = None
) -> List[Source]:
    """Keep sources whose os/arch tags are unset or equal to the host's."""
    if platform_info is None:
        platform_info = get_platform_info()
    return [source for source in sources if source.matches(platform_info)]


def is_windows(os_name: Optional[str] = None) -> bool:
    if os_name is None:
        os_name = get_platform_info().os_name
    return os_name == "win32"


def executable_name(name: str, os_name: Optional[str] = None) -> str:
    """Binary file name on the given platform (Windows executables need .exe)."""
    if is_windows(os_name) and not name.lower().endswith(WINDOWS_EXECUTABLE_SUFFIX):
        return f"{name}{WINDOWS_EXECUTABLE_SUFFIX}"
    return name
