"""Platform-aware binary acquisition and invocation."""
import asyncio
import os
from pathlib import Path, PurePath
from typing import Any, Awaitable, Callable, Iterable, List, Mapping, Optional, Union

from bin_manager.config import Settings, load_manager_config, resolve_destination
from bin_manager.constants import DEFAULT_FETCH_OPTIONS
from bin_manager.errors import DownloadError, NoMatchingBinaryError, NotConfiguredError
from bin_manager.fetcher import fetch
from bin_manager.logging import get_logger
from bin_manager.platforms import filter_sources, get_platform_info
from bin_manager.process import execute
from bin_manager.remover import remove
from bin_manager.types import ExecResult, Source

logger = get_logger(__name__)

Fetcher = Callable[..., Awaitable[List[Path]]]
Remover = Callable[..., Awaitable[List[Path]]]
Executor = Callable[..., Awaitable[ExecResult]]
SourceFilter = Callable[[List[Source]], List[Source]]

Args = Union[None, str, os.PathLike, Iterable[Any]]


def relative_segment(segment: str) -> str:
    """Drop any drive or root so the segment always joins below its parent."""
    parts = PurePath(segment).parts
    if parts and PurePath(segment).anchor:
        parts = parts[1:]
    return str(PurePath(*parts)) if parts else ""


def normalize_args(args: Args) -> List[str]:
    """Accept a single token or a sequence of tokens."""
    if args is None:
        return []
    if isinstance(args, (str, os.PathLike)):
        return [os.fspath(args)]
    return [os.fspath(a) if isinstance(a, os.PathLike) else str(a) for a in args]


class BinManager:
    """Tracks one external binary: where it lives, where to get it, how to run it.

    Configuration calls return the manager so they can be chained::

        manager = (
            BinManager("vendor", "gifsicle")
            .add_source("https://example.com/gifsicle-linux.tar.gz", os="linux")
            .add_source("https://example.com/gifsicle-win.zip", os="win32")
            .set_binary_name(executable_name("gifsicle"))
        )
        result = await manager.invoke(["--version"])

    The network, filesystem and process collaborators can be swapped through
    keyword arguments; they default to this package's implementations.
    """

    def __init__(
        self,
        destination: Union[str, os.PathLike] = ".",
        namespace: str = "",
        *,
        fetcher: Optional[Fetcher] = None,
        remover: Optional[Remover] = None,
        executor: Optional[Executor] = None,
        source_filter: Optional[SourceFilter] = None
    ):
        self._destination = Path(destination or ".")
        self._namespace = namespace or ""
        self._sources: List[Source] = []
        self._binary_name = ""

        self._fetch = fetcher or fetch
        self._remove = remover or remove
        self._execute = executor or execute
        self._filter = source_filter or filter_sources

    @classmethod
    def for_app(
        cls,
        app_name: Optional[str] = None,
        namespace: str = "",
        settings: Optional[Settings] = None,
        **collaborators: Any
    ) -> "BinManager":
        """Manager rooted in the configured destination or the app's user cache.

        Without ``app_name`` the BIN_MANAGER_APP_NAME setting picks the cache.
        """
        settings = settings or Settings.from_env()
        return cls(resolve_destination(settings, app_name), namespace, **collaborators)

    @classmethod
    def from_config(cls, data: Mapping[str, Any], **collaborators: Any) -> "BinManager":
        """Build a configured manager from a plain mapping."""
        config = load_manager_config(data)
        manager = cls(config.destination, config.namespace, **collaborators)
        for source in config.sources:
            manager.add_source(source.uri, source.os, source.arch)
        return manager.set_binary_name(config.binary)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}(install_dir={str(self.install_dir)!r}, "
            f"binary_name={self._binary_name!r}, sources={len(self._sources)})"
        )

    # Configuration

    def add_source(self, uri: str, os: Optional[str] = None, arch: Optional[str] = None) -> "BinManager":
        self._sources.append(Source(uri=uri, os=os, arch=arch))
        return self

    @property
    def sources(self) -> List[Source]:
        return list(self._sources)

    def set_binary_name(self, name: str) -> "BinManager":
        self._binary_name = name or ""
        return self

    use = set_binary_name

    @property
    def binary_name(self) -> str:
        return self._binary_name

    @property
    def destination(self) -> Path:
        return self._destination

    @property
    def namespace(self) -> str:
        return self._namespace

    @property
    def install_dir(self) -> Path:
        return self._destination / relative_segment(self._namespace)

    @property
    def binary_path(self) -> Path:
        """Path of the binary; equals install_dir while no binary name is set."""
        return self.install_dir / relative_segment(self._binary_name)

    def matching_sources(self) -> List[Source]:
        return self._filter(list(self._sources))

    # Acquisition

    async def ensure_ready(self, **options: Any) -> List[List[Path]]:
        """Make sure the binary exists locally, downloading it when it does not.

        Options are passed to the fetcher on top of ``extract=True``.

        Returns:
            Per-source manifests when a download happened, otherwise an empty list

        Raises:
            NotConfiguredError: If no binary name is set
            NoMatchingBinaryError: If no source matches this platform
            DownloadError: If any source fails to download or the binary is
                still missing afterwards
            OSError: If checking for the binary fails for a reason other
                than it being absent
        """
        if not self._binary_name:
            raise NotConfiguredError()

        binary = self.binary_path
        try:
            await asyncio.to_thread(os.stat, binary)
        except FileNotFoundError:
            return await self._fetch_sources(options)

        logger.debug("binary_present", path=str(binary))
        return []

    async def _fetch_sources(self, options: Mapping[str, Any]) -> List[List[Path]]:
        sources = self.matching_sources()
        if not sources:
            info = get_platform_info()
            raise NoMatchingBinaryError(info.os_name, info.arch)

        fetch_options = {**DEFAULT_FETCH_OPTIONS, **options}
        install_dir = self.install_dir

        logger.info(
            "fetching_binary",
            binary=self._binary_name,
            sources=[s.uri for s in sources],
            destination=str(install_dir)
        )

        # first failure propagates, siblings keep running
        manifests = await asyncio.gather(
            *(self._fetch(source.uri, install_dir, **fetch_options) for source in sources)
        )

        binary = self.binary_path
        if not await asyncio.to_thread(binary.exists):
            raise DownloadError(
                f"{self._binary_name} not found in {install_dir} after download",
                ", ".join(s.uri for s in sources),
                details={"binary_path": str(binary)}
            )

        logger.info("binary_ready", path=str(binary))
        return list(manifests)

    async def remove_installed(self, **options: Any) -> List[Path]:
        """Delete install_dir; options go to the remover (e.g. ``force=True``)."""
        removed = await self._remove(self.install_dir, **options)
        logger.info("removed_install_dir", path=str(self.install_dir), removed=[str(p) for p in removed])
        return removed

    # Invocation

    async def invoke(
        self,
        args: Args = None,
        *,
        fetch_options: Optional[Mapping[str, Any]] = None,
        **options: Any
    ) -> ExecResult:
        """Ensure the binary is present, then run it.

        ``options`` (cwd, env, input, ...) go to the executor unchanged.

        Raises:
            ExecutionError: If the binary cannot start or exits non-zero
        """
        argv = normalize_args(args)
        await self.ensure_ready(**(fetch_options or {}))

        logger.debug("spawning_binary", path=str(self.binary_path), args=argv)
        return await self._execute(self.binary_path, argv, **options)
