"""Download and archive extraction."""
import asyncio
import os
import shutil
import tarfile
import tempfile
import zipfile
from pathlib import Path, PurePosixPath
from typing import Dict, List, Optional, Union
from urllib.parse import unquote, urlparse

import aiohttp

from bin_manager.constants import CHUNK_SIZE
from bin_manager.errors import DownloadError
from bin_manager.logging import get_logger

logger = get_logger(__name__)

PathLike = Union[str, os.PathLike]


async def _stream_to_file(
    session: aiohttp.ClientSession,
    url: str,
    dest: Path,
    headers: Optional[Dict[str, str]]
) -> int:
    async with session.get(url, headers=headers) as response:
        response.raise_for_status()
        downloaded = 0
        with open(dest, "wb") as f:
            async for chunk in response.content.iter_chunked(CHUNK_SIZE):
                f.write(chunk)
                downloaded += len(chunk)
    return downloaded


async def download_file(
    url: str,
    dest: Path,
    headers: Optional[Dict[str, str]] = None,
    session: Optional[aiohttp.ClientSession] = None
) -> int:
    """Download a file with streaming. Returns the number of bytes written."""
    logger.debug("download_started", url=url, destination=str(dest))

    if session is None:
        async with aiohttp.ClientSession() as own_session:
            size = await _stream_to_file(own_session, url, dest, headers)
    else:
        size = await _stream_to_file(session, url, dest, headers)

    logger.debug("download_complete", url=url, size=size)
    return size


def strip_components(name: str, strip: int) -> Optional[str]:
    """Drop ``strip`` leading components from an archive member name."""
    parts = [p for p in PurePosixPath(name).parts if p not in ("/", "")]
    parts = parts[strip:]
    if not parts:
        return None
    return "/".join(parts)


def safe_target(dest_dir: Path, relative: str) -> Path:
    """Resolve an archive member inside dest_dir, refusing anything that escapes it."""
    root = dest_dir.resolve()
    target = (root / relative).resolve()
    if target != root and root not in target.parents:
        raise ValueError(f"Archive member {relative} escapes {dest_dir}")
    return dest_dir / relative


def _replace(target: Path) -> None:
    if target.is_symlink() or target.is_file():
        target.unlink()


def extract_tar(archive_path: Path, dest_dir: Path, strip: int = 0) -> List[Path]:
    """Extract every tar member into dest_dir."""
    written: List[Path] = []
    extracted: Dict[str, Path] = {}

    with tarfile.open(archive_path) as archive:
        for member in archive.getmembers():
            name = strip_components(member.name, strip)
            if name is None:
                continue
            target = safe_target(dest_dir, name)

            if member.isdir():
                target.mkdir(parents=True, exist_ok=True)
                continue

            target.parent.mkdir(parents=True, exist_ok=True)

            if member.issym():
                safe_target(dest_dir, str(PurePosixPath(name).parent / member.linkname))
                _replace(target)
                os.symlink(member.linkname, target)
            elif member.islnk():
                linked = strip_components(member.linkname, strip)
                if linked is None or linked not in extracted:
                    raise ValueError(f"Hard link {member.name} points at missing {member.linkname}")
                _replace(target)
                shutil.copy2(extracted[linked], target)
            elif member.isfile():
                source = archive.extractfile(member)
                _replace(target)
                with source, open(target, "wb") as f:
                    shutil.copyfileobj(source, f, CHUNK_SIZE)
                target.chmod(member.mode & 0o777)
            else:
                # devices, fifos
                continue

            extracted[name] = target
            written.append(target)

    return written


def extract_zip(archive_path: Path, dest_dir: Path, strip: int = 0) -> List[Path]:
    """Extract every zip member into dest_dir, keeping Unix permission bits."""
    written: List[Path] = []

    with zipfile.ZipFile(archive_path) as archive:
        for info in archive.infolist():
            name = strip_components(info.filename, strip)
            if name is None:
                continue
            target = safe_target(dest_dir, name)

            if info.is_dir():
                target.mkdir(parents=True, exist_ok=True)
                continue

            target.parent.mkdir(parents=True, exist_ok=True)
            _replace(target)
            with archive.open(info) as source, open(target, "wb") as f:
                shutil.copyfileobj(source, f, CHUNK_SIZE)

            mode = (info.external_attr >> 16) & 0o777
            if mode:
                target.chmod(mode)

            written.append(target)

    return written


def extract_archive(archive_path: Path, dest_dir: Path, strip: int = 0) -> Optional[List[Path]]:
    """Extract a zip or tar archive, detected by content.

    Returns None when the file is not a recognized archive.
    """
    archive_handlers = (
        (zipfile.is_zipfile, extract_zip),
        (tarfile.is_tarfile, extract_tar),
    )

    for is_archive, handler in archive_handlers:
        if is_archive(archive_path):
            return handler(archive_path, dest_dir, strip)
    return None


def file_name_from_uri(uri: str) -> str:
    name = PurePosixPath(unquote(urlparse(uri).path)).name
    if not name:
        raise ValueError(f"Cannot derive a file name from {uri}")
    return name


def _place(
    payload: Path,
    uri: str,
    dest_dir: Path,
    extract: bool,
    strip: int,
    filename: Optional[str]
) -> List[Path]:
    dest_dir.mkdir(parents=True, exist_ok=True)

    if extract:
        manifest = extract_archive(payload, dest_dir, strip)
        if manifest is not None:
            logger.debug(
                "archive_extracted",
                uri=uri,
                destination=str(dest_dir),
                files=len(manifest)
            )
            return manifest

    target = safe_target(dest_dir, filename or file_name_from_uri(uri))
    _replace(target)
    shutil.move(str(payload), str(target))
    return [target]


async def fetch(
    uri: str,
    dest_dir: PathLike,
    *,
    extract: bool = True,
    strip: int = 0,
    filename: Optional[str] = None,
    headers: Optional[Dict[str, str]] = None,
    session: Optional[aiohttp.ClientSession] = None
) -> List[Path]:
    """Download ``uri`` into ``dest_dir``, extracting it when it is an archive.

    Args:
        uri: Remote location of the artifact
        dest_dir: Directory receiving the file or the archive contents
        extract: Unpack tar/zip payloads instead of saving them as-is
        strip: Leading path components removed from archive members
        filename: Name for a non-extracted payload (defaults to the URL basename)
        headers: Extra request headers
        session: Shared client session; one is created per call otherwise

    Returns:
        Paths of the files written, in archive order

    Raises:
        DownloadError: If the transfer, extraction or write fails
    """
    dest = Path(dest_dir)

    try:
        with tempfile.TemporaryDirectory() as tmpdir:
            payload = Path(tmpdir) / "payload"
            await download_file(uri, payload, headers=headers, session=session)
            manifest = await asyncio.to_thread(
                _place, payload, uri, dest, extract, strip, filename
            )
    except Exception as e:
        raise DownloadError(
            f"Failed to download {uri}: {e}",
            uri,
            details={"status": getattr(e, "status", None), "error": str(e)}
        ) from e

    logger.info("source_fetched", uri=uri, destination=str(dest), files=len(manifest))
    return manifest
