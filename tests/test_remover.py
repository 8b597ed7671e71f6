"""Tests for recursive deletion."""

import asyncio
from unittest.mock import patch

import pytest

from bin_manager.errors import ErrorKind, UnsafeRemovalError
from bin_manager.remover import remove


@pytest.fixture
def install_dir(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    target = tmp_path / "vendor" / "tool"
    (target / "bin").mkdir(parents=True)
    (target / "bin" / "tool").write_text("bin")
    return target


@pytest.mark.asyncio
async def test_remove_directory_tree(install_dir):
    removed = await remove(install_dir)

    assert removed == [install_dir]
    assert not install_dir.exists()
    assert install_dir.parent.exists()


@pytest.mark.asyncio
async def test_remove_single_file(install_dir):
    binary = install_dir / "bin" / "tool"

    assert await remove(binary) == [binary]
    assert not binary.exists()


@pytest.mark.asyncio
async def test_remove_missing_path_is_noop(tmp_path):
    assert await remove(tmp_path / "nothing-here") == []


@pytest.mark.asyncio
async def test_remove_dry_run(install_dir):
    assert await remove(install_dir, dry_run=True) == [install_dir]
    assert install_dir.exists()


@pytest.mark.asyncio
async def test_remove_outside_cwd_requires_force(install_dir, tmp_path, monkeypatch):
    monkeypatch.chdir(install_dir / "bin")

    with pytest.raises(UnsafeRemovalError) as exc_info:
        await remove(install_dir)

    assert exc_info.value.kind is ErrorKind.IO
    assert install_dir.exists()

    assert await remove(install_dir, force=True) == [install_dir]
    assert not install_dir.exists()


@pytest.mark.asyncio
async def test_remove_cwd_requires_force(install_dir, monkeypatch):
    monkeypatch.chdir(install_dir)

    with pytest.raises(UnsafeRemovalError):
        await remove(".")


@pytest.mark.asyncio
async def test_remove_checks_paths_off_the_event_loop(install_dir):
    with patch("bin_manager.remover.asyncio.to_thread", side_effect=asyncio.to_thread) as to_thread:
        assert await remove(install_dir.parent / "nothing-here") == []
        assert await remove(install_dir) == [install_dir]

    assert to_thread.call_count == 2
    assert not install_dir.exists()
