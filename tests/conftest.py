import pytest
import pytest_asyncio

from bin_manager.platforms import executable_name, get_platform_info

from .archives import TOOL_SCRIPT, FileServer, make_tar_gz


@pytest_asyncio.fixture
async def file_server():
    """Start a throwaway HTTP server for download tests"""
    server = FileServer()
    await server.start()
    try:
        yield server
    finally:
        await server.close()


@pytest.fixture
def current_os() -> str:
    return get_platform_info().os_name


@pytest.fixture
def tool_name() -> str:
    return executable_name("tool")


@pytest.fixture
def tool_archive(tool_name) -> bytes:
    """tar.gz holding a single executable that prints its version"""
    return make_tar_gz({tool_name: (TOOL_SCRIPT, 0o755)})
