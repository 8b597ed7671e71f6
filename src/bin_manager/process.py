"""Binary process execution."""
import asyncio
import os
from typing import Dict, Optional, Sequence, Union

from bin_manager.errors import ExecutionError
from bin_manager.logging import get_logger
from bin_manager.types import ExecResult

logger = get_logger(__name__)


def _decode(output: Optional[bytes]) -> str:
    if not output:
        return ""
    text = output.decode(errors="replace")
    if text.endswith("\r\n"):
        return text[:-2]
    if text.endswith("\n"):
        return text[:-1]
    return text


async def execute(
    path: Union[str, os.PathLike],
    args: Sequence[str] = (),
    *,
    cwd: Optional[Union[str, os.PathLike]] = None,
    env: Optional[Dict[str, str]] = None,
    extend_env: bool = True,
    input: Optional[Union[str, bytes]] = None,
    reject: bool = True
) -> ExecResult:
    """Run an executable and return (args, exit code, stdout, stderr).

    Raises:
        ExecutionError: If the process cannot be spawned, or exits non-zero
            while ``reject`` is set
    """
    command = [os.fspath(path), *[str(a) for a in args]]

    if extend_env:
        cmd_env = {**os.environ, **(env or {})}
    else:
        cmd_env = dict(env or {})

    if isinstance(input, str):
        input = input.encode()

    logger.debug("process_exec", cmd=command, cwd=str(cwd) if cwd else None)

    try:
        process = await asyncio.create_subprocess_exec(
            *command,
            cwd=cwd,
            env=cmd_env,
            stdin=asyncio.subprocess.PIPE if input is not None else asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        raise ExecutionError(f"Failed to start {command[0]}: {e}", command) from e

    stdout, stderr = await process.communicate(input)

    result = ExecResult(
        args=command,
        exit_code=process.returncode,
        stdout=_decode(stdout),
        stderr=_decode(stderr),
    )

    logger.debug("process_complete", cmd=command, returncode=result.exit_code)

    if reject and result.exit_code != 0:
        message = f"Command failed with exit code {result.exit_code}: {' '.join(command)}"
        if result.stderr:
            message = f"{message}\n{result.stderr}"
        raise ExecutionError(message, command, result)

    return result
