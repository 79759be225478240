"""Unit tests for async subprocess utilities."""

import sys

import pytest

from blueprints.utils.async_subprocess import CommandResult, run_command
from blueprints.utils.errors import CommandTimeoutError


def test_command_result_output():
    assert CommandResult(["x"], 1, stdout="out", stderr=" err \n").output == "err"
    assert CommandResult(["x"], 1, stdout="out\n").output == "out"
    assert CommandResult(["x"], 0).ok


@pytest.mark.asyncio
async def test_run_command():
    """Test stdout, stderr and return code are captured."""
    result = await run_command(
        [sys.executable, "-c", "import sys; print('hello'); print('oops', file=sys.stderr); sys.exit(3)"]
    )

    assert result.returncode == 3
    assert not result.ok
    assert result.stdout.strip() == "hello"
    assert result.stderr.strip() == "oops"


@pytest.mark.asyncio
async def test_run_command_timeout():
    with pytest.raises(CommandTimeoutError, match="timed out after 0.2 seconds"):
        await run_command([sys.executable, "-c", "import time; time.sleep(5)"], timeout=0.2)


@pytest.mark.asyncio
async def test_run_command_missing_executable():
    with pytest.raises(FileNotFoundError):
        await run_command(["definitely-not-a-real-binary-xyz"])
