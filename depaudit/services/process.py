"""Subprocess helper for package-manager and depcheck invocations."""

from __future__ import annotations

import asyncio
import shutil
from pathlib import Path

from depaudit.exceptions import ServiceError
from depaudit.services.models import ProcessResult


async def run_command(cmd: list[str], cwd: Path, timeout: float = 30.0) -> ProcessResult:
    """Run *cmd* in *cwd* without a shell and capture its output.

    A non-zero exit is returned, not raised: ``npm audit`` and ``depcheck``
    both exit non-zero when they have findings.  Raises ``ServiceError``
    when the executable is missing or the timeout expires.
    """
    executable = shutil.which(cmd[0]) or cmd[0]
    try:
        proc = await asyncio.create_subprocess_exec(
            executable,
            *cmd[1:],
            cwd=str(cwd),
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except FileNotFoundError as exc:
        raise ServiceError(f"Command not found: {cmd[0]}") from exc

    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    except asyncio.TimeoutError as exc:
        proc.kill()
        await proc.wait()
        raise ServiceError(f"{' '.join(cmd)} timed out after {timeout:.0f}s") from exc

    return ProcessResult(
        returncode=proc.returncode if proc.returncode is not None else -1,
        stdout=stdout.decode(errors="replace").strip(),
        stderr=stderr.decode(errors="replace").strip(),
    )
