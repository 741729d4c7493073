"""Async runner for local ``git`` commands."""

from __future__ import annotations

import asyncio
import logging
import shutil
from dataclasses import dataclass

from .errors import GitCommandError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class GitResult:
    exit_code: int
    output: str
    error: str

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


class GitRunner:
    """Runs ``git <args>`` in a working directory with a timeout.

    A nonzero exit code is returned, not raised; callers decide. Failing to
    start git at all, or a timeout, raises ``GitCommandError``.
    """

    def __init__(self, *, timeout_s: float, executable: str = "git") -> None:
        self._timeout_s = timeout_s
        self._executable = executable

    @property
    def timeout_s(self) -> float:
        return self._timeout_s

    def available(self) -> bool:
        return shutil.which(self._executable) is not None

    async def run(self, args: list[str], *, cwd: str | None = None) -> GitResult:
        logger.debug("git %s (cwd=%s)", " ".join(args), cwd)
        try:
            process = await asyncio.create_subprocess_exec(
                self._executable,
                *args,
                cwd=cwd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except (FileNotFoundError, NotADirectoryError, PermissionError) as exc:
            raise GitCommandError(message=f"Não foi possível executar git: {exc}") from exc

        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=self._timeout_s)
        except asyncio.TimeoutError as exc:
            process.kill()
            await process.wait()
            command = args[0] if args else ""
            raise GitCommandError(message=f"git {command} excedeu o tempo limite de {self._timeout_s:g}s") from exc

        return GitResult(
            exit_code=process.returncode if process.returncode is not None else -1,
            output=stdout.decode("utf-8", errors="replace"),
            error=stderr.decode("utf-8", errors="replace"),
        )
