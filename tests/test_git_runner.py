from __future__ import annotations

import asyncio

import pytest
from vcs_tools_mcp import git_runner
from vcs_tools_mcp.errors import GitCommandError
from vcs_tools_mcp.git_runner import GitRunner


class FakeProcess:
    def __init__(self, returncode: int = 0, stdout: bytes = b"", stderr: bytes = b"", hang: bool = False) -> None:
        self.returncode = returncode
        self._stdout = stdout
        self._stderr = stderr
        self._hang = hang
        self.killed = False

    async def communicate(self):
        if self._hang:
            await asyncio.sleep(10)
        return self._stdout, self._stderr

    def kill(self) -> None:
        self.killed = True

    async def wait(self) -> int:
        return self.returncode


def _patch_exec(monkeypatch: pytest.MonkeyPatch, result):
    seen: dict = {}

    async def fake_exec(*cmd, cwd=None, stdout=None, stderr=None):
        seen["cmd"] = cmd
        seen["cwd"] = cwd
        if isinstance(result, Exception):
            raise result
        return result

    monkeypatch.setattr(git_runner.asyncio, "create_subprocess_exec", fake_exec)
    return seen


@pytest.mark.asyncio
async def test_run_returns_decoded_output(monkeypatch: pytest.MonkeyPatch) -> None:
    seen = _patch_exec(monkeypatch, FakeProcess(stdout=b"abc refs/heads/main\n"))

    result = await GitRunner(timeout_s=5).run(["bundle", "list-heads", "x.bundle"], cwd="/repo")

    assert result.ok
    assert result.output == "abc refs/heads/main\n"
    assert seen == {"cmd": ("git", "bundle", "list-heads", "x.bundle"), "cwd": "/repo"}


@pytest.mark.asyncio
async def test_nonzero_exit_is_returned(monkeypatch: pytest.MonkeyPatch) -> None:
    _patch_exec(monkeypatch, FakeProcess(returncode=128, stderr=b"fatal: not a git repository\n"))

    result = await GitRunner(timeout_s=5).run(["status"])

    assert not result.ok
    assert result.exit_code == 128
    assert result.error == "fatal: not a git repository\n"


@pytest.mark.asyncio
async def test_missing_executable_raises(monkeypatch: pytest.MonkeyPatch) -> None:
    _patch_exec(monkeypatch, FileNotFoundError("git"))

    with pytest.raises(GitCommandError, match="Não foi possível executar git"):
        await GitRunner(timeout_s=5).run(["status"])


@pytest.mark.asyncio
async def test_timeout_kills_process(monkeypatch: pytest.MonkeyPatch) -> None:
    process = FakeProcess(hang=True)
    _patch_exec(monkeypatch, process)

    with pytest.raises(GitCommandError, match="excedeu o tempo limite"):
        await GitRunner(timeout_s=0.01).run(["clone", "https://example.com/x.git"])
    assert process.killed is True
