from __future__ import annotations

import pytest
from vcs_tools_mcp.git_runner import GitResult
from vcs_tools_mcp.tools.base import run_tool
from vcs_tools_mcp.tools.git_bundle import SPEC, parse_heads

from conftest import FakeGit, make_runtime

BASE = {"repo": "demo", "provider": "github", "projectPath": "/work/demo"}


async def _run(git: FakeGit, **arguments):
    # No providers registered: the bundle tool never resolves one.
    return (await run_tool(SPEC, make_runtime(git=git), {**BASE, **arguments})).to_dict()


def test_parse_heads() -> None:
    output = "1111 refs/heads/main\n2222 refs/tags/v1\n\n3333\n"
    assert parse_heads(output) == [
        {"commit": "1111", "ref": "refs/heads/main"},
        {"commit": "2222", "ref": "refs/tags/v1"},
        {"commit": "3333", "ref": "HEAD"},
    ]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("extra", "revisions"),
    [
        ({}, ["HEAD"]),
        ({"branch_name": "main"}, ["main"]),
        ({"commit_range": "v1..v2", "branch_name": "main"}, ["v1..v2"]),
        ({"all_tags": True, "all_remotes": True}, ["--tags", "--remotes"]),
        ({"all_branches": True, "all_tags": True}, ["--all"]),
    ],
)
async def test_create_revisions(extra, revisions) -> None:
    git = FakeGit()

    out = await _run(git, action="create", bundle_file="out.bundle", **extra)

    assert out["success"] is True
    assert out["message"] == "Bundle criado com sucesso: out.bundle"
    assert git.calls == [{"args": ["bundle", "create", "out.bundle", *revisions], "cwd": "/work/demo"}]


@pytest.mark.asyncio
async def test_verify_prefers_verify_bundle() -> None:
    git = FakeGit([GitResult(exit_code=0, output="", error="The bundle records a complete history.\n")])

    out = await _run(git, action="verify", verify_bundle="a.bundle", bundle_file="b.bundle")

    assert out["data"]["valid"] is True
    assert git.calls[0]["args"] == ["bundle", "verify", "a.bundle"]


@pytest.mark.asyncio
async def test_verify_failure_carries_git_output() -> None:
    git = FakeGit([GitResult(exit_code=1, output="", error="error: bad.bundle does not look like a v2 bundle\n")])

    out = await _run(git, action="verify", bundle_file="bad.bundle")

    assert out["success"] is False
    assert out["message"] == "Erro na operação de bundle"
    assert out["error"] == "Falha ao verificar bundle: error: bad.bundle does not look like a v2 bundle"


@pytest.mark.asyncio
async def test_list_heads() -> None:
    git = FakeGit([GitResult(exit_code=0, output="1111 refs/heads/main\n2222 refs/heads/dev\n", error="")])

    out = await _run(git, action="list-heads", list_bundle="x.bundle")

    assert out["message"] == "2 heads encontrados em x.bundle"
    assert out["data"]["total"] == 2


@pytest.mark.asyncio
async def test_unbundle_runs_in_target_path() -> None:
    git = FakeGit()

    await _run(git, action="unbundle", unbundle_file="x.bundle", unbundle_path="/restore")

    assert git.calls == [{"args": ["bundle", "unbundle", "x.bundle"], "cwd": "/restore"}]


@pytest.mark.asyncio
async def test_missing_bundle_file_runs_nothing() -> None:
    git = FakeGit()

    out = await _run(git, action="create")

    assert out["success"] is False
    assert git.calls == []


@pytest.mark.asyncio
async def test_option_like_arguments_are_rejected() -> None:
    git = FakeGit()

    out = await _run(git, action="create", bundle_file="out.bundle", branch_name="--upload-pack=evil")

    assert out["success"] is False
    assert git.calls == []
