from __future__ import annotations

import pytest
from vcs_tools_mcp.errors import ProviderError
from vcs_tools_mcp.tools.base import run_tool
from vcs_tools_mcp.tools.code_review import GITEA_UNAVAILABLE, SPEC

from conftest import FakeProvider, make_runtime

SOURCE = "import os\n\nprint('debug')\n# TODO: remove\n"


async def _run(provider: FakeProvider, **arguments):
    return (await run_tool(SPEC, make_runtime(provider), arguments)).to_dict()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "arguments",
    [
        {"action": "analyze", "code": "x = 1"},
        {"action": "review-pr"},
        {"action": "apply-suggestions", "suggestions": "nope"},
    ],
)
async def test_gitea_is_refused_before_validation(arguments) -> None:
    gitea = FakeProvider("gitea", responses={"get_file": {"content": "x"}})

    out = await _run(gitea, **arguments)

    assert out["success"] is False
    assert out["message"] == GITEA_UNAVAILABLE
    assert out["error"].startswith("GITEA:")
    assert gitea.calls == []


@pytest.mark.asyncio
async def test_analyze_inline_code() -> None:
    provider = FakeProvider()

    out = await _run(provider, action="analyze", code=SOURCE, file_path="tool.py")

    assert out["message"] == "Análise de código concluída para tool.py"
    analysis = out["data"]
    assert analysis["language"] == "python"
    assert {issue["type"] for issue in analysis["issues"]} == {"code-quality", "maintainability"}
    assert "get_file" not in provider.call_names()


@pytest.mark.asyncio
async def test_analyze_rules_silence_checks() -> None:
    out = await _run(
        FakeProvider(), action="analyze", code=SOURCE, language="python", rules=["allow-print", "allow-todo"]
    )
    assert out["data"]["issues"] == []


@pytest.mark.asyncio
async def test_review_file_excluded_skips_fetch() -> None:
    provider = FakeProvider(responses={"get_file": {"content": SOURCE}})

    out = await _run(
        provider, action="review-file", owner="octo", repo="demo", path="dist/app.min.js", exclude_patterns=["dist/*"]
    )

    assert out["data"] == {"file": "dist/app.min.js", "skipped": True}
    assert "get_file" not in provider.call_names()


@pytest.mark.asyncio
async def test_review_file_empty_content_fails() -> None:
    provider = FakeProvider(responses={"get_file": {"content": ""}})

    out = await _run(provider, action="review-file", owner="octo", repo="demo", path="empty.py")

    assert out["success"] is False
    assert out["error"] == "Arquivo não possui conteúdo para análise"


@pytest.mark.asyncio
async def test_review_commit() -> None:
    commit = {
        "sha": "abcdef1234",
        "message": "feat(api): add bundle support",
        "files": ["src/a.py", "web/b.ts", "README"],
    }
    provider = FakeProvider(responses={"get_commit": commit})

    out = await _run(provider, action="review-commit", owner="octo", repo="demo", sha="abcdef1234")

    assert out["message"] == "Revisão de commit abcdef1 concluída"
    assert out["data"]["message_analysis"]["follows_conventions"] is True
    assert out["data"]["languages"] == ["python", "typescript"]


@pytest.mark.asyncio
async def test_review_pr_flags_large_undocumented_change() -> None:
    pr = {"number": 8, "title": "stuff", "body": "", "additions": 600, "deletions": 10, "state": "open"}
    provider = FakeProvider(responses={"get_pull_request": pr})

    out = await _run(provider, action="review-pr", owner="octo", repo="demo", pull_number=8)

    assert out["data"]["pr_number"] == 8
    assert len(out["data"]["suggestions"]) == 3
    assert out["data"]["quality_score"] == 60


@pytest.mark.asyncio
async def test_generate_report_counts_conventional_commits() -> None:
    commits = [
        {"sha": "1", "commit": {"message": "fix: handle empty bundle"}},
        {"sha": "2", "commit": {"message": "wip"}},
    ]
    provider = FakeProvider(responses={"list_commits": commits})

    out = await _run(provider, action="generate-report", owner="octo", repo="demo", report_type="detailed")

    summary = out["data"]["summary"]
    assert (summary["commits_analyzed"], summary["conventional_commits"], summary["low_quality_messages"]) == (2, 1, 1)
    assert summary["conventional_ratio"] == 0.5
    assert len(out["data"]["commits"]) == 2
    assert provider.calls_to("list_commits")[0]["limit"] == 30


@pytest.mark.asyncio
async def test_generate_report_without_suggestions() -> None:
    provider = FakeProvider(responses={"list_commits": []})

    out = await _run(provider, action="generate-report", owner="octo", repo="demo", include_suggestions=False)

    assert out["data"]["recommendations"] == []
    assert out["data"]["summary"]["conventional_ratio"] == 0.0


@pytest.mark.asyncio
async def test_apply_suggestions_counts_each_item_once() -> None:
    files = {
        "a.py": {"content": "one\ntwo\n"},
        "b.py": ProviderError(message="Not Found", status_code=404),
        "c.py": {"content": "single"},
    }

    def get_file(**kwargs):
        value = files[kwargs["path"]]
        if isinstance(value, Exception):
            raise value
        return value

    provider = FakeProvider(responses={"get_file": get_file})
    suggestions = [
        {"file_path": "a.py", "line_number": 2, "suggestion": "rename", "severity": "low"},
        {"file_path": "b.py", "line_number": 1, "suggestion": "drop", "severity": "high"},
        {"file_path": "c.py", "line_number": 9, "suggestion": "split", "severity": "medium"},
    ]

    out = await _run(provider, action="apply-suggestions", owner="octo", repo="demo", suggestions=suggestions)

    data = out["data"]
    assert out["message"] == "Aplicadas 1 sugestões, 2 falharam"
    assert data["total"] == len(data["applied"]) + len(data["failed"]) == 3
    assert [f["file"] for f in data["failed"]] == ["b.py", "c.py"]


@pytest.mark.asyncio
async def test_gitea_by_name_is_refused_without_such_provider() -> None:
    github = FakeProvider("github", responses={"get_file": {"content": "x"}})
    runtime = make_runtime(github)

    out = (await run_tool(SPEC, runtime, {"action": "analyze", "code": "x = 1", "provider": "gitea"})).to_dict()

    assert out["success"] is False
    assert out["error"].startswith("GITEA:")
    assert github.calls == []


@pytest.mark.asyncio
async def test_gitea_by_name_is_refused_alongside_other_gitea_kind() -> None:
    github = FakeProvider("github")
    forge = FakeProvider("my-gitea", kind="gitea")
    runtime = make_runtime(github, forge)

    out = (await run_tool(SPEC, runtime, {"action": "analyze", "code": "x = 1", "provider": "gitea"})).to_dict()

    assert out["error"].startswith("GITEA:")
    assert github.calls == forge.calls == []


@pytest.mark.asyncio
@pytest.mark.parametrize("provider_arg", [{"provider": "my-gitea"}, {}])
async def test_gitea_kind_under_another_name_is_refused(provider_arg) -> None:
    forge = FakeProvider("my-gitea", kind="gitea")
    runtime = make_runtime(forge, FakeProvider("github"))

    out = (await run_tool(SPEC, runtime, {"action": "analyze", "code": "x = 1", **provider_arg})).to_dict()

    assert out["error"].startswith("GITEA:")
    assert forge.calls == []


@pytest.mark.asyncio
async def test_unknown_provider_name_is_not_a_gitea_refusal() -> None:
    runtime = make_runtime(FakeProvider("github"))

    out = (await run_tool(SPEC, runtime, {"action": "analyze", "code": "x = 1", "provider": "nope"})).to_dict()

    assert out["success"] is False
    assert out["error"] == "Provider 'nope' não encontrado"
