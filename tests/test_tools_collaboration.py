"""issues, releases and webhooks tools."""

from __future__ import annotations

import pytest
from vcs_tools_mcp.tools import issues, releases, webhooks
from vcs_tools_mcp.tools.base import run_tool

from conftest import FakeProvider, make_runtime


async def _run(spec, provider: FakeProvider, **arguments):
    return (await run_tool(spec, make_runtime(provider), {"repo": "demo", "owner": "octo", **arguments})).to_dict()


@pytest.mark.asyncio
async def test_issue_list_defaults_to_open() -> None:
    provider = FakeProvider(responses={"list_issues": [{"number": 1}, {"number": 2}]})

    out = await _run(issues.SPEC, provider, action="list")

    assert out["message"] == "2 issues encontradas"
    assert provider.calls_to("list_issues")[0]["state"] == "open"


@pytest.mark.asyncio
async def test_issue_update_maps_new_fields() -> None:
    provider = FakeProvider(responses={"update_issue": {"number": 4}})

    await _run(issues.SPEC, provider, action="update", issue_number=4, new_title="T", new_state="closed")

    assert provider.calls_to("update_issue")[0]["changes"] == {"title": "T", "state": "closed"}


@pytest.mark.asyncio
async def test_issue_update_without_changes_fails() -> None:
    provider = FakeProvider(responses={"update_issue": {}})

    out = await _run(issues.SPEC, provider, action="update", issue_number=4)

    assert out["success"] is False
    assert out["error"] == "Nenhum campo para atualizar foi fornecido"
    assert provider.calls == []


@pytest.mark.asyncio
async def test_issue_close_and_comment() -> None:
    provider = FakeProvider(responses={"update_issue": {"state": "closed"}, "create_issue_comment": {"id": 77}})

    closed = await _run(issues.SPEC, provider, action="close", issue_number=9)
    commented = await _run(issues.SPEC, provider, action="comment", issue_number=9, comment_body="done")

    assert closed["message"] == "Issue #9 fechada com sucesso"
    assert provider.calls_to("update_issue")[0]["changes"] == {"state": "closed"}
    assert commented["data"] == {"id": 77}
    assert provider.calls_to("create_issue_comment")[0]["body"] == "done"


@pytest.mark.asyncio
async def test_release_get_prefers_id_then_tag_then_latest() -> None:
    provider = FakeProvider(
        responses={
            "get_release": {"id": 1},
            "get_release_by_tag": {"id": 2},
            "get_latest_release": {"id": 3},
        }
    )

    by_id = await _run(releases.SPEC, provider, action="get", release_id=1, tag_name="v1")
    by_tag = await _run(releases.SPEC, provider, action="get", tag_name="v1")
    latest = await _run(releases.SPEC, provider, action="get", latest=True)

    assert [by_id["data"]["id"], by_tag["data"]["id"], latest["data"]["id"]] == [1, 2, 3]
    assert provider.calls_to("get_release_by_tag")[0]["tag"] == "v1"


@pytest.mark.asyncio
async def test_release_create_defaults_target_and_publish_clears_draft() -> None:
    provider = FakeProvider(responses={"create_release": {"id": 5}, "update_release": {"id": 5, "draft": False}})

    await _run(releases.SPEC, provider, action="create", tag_name="v2.0.0", draft=True)
    published = await _run(releases.SPEC, provider, action="publish", release_id=5)

    create = provider.calls_to("create_release")[0]
    assert create["target_commitish"] == "main"
    assert create["draft"] is True
    assert provider.calls_to("update_release")[0]["changes"] == {"draft": False}
    assert published["message"] == "Release 5 publicada com sucesso"


@pytest.mark.asyncio
async def test_release_delete_unsupported_is_hard() -> None:
    out = await _run(releases.SPEC, FakeProvider(), action="delete", release_id=5)

    assert out["success"] is False
    assert out["error"] == "Provider não implementa delete_release"


@pytest.mark.asyncio
async def test_webhook_create_defaults() -> None:
    provider = FakeProvider(responses={"create_webhook": {"id": 12}})

    out = await _run(webhooks.SPEC, provider, action="create", url="https://hooks.example.com/x")

    call = provider.calls_to("create_webhook")[0]
    assert (call["content_type"], call["events"], call["active"]) == ("json", ["push"], True)
    assert out["message"] == "Webhook 12 criado com sucesso"


@pytest.mark.asyncio
async def test_webhook_update_needs_a_change() -> None:
    out = await _run(webhooks.SPEC, FakeProvider(responses={"update_webhook": {}}), action="update", webhook_id=3)
    assert out["success"] is False


@pytest.mark.asyncio
async def test_webhook_test_reports_target_url() -> None:
    provider = FakeProvider(
        responses={
            "get_webhook": {"id": 3, "config": {"url": "https://hooks.example.com/x"}},
            "test_webhook": {"webhook_id": 3, "delivered": True},
        }
    )

    out = await _run(webhooks.SPEC, provider, action="test", webhook_id=3)

    assert out["data"] == {"webhook_id": 3, "delivered": True, "url": "https://hooks.example.com/x"}
    assert provider.call_names() == ["get_webhook", "test_webhook"]
