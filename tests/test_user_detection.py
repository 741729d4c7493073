from __future__ import annotations

import logging

import pytest
from vcs_tools_mcp.errors import ProviderError
from vcs_tools_mcp.tools.actions import ActionsInput
from vcs_tools_mcp.tools.repositories import RepositoriesInput
from vcs_tools_mcp.user_detection import fill_user

from conftest import FakeProvider


@pytest.mark.asyncio
async def test_fills_missing_owner_from_current_user() -> None:
    params = ActionsInput(action="list-runs", repo="demo")

    filled = await fill_user(params, FakeProvider(login="octo"))

    assert filled.owner == "octo"
    assert params.owner is None


@pytest.mark.asyncio
async def test_explicit_owner_is_never_overwritten() -> None:
    provider = FakeProvider(login="octo")
    params = ActionsInput(action="list-runs", repo="demo", owner="someone")

    filled = await fill_user(params, provider)

    assert filled.owner == "someone"
    assert provider.calls == []


@pytest.mark.asyncio
async def test_fills_username_and_owner_together() -> None:
    params = RepositoriesInput(action="list")

    filled = await fill_user(params, FakeProvider(login="octo"))

    assert (filled.owner, filled.username) == ("octo", "octo")


@pytest.mark.asyncio
async def test_failure_is_logged_and_params_unchanged(caplog: pytest.LogCaptureFixture) -> None:
    provider = FakeProvider(responses={"get_current_user": ProviderError(message="bad token")})
    params = ActionsInput(action="list-runs", repo="demo")

    with caplog.at_level(logging.WARNING):
        filled = await fill_user(params, provider)

    assert filled.owner is None
    assert "User auto-detection failed" in caplog.text


@pytest.mark.asyncio
async def test_provider_without_current_user_capability() -> None:
    provider = FakeProvider(login=None, capabilities=[])
    filled = await fill_user(ActionsInput(action="list-runs", repo="demo"), provider)
    assert filled.owner is None
