from __future__ import annotations

import pytest
from vcs_tools_mcp.config import AppConfig, LimitsConfig, ProviderConfig
from vcs_tools_mcp.errors import ProviderNotFoundError
from vcs_tools_mcp.providers import GiteaProvider, GitHubProvider, ProviderRegistry, build_registry

from conftest import FakeProvider


def _config(*providers: ProviderConfig, default: str | None = None) -> AppConfig:
    return AppConfig(providers=providers, default_provider=default, limits=LimitsConfig())


def test_resolve_explicit_and_default() -> None:
    github = FakeProvider("github")
    gitea = FakeProvider("gitea")
    registry = ProviderRegistry([github, gitea], "gitea")

    assert registry.resolve() is gitea
    assert registry.resolve("github") is github
    assert registry.default_name == "gitea"
    assert registry.names() == ["github", "gitea"]


def test_default_falls_back_to_first_provider() -> None:
    registry = ProviderRegistry([FakeProvider("a"), FakeProvider("b")])
    assert registry.resolve().name == "a"


def test_unknown_provider_is_hard_error() -> None:
    registry = ProviderRegistry([FakeProvider("github")])
    with pytest.raises(ProviderNotFoundError) as exc:
        registry.resolve("gitlab")
    assert exc.value.message == "Provider 'gitlab' não encontrado"


def test_empty_registry() -> None:
    with pytest.raises(ProviderNotFoundError) as exc:
        ProviderRegistry([]).resolve()
    assert exc.value.message == "No providers configured"


def test_build_registry_creates_typed_providers() -> None:
    cfg = _config(
        ProviderConfig(name="gh", type="github", api_url="https://api.github.com", token="t"),
        ProviderConfig(name="forge", type="gitea", api_url="https://git.example.com/", token="t"),
        default="forge",
    )

    registry = build_registry(cfg)

    assert isinstance(registry.resolve("gh"), GitHubProvider)
    forge = registry.resolve()
    assert isinstance(forge, GiteaProvider)
    assert forge.api_base_url_for("https://git.example.com/") == "https://git.example.com/api/v1"
    assert len(registry) == 2


def test_capability_sets_differ_by_provider() -> None:
    cfg = _config(
        ProviderConfig(name="gh", type="github", api_url="https://api.github.com", token="t"),
        ProviderConfig(name="forge", type="gitea", api_url="https://git.example.com", token="t"),
    )
    registry = build_registry(cfg)
    github, gitea = registry.resolve("gh"), registry.resolve("forge")

    assert github.capability("list_workflow_runs") is not None
    assert gitea.capability("list_workflow_runs") is None
    assert gitea.capability("mirror_repository") is not None
    assert github.capability("mirror_repository") is None
    # Methods outside the declared set stay invisible.
    assert github.capability("_get") is None


def test_describe_has_no_tokens() -> None:
    cfg = _config(ProviderConfig(name="gh", type="github", api_url="https://api.github.com", token="secret-tok"))
    described = build_registry(cfg).describe()
    assert described[0]["name"] == "gh"
    assert described[0]["default"] is True
    assert "secret-tok" not in repr(described)
