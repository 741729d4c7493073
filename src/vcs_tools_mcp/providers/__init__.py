"""VCS provider clients and the provider registry."""

from .base import VcsProvider
from .gitea import GiteaProvider
from .github import GitHubProvider
from .registry import ProviderRegistry, build_registry

__all__ = ["GiteaProvider", "GitHubProvider", "ProviderRegistry", "VcsProvider", "build_registry"]
