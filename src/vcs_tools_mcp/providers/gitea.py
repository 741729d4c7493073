"""Gitea REST provider (``/api/v1``)."""

from __future__ import annotations

from typing import Any, ClassVar
from urllib.parse import quote

from ..errors import ProviderError
from .base import CORE_CAPABILITIES, VcsProvider
from .insights import RepositoryAnalyticsMixin

GITEA_API_PREFIX = "/api/v1"


class GiteaProvider(RepositoryAnalyticsMixin, VcsProvider):
    kind: ClassVar[str] = "gitea"
    label: ClassVar[str] = "Gitea API"
    auth_scheme: ClassVar[str] = "token"
    workflow_dir: ClassVar[str] = ".gitea/workflows"
    create_file_method: ClassVar[str] = "POST"
    webhook_type: ClassVar[str | None] = "gitea"

    CAPABILITIES: ClassVar[frozenset[str]] = CORE_CAPABILITIES | frozenset(
        {"mirror_repository", "get_activity_stats", "get_repository_insights"}
    )

    @classmethod
    def api_base_url_for(cls, url: str) -> str:
        base = url.rstrip("/")
        if base.endswith(GITEA_API_PREFIX):
            return base
        return f"{base}{GITEA_API_PREFIX}"

    def _page_params(self, page: int | None, limit: int | None) -> dict[str, object]:
        return {"page": page or 1, "limit": limit or 30}

    def _commit_path(self, owner: str, repo: str, sha: str) -> str:
        return self._repo_path(owner, repo, f"/git/commits/{quote(sha, safe='')}")

    def _issue_list_params(self, state: str, labels: list[str] | None) -> dict[str, object]:
        params = super()._issue_list_params(state, labels)
        params["type"] = "issues"
        return params

    def _create_repository_body(self, **options: Any) -> dict[str, Any]:
        body = super()._create_repository_body(**options)
        # Gitea names the templates differently and supports a few more knobs.
        body.pop("gitignore_template", None)
        body.pop("license_template", None)
        for key in ("gitignores", "license", "readme", "default_branch"):
            if options.get(key):
                body[key] = options[key]
        return body

    def _template_body(self, **options: Any) -> dict[str, Any]:
        body = super()._template_body(**options)
        # Gitea copies nothing unless asked to.
        body.pop("include_all_branches", None)
        body["git_content"] = True
        body["topics"] = True
        body["labels"] = True
        return body

    async def search_repositories(self, *, query: str, page: int | None = None, limit: int | None = None) -> dict[str, Any]:
        params: dict[str, object] = {"q": query}
        params.update(self._page_params(page, limit))
        data = self._expect_dict(await self._get("/repos/search", params), "repository search")
        items = data.get("data") or []
        return {"total_count": len(items), "items": items}

    async def search_issues(
        self,
        *,
        owner: str,
        repo: str,
        query: str,
        state: str | None = None,
        author: str | None = None,
        assignee: str | None = None,
        label: str | None = None,
        page: int | None = None,
        limit: int | None = None,
    ) -> dict[str, Any]:
        params: dict[str, object] = {
            "q": query,
            "type": "issues",
            "state": state or "all",
            "created_by": author,
            "assigned_by": assignee,
            "labels": label,
        }
        params.update(self._page_params(page, limit))
        data = await self._get(self._repo_path(owner, repo, "/issues"), params)
        items = self._expect_list(data, "issue search")
        return {"total_count": len(items), "items": items}

    async def get_workflow_logs(
        self,
        *,
        owner: str,
        repo: str,
        run_id: int | None = None,
        job_id: int | None = None,
    ) -> dict[str, Any]:
        if job_id is None:
            raise ProviderError(message="Gitea only serves logs per job; provide job_id")
        text = await self._client.request_text(path=self._repo_path(owner, repo, f"/actions/jobs/{job_id}/logs"))
        return {"run_id": run_id, "job_id": job_id, "logs": text}

    async def mirror_repository(
        self,
        *,
        clone_addr: str,
        repo_name: str,
        repo_owner: str | None = None,
        description: str | None = None,
        private: bool = False,
        auth_token: str | None = None,
    ) -> dict[str, Any]:
        body: dict[str, Any] = {
            "clone_addr": clone_addr,
            "repo_name": repo_name,
            "mirror": True,
            "private": private,
        }
        if repo_owner:
            body["repo_owner"] = repo_owner
        if description is not None:
            body["description"] = description
        if auth_token:
            body["auth_token"] = auth_token
        return self._expect_dict(await self._send("POST", "/repos/migrate", body), "repository")
