"""Provider base class: capability probing plus the REST operations that GitHub
and Gitea expose through the same endpoints.

Subclasses set ``kind``, declare the operations they support in
``CAPABILITIES`` and override the few endpoints whose shape differs. Tools never
call an operation directly; they ask ``capability(name)`` first, so an operation
missing from ``CAPABILITIES`` is invisible even when a method exists.

All operations take keyword arguments only.
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import logging
import re
from collections.abc import Callable
from pathlib import Path
from typing import Any, ClassVar
from urllib.parse import quote

import httpx

from ..config import LimitsConfig, ProviderConfig
from ..errors import ProviderError
from ..rest_client import RestClient

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 30

# Operations shared by every provider.
CORE_CAPABILITIES: frozenset[str] = frozenset(
    {
        "get_current_user",
        "get_user",
        # repositories
        "list_repositories",
        "get_repository",
        "create_repository",
        "update_repository",
        "delete_repository",
        "fork_repository",
        "search_repositories",
        "archive_repository",
        "transfer_repository",
        "create_from_template",
        # contents and history
        "get_file",
        "create_file",
        "update_file",
        "delete_file",
        "list_files",
        "get_tree",
        "get_commit",
        "list_commits",
        "get_pull_request",
        "list_pull_requests",
        # issues
        "list_issues",
        "get_issue",
        "create_issue",
        "update_issue",
        "create_issue_comment",
        "search_issues",
        # releases
        "list_releases",
        "get_release",
        "get_release_by_tag",
        "get_latest_release",
        "create_release",
        "update_release",
        "delete_release",
        # webhooks
        "list_webhooks",
        "get_webhook",
        "create_webhook",
        "update_webhook",
        "delete_webhook",
        "test_webhook",
        # workflows and artifacts
        "list_workflows",
        "create_workflow",
        "trigger_workflow",
        "enable_workflow",
        "disable_workflow",
        "get_workflow_logs",
        "list_artifacts",
        "download_artifact",
        "list_secrets",
    }
)


def _slugify(name: str) -> str:
    slug = re.sub(r"\s+", "-", name.strip().lower())
    return re.sub(r"[^a-z0-9._-]", "", slug) or "workflow"


def _encode_content(content: str) -> str:
    return base64.b64encode(content.encode("utf-8")).decode("ascii")


def decode_file_payload(payload: dict[str, Any]) -> dict[str, Any]:
    """Normalize a contents-API file object, decoding base64 content to text."""
    raw = payload.get("content")
    content: str | None = None
    encoding = "utf-8"
    if isinstance(raw, str) and payload.get("encoding") == "base64":
        try:
            decoded = base64.b64decode(raw, validate=False)
        except (binascii.Error, ValueError):
            decoded = b""
        try:
            content = decoded.decode("utf-8")
        except UnicodeDecodeError:
            content = base64.b64encode(decoded).decode("ascii")
            encoding = "base64"
    elif isinstance(raw, str):
        content = raw

    return {
        "name": payload.get("name"),
        "path": payload.get("path"),
        "sha": payload.get("sha"),
        "size": payload.get("size"),
        "type": payload.get("type", "file"),
        "encoding": encoding,
        "content": content,
        "html_url": payload.get("html_url"),
        "download_url": payload.get("download_url"),
    }


def _entry_summary(entry: dict[str, Any]) -> dict[str, Any]:
    return {
        "name": entry.get("name"),
        "path": entry.get("path"),
        "type": entry.get("type"),
        "size": entry.get("size"),
        "sha": entry.get("sha"),
    }


class VcsProvider:
    """Base class for VCS providers."""

    kind: ClassVar[str] = ""
    label: ClassVar[str] = "VCS"
    auth_scheme: ClassVar[str] = "Bearer"
    default_headers: ClassVar[dict[str, str]] = {}
    workflow_dir: ClassVar[str] = ".github/workflows"
    create_file_method: ClassVar[str] = "PUT"
    webhook_type: ClassVar[str | None] = None

    CAPABILITIES: ClassVar[frozenset[str]] = CORE_CAPABILITIES

    def __init__(
        self,
        config: ProviderConfig,
        *,
        limits: LimitsConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.name = config.name
        self.config = config
        self._client = RestClient(
            token=config.token,
            limits=limits,
            api_base_url=self.api_base_url_for(config.api_url),
            auth_scheme=self.auth_scheme,
            default_headers=self.default_headers,
            label=self.label,
            transport=transport,
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"

    @classmethod
    def api_base_url_for(cls, url: str) -> str:
        return url.rstrip("/")

    # -- capability probing -------------------------------------------------

    def supports(self, name: str) -> bool:
        return name in self.CAPABILITIES

    def capability(self, name: str) -> Callable[..., Any] | None:
        """Return the bound operation ``name`` or None when unsupported."""
        if not self.supports(name):
            return None
        return getattr(self, name, None)

    def capabilities(self) -> list[str]:
        return sorted(self.CAPABILITIES)

    # -- request helpers ----------------------------------------------------

    def _repo_path(self, owner: str, repo: str, suffix: str = "") -> str:
        return f"/repos/{quote(owner, safe='')}/{quote(repo, safe='')}{suffix}"

    def _contents_path(self, owner: str, repo: str, path: str) -> str:
        clean = path.strip("/")
        return self._repo_path(owner, repo, f"/contents/{quote(clean, safe='/')}" if clean else "/contents")

    def _page_params(self, page: int | None, limit: int | None) -> dict[str, object]:
        return {"page": page or 1, "per_page": limit or DEFAULT_PAGE_SIZE}

    async def _get(self, path: str, params: dict[str, object] | None = None, headers: dict[str, str] | None = None) -> Any:
        return await self._client.request_json(method="GET", path=path, params=params, headers=headers)

    async def _send(self, method: str, path: str, body: object | None = None, params: dict[str, object] | None = None) -> Any:
        return await self._client.request_json(method=method, path=path, json_body=body, params=params)

    @staticmethod
    def _expect_dict(data: Any, what: str) -> dict[str, Any]:
        if not isinstance(data, dict):
            raise ProviderError(message=f"Unexpected {what} response")
        return data

    @staticmethod
    def _expect_list(data: Any, what: str) -> list[Any]:
        if not isinstance(data, list):
            raise ProviderError(message=f"Unexpected {what} response")
        return data

    # -- users --------------------------------------------------------------

    async def get_current_user(self) -> dict[str, Any]:
        return self._expect_dict(await self._get("/user"), "user")

    async def get_user(self, *, username: str) -> dict[str, Any]:
        return self._expect_dict(await self._get(f"/users/{quote(username, safe='')}"), "user")

    # -- repositories -------------------------------------------------------

    async def list_repositories(self, *, username: str | None = None, page: int | None = None, limit: int | None = None) -> list[Any]:
        path = f"/users/{quote(username, safe='')}/repos" if username else "/user/repos"
        return self._expect_list(await self._get(path, self._page_params(page, limit)), "repository list")

    async def get_repository(self, *, owner: str, repo: str) -> dict[str, Any]:
        return self._expect_dict(await self._get(self._repo_path(owner, repo)), "repository")

    def _create_repository_body(
        self,
        *,
        name: str,
        description: str | None,
        private: bool,
        auto_init: bool,
        gitignores: str | None,
        license: str | None,  # pylint: disable=redefined-builtin
        readme: str | None,
        default_branch: str | None,
    ) -> dict[str, Any]:
        body: dict[str, Any] = {"name": name, "private": private, "auto_init": auto_init}
        if description is not None:
            body["description"] = description
        if gitignores:
            body["gitignore_template"] = gitignores
        if license:
            body["license_template"] = license
        return body

    async def create_repository(
        self,
        *,
        name: str,
        description: str | None = None,
        private: bool = False,
        auto_init: bool = False,
        gitignores: str | None = None,
        license: str | None = None,  # pylint: disable=redefined-builtin
        readme: str | None = None,
        default_branch: str | None = None,
        organization: str | None = None,
    ) -> dict[str, Any]:
        body = self._create_repository_body(
            name=name,
            description=description,
            private=private,
            auto_init=auto_init,
            gitignores=gitignores,
            license=license,
            readme=readme,
            default_branch=default_branch,
        )
        path = f"/orgs/{quote(organization, safe='')}/repos" if organization else "/user/repos"
        return self._expect_dict(await self._send("POST", path, body), "repository")

    async def update_repository(self, *, owner: str, repo: str, changes: dict[str, Any]) -> dict[str, Any]:
        return self._expect_dict(await self._send("PATCH", self._repo_path(owner, repo), changes), "repository")

    async def delete_repository(self, *, owner: str, repo: str) -> dict[str, Any]:
        await self._send("DELETE", self._repo_path(owner, repo))
        return {"deleted": True, "repository": f"{owner}/{repo}"}

    async def fork_repository(self, *, owner: str, repo: str, organization: str | None = None) -> dict[str, Any]:
        body = {"organization": organization} if organization else {}
        return self._expect_dict(await self._send("POST", self._repo_path(owner, repo, "/forks"), body), "fork")

    async def search_repositories(self, *, query: str, page: int | None = None, limit: int | None = None) -> dict[str, Any]:
        params: dict[str, object] = {"q": query}
        params.update(self._page_params(page, limit))
        data = self._expect_dict(await self._get("/search/repositories", params), "repository search")
        items = data.get("items") or []
        return {"total_count": data.get("total_count", len(items)), "items": items}

    async def archive_repository(self, *, owner: str, repo: str, archived: bool = True) -> dict[str, Any]:
        return await self.update_repository(owner=owner, repo=repo, changes={"archived": archived})

    async def transfer_repository(self, *, owner: str, repo: str, new_owner: str) -> dict[str, Any]:
        body = {"new_owner": new_owner}
        return self._expect_dict(await self._send("POST", self._repo_path(owner, repo, "/transfer"), body), "transfer")

    def _template_body(
        self,
        *,
        owner: str | None,
        name: str,
        description: str | None,
        private: bool,
        include_all_branches: bool,
    ) -> dict[str, Any]:
        body: dict[str, Any] = {"name": name, "private": private, "include_all_branches": include_all_branches}
        if owner:
            body["owner"] = owner
        if description is not None:
            body["description"] = description
        return body

    async def create_from_template(
        self,
        *,
        template_owner: str,
        template_repo: str,
        name: str,
        owner: str | None = None,
        description: str | None = None,
        private: bool = False,
        include_all_branches: bool = False,
    ) -> dict[str, Any]:
        body = self._template_body(
            owner=owner,
            name=name,
            description=description,
            private=private,
            include_all_branches=include_all_branches,
        )
        path = self._repo_path(template_owner, template_repo, "/generate")
        return self._expect_dict(await self._send("POST", path, body), "repository")

    # -- contents -----------------------------------------------------------

    async def get_file(self, *, owner: str, repo: str, path: str, ref: str | None = None) -> dict[str, Any]:
        data = await self._get(self._contents_path(owner, repo, path), {"ref": ref})
        if isinstance(data, list):
            raise ProviderError(message=f"'{path}' is a directory")
        return decode_file_payload(self._expect_dict(data, "file"))

    async def create_file(
        self,
        *,
        owner: str,
        repo: str,
        path: str,
        content: str,
        message: str,
        branch: str | None = None,
    ) -> dict[str, Any]:
        body: dict[str, Any] = {"message": message, "content": _encode_content(content)}
        if branch:
            body["branch"] = branch
        data = await self._send(self.create_file_method, self._contents_path(owner, repo, path), body)
        return self._expect_dict(data, "file")

    async def update_file(
        self,
        *,
        owner: str,
        repo: str,
        path: str,
        content: str,
        message: str,
        sha: str,
        branch: str | None = None,
    ) -> dict[str, Any]:
        body: dict[str, Any] = {"message": message, "content": _encode_content(content), "sha": sha}
        if branch:
            body["branch"] = branch
        return self._expect_dict(await self._send("PUT", self._contents_path(owner, repo, path), body), "file")

    async def delete_file(
        self,
        *,
        owner: str,
        repo: str,
        path: str,
        message: str,
        sha: str,
        branch: str | None = None,
    ) -> dict[str, Any]:
        body: dict[str, Any] = {"message": message, "sha": sha}
        if branch:
            body["branch"] = branch
        data = await self._send("DELETE", self._contents_path(owner, repo, path), body)
        return data if isinstance(data, dict) else {}

    async def list_files(self, *, owner: str, repo: str, path: str = "", ref: str | None = None) -> list[dict[str, Any]]:
        data = await self._get(self._contents_path(owner, repo, path), {"ref": ref})
        entries = data if isinstance(data, list) else [self._expect_dict(data, "directory")]
        return [_entry_summary(e) for e in entries if isinstance(e, dict)]

    async def get_tree(self, *, owner: str, repo: str, ref: str) -> dict[str, Any]:
        path = self._repo_path(owner, repo, f"/git/trees/{quote(ref, safe='')}")
        data = self._expect_dict(await self._get(path, {"recursive": "true"}), "tree")
        return {"sha": data.get("sha"), "tree": data.get("tree") or [], "truncated": bool(data.get("truncated"))}

    # -- history ------------------------------------------------------------

    def _commit_path(self, owner: str, repo: str, sha: str) -> str:
        return self._repo_path(owner, repo, f"/commits/{quote(sha, safe='')}")

    async def get_commit(self, *, owner: str, repo: str, sha: str) -> dict[str, Any]:
        data = self._expect_dict(await self._get(self._commit_path(owner, repo, sha)), "commit")
        commit = data.get("commit") or {}
        return {
            "sha": data.get("sha", sha),
            "message": commit.get("message", ""),
            "author": commit.get("author"),
            "committer": commit.get("committer"),
            "html_url": data.get("html_url"),
            "stats": data.get("stats"),
            "files": [f.get("filename") for f in data.get("files") or [] if isinstance(f, dict)],
        }

    async def list_commits(
        self,
        *,
        owner: str,
        repo: str,
        sha: str | None = None,
        author: str | None = None,
        since: str | None = None,
        until: str | None = None,
        page: int | None = None,
        limit: int | None = None,
    ) -> list[Any]:
        params: dict[str, object] = {"sha": sha, "author": author, "since": since, "until": until}
        params.update(self._page_params(page, limit))
        return self._expect_list(await self._get(self._repo_path(owner, repo, "/commits"), params), "commit list")

    async def get_pull_request(self, *, owner: str, repo: str, number: int) -> dict[str, Any]:
        return self._expect_dict(await self._get(self._repo_path(owner, repo, f"/pulls/{number}")), "pull request")

    async def list_pull_requests(
        self,
        *,
        owner: str,
        repo: str,
        state: str = "all",
        page: int | None = None,
        limit: int | None = None,
    ) -> list[Any]:
        params: dict[str, object] = {"state": state}
        params.update(self._page_params(page, limit))
        return self._expect_list(await self._get(self._repo_path(owner, repo, "/pulls"), params), "pull request list")

    # -- issues -------------------------------------------------------------

    def _issue_list_params(self, state: str, labels: list[str] | None) -> dict[str, object]:
        params: dict[str, object] = {"state": state}
        if labels:
            params["labels"] = ",".join(labels)
        return params

    async def list_issues(
        self,
        *,
        owner: str,
        repo: str,
        state: str = "open",
        labels: list[str] | None = None,
        since: str | None = None,
        page: int | None = None,
        limit: int | None = None,
    ) -> list[Any]:
        params = self._issue_list_params(state, labels)
        params["since"] = since
        params.update(self._page_params(page, limit))
        return self._expect_list(await self._get(self._repo_path(owner, repo, "/issues"), params), "issue list")

    async def get_issue(self, *, owner: str, repo: str, number: int) -> dict[str, Any]:
        return self._expect_dict(await self._get(self._repo_path(owner, repo, f"/issues/{number}")), "issue")

    async def create_issue(
        self,
        *,
        owner: str,
        repo: str,
        title: str,
        body: str | None = None,
        labels: list[str] | None = None,
        assignees: list[str] | None = None,
        milestone: int | None = None,
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {"title": title}
        if body is not None:
            payload["body"] = body
        if labels:
            payload["labels"] = labels
        if assignees:
            payload["assignees"] = assignees
        if milestone is not None:
            payload["milestone"] = milestone
        return self._expect_dict(await self._send("POST", self._repo_path(owner, repo, "/issues"), payload), "issue")

    async def update_issue(self, *, owner: str, repo: str, number: int, changes: dict[str, Any]) -> dict[str, Any]:
        path = self._repo_path(owner, repo, f"/issues/{number}")
        return self._expect_dict(await self._send("PATCH", path, changes), "issue")

    async def create_issue_comment(self, *, owner: str, repo: str, number: int, body: str) -> dict[str, Any]:
        path = self._repo_path(owner, repo, f"/issues/{number}/comments")
        return self._expect_dict(await self._send("POST", path, {"body": body}), "comment")

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
        terms = [query, f"repo:{owner}/{repo}", "is:issue"]
        if state and state != "all":
            terms.append(f"state:{state}")
        if author:
            terms.append(f"author:{author}")
        if assignee:
            terms.append(f"assignee:{assignee}")
        if label:
            terms.append(f'label:"{label}"')
        params: dict[str, object] = {"q": " ".join(terms)}
        params.update(self._page_params(page, limit))
        data = self._expect_dict(await self._get("/search/issues", params), "issue search")
        items = data.get("items") or []
        return {"total_count": data.get("total_count", len(items)), "items": items}

    # -- releases -----------------------------------------------------------

    async def list_releases(self, *, owner: str, repo: str, page: int | None = None, limit: int | None = None) -> list[Any]:
        data = await self._get(self._repo_path(owner, repo, "/releases"), self._page_params(page, limit))
        return self._expect_list(data, "release list")

    async def get_release(self, *, owner: str, repo: str, release_id: int) -> dict[str, Any]:
        return self._expect_dict(await self._get(self._repo_path(owner, repo, f"/releases/{release_id}")), "release")

    async def get_release_by_tag(self, *, owner: str, repo: str, tag: str) -> dict[str, Any]:
        path = self._repo_path(owner, repo, f"/releases/tags/{quote(tag, safe='')}")
        return self._expect_dict(await self._get(path), "release")

    async def get_latest_release(self, *, owner: str, repo: str) -> dict[str, Any]:
        return self._expect_dict(await self._get(self._repo_path(owner, repo, "/releases/latest")), "release")

    async def create_release(
        self,
        *,
        owner: str,
        repo: str,
        tag_name: str,
        name: str | None = None,
        body: str | None = None,
        draft: bool = False,
        prerelease: bool = False,
        target_commitish: str | None = None,
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {"tag_name": tag_name, "draft": draft, "prerelease": prerelease}
        if name is not None:
            payload["name"] = name
        if body is not None:
            payload["body"] = body
        if target_commitish:
            payload["target_commitish"] = target_commitish
        path = self._repo_path(owner, repo, "/releases")
        return self._expect_dict(await self._send("POST", path, payload), "release")

    async def update_release(self, *, owner: str, repo: str, release_id: int, changes: dict[str, Any]) -> dict[str, Any]:
        path = self._repo_path(owner, repo, f"/releases/{release_id}")
        return self._expect_dict(await self._send("PATCH", path, changes), "release")

    async def delete_release(self, *, owner: str, repo: str, release_id: int) -> dict[str, Any]:
        await self._send("DELETE", self._repo_path(owner, repo, f"/releases/{release_id}"))
        return {"deleted": True, "release_id": release_id}

    # -- webhooks -----------------------------------------------------------

    def _webhook_body(
        self,
        *,
        url: str | None,
        content_type: str | None,
        secret: str | None,
        events: list[str] | None,
        active: bool | None,
    ) -> dict[str, Any]:
        config: dict[str, Any] = {}
        if url is not None:
            config["url"] = url
        if content_type is not None:
            config["content_type"] = content_type
        if secret is not None:
            config["secret"] = secret
        body: dict[str, Any] = {}
        if config:
            body["config"] = config
        if events is not None:
            body["events"] = events
        if active is not None:
            body["active"] = active
        return body

    async def list_webhooks(self, *, owner: str, repo: str, page: int | None = None, limit: int | None = None) -> list[Any]:
        data = await self._get(self._repo_path(owner, repo, "/hooks"), self._page_params(page, limit))
        return self._expect_list(data, "webhook list")

    async def get_webhook(self, *, owner: str, repo: str, webhook_id: int) -> dict[str, Any]:
        return self._expect_dict(await self._get(self._repo_path(owner, repo, f"/hooks/{webhook_id}")), "webhook")

    async def create_webhook(
        self,
        *,
        owner: str,
        repo: str,
        url: str,
        content_type: str = "json",
        secret: str | None = None,
        events: list[str] | None = None,
        active: bool = True,
    ) -> dict[str, Any]:
        body = self._webhook_body(
            url=url,
            content_type=content_type,
            secret=secret,
            events=list(events or ["push"]),
            active=active,
        )
        if self.webhook_type:
            body["type"] = self.webhook_type
        return self._expect_dict(await self._send("POST", self._repo_path(owner, repo, "/hooks"), body), "webhook")

    async def update_webhook(
        self,
        *,
        owner: str,
        repo: str,
        webhook_id: int,
        url: str | None = None,
        content_type: str | None = None,
        secret: str | None = None,
        events: list[str] | None = None,
        active: bool | None = None,
    ) -> dict[str, Any]:
        body = self._webhook_body(url=url, content_type=content_type, secret=secret, events=events, active=active)
        path = self._repo_path(owner, repo, f"/hooks/{webhook_id}")
        return self._expect_dict(await self._send("PATCH", path, body), "webhook")

    async def delete_webhook(self, *, owner: str, repo: str, webhook_id: int) -> dict[str, Any]:
        await self._send("DELETE", self._repo_path(owner, repo, f"/hooks/{webhook_id}"))
        return {"deleted": True, "webhook_id": webhook_id}

    async def test_webhook(self, *, owner: str, repo: str, webhook_id: int) -> dict[str, Any]:
        await self._send("POST", self._repo_path(owner, repo, f"/hooks/{webhook_id}/tests"))
        return {"webhook_id": webhook_id, "delivered": True}

    # -- workflows ----------------------------------------------------------

    async def list_workflows(self, *, owner: str, repo: str, page: int | None = None, limit: int | None = None) -> dict[str, Any]:
        data = await self._get(self._repo_path(owner, repo, "/actions/workflows"), self._page_params(page, limit))
        data = self._expect_dict(data, "workflow list")
        workflows = data.get("workflows") or []
        return {"total_count": data.get("total_count", len(workflows)), "workflows": workflows}

    async def create_workflow(
        self,
        *,
        owner: str,
        repo: str,
        name: str,
        workflow_content: str,
        description: str | None = None,
        branch: str | None = None,
    ) -> dict[str, Any]:
        path = f"{self.workflow_dir}/{_slugify(name)}.yml"
        message = f"Add {name} workflow"
        if description:
            message = f"{message}\n\n{description}"
        result = await self.create_file(
            owner=owner,
            repo=repo,
            path=path,
            content=workflow_content,
            message=message,
            branch=branch,
        )
        content = result.get("content") or {}
        commit = result.get("commit") or {}
        return {
            "name": name,
            "path": path,
            "state": "active",
            "html_url": content.get("html_url"),
            "commit_sha": commit.get("sha"),
        }

    def _workflow_path(self, owner: str, repo: str, workflow_id: str, suffix: str = "") -> str:
        return self._repo_path(owner, repo, f"/actions/workflows/{quote(str(workflow_id), safe='')}{suffix}")

    async def trigger_workflow(
        self,
        *,
        owner: str,
        repo: str,
        workflow_id: str,
        ref: str = "main",
        inputs: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        body: dict[str, Any] = {"ref": ref}
        if inputs:
            body["inputs"] = inputs
        await self._send("POST", self._workflow_path(owner, repo, workflow_id, "/dispatches"), body)
        return {"workflow_id": workflow_id, "ref": ref, "inputs": inputs or {}, "dispatched": True}

    async def enable_workflow(self, *, owner: str, repo: str, workflow_id: str) -> dict[str, Any]:
        await self._send("PUT", self._workflow_path(owner, repo, workflow_id, "/enable"))
        return {"workflow_id": workflow_id, "state": "active"}

    async def disable_workflow(self, *, owner: str, repo: str, workflow_id: str) -> dict[str, Any]:
        await self._send("PUT", self._workflow_path(owner, repo, workflow_id, "/disable"))
        return {"workflow_id": workflow_id, "state": "disabled_manually"}

    async def get_workflow_logs(
        self,
        *,
        owner: str,
        repo: str,
        run_id: int | None = None,
        job_id: int | None = None,
    ) -> dict[str, Any]:
        if job_id is not None:
            url = await self._client.request_redirect(path=self._repo_path(owner, repo, f"/actions/jobs/{job_id}/logs"))
        elif run_id is not None:
            url = await self._client.request_redirect(path=self._repo_path(owner, repo, f"/actions/runs/{run_id}/logs"))
        else:
            raise ProviderError(message="run_id or job_id is required to fetch logs")
        return {"run_id": run_id, "job_id": job_id, "logs_url": url}

    # -- artifacts and secrets ----------------------------------------------

    async def list_artifacts(
        self,
        *,
        owner: str,
        repo: str,
        run_id: int | None = None,
        name: str | None = None,
        page: int | None = None,
        limit: int | None = None,
    ) -> dict[str, Any]:
        suffix = f"/actions/runs/{run_id}/artifacts" if run_id is not None else "/actions/artifacts"
        params: dict[str, object] = {"name": name}
        params.update(self._page_params(page, limit))
        data = self._expect_dict(await self._get(self._repo_path(owner, repo, suffix), params), "artifact list")
        artifacts = data.get("artifacts") or []
        return {"total_count": data.get("total_count", len(artifacts)), "artifacts": artifacts}

    async def download_artifact(
        self,
        *,
        owner: str,
        repo: str,
        artifact_id: int,
        download_path: str | None = None,
    ) -> dict[str, Any]:
        url = await self._client.request_redirect(path=self._repo_path(owner, repo, f"/actions/artifacts/{artifact_id}/zip"))
        if not download_path:
            return {"artifact_id": artifact_id, "download_url": url}

        payload = await self._client.fetch_bytes(url)
        target = Path(download_path)
        if target.is_dir():
            target = target / f"artifact-{artifact_id}.zip"
        await asyncio.to_thread(target.write_bytes, payload)
        logger.info("Artifact %s written (%s bytes)", artifact_id, len(payload))
        return {"artifact_id": artifact_id, "download_path": str(target), "size_in_bytes": len(payload)}

    async def list_secrets(self, *, owner: str, repo: str, page: int | None = None, limit: int | None = None) -> dict[str, Any]:
        data = await self._get(self._repo_path(owner, repo, "/actions/secrets"), self._page_params(page, limit))
        if isinstance(data, list):
            return {"total_count": len(data), "secrets": data}
        data = self._expect_dict(data, "secret list")
        secrets = data.get("secrets") or []
        return {"total_count": data.get("total_count", len(secrets)), "secrets": secrets}
