"""GitHub REST provider.

GitHub is the only provider exposing workflow runs, deployments, the security
APIs and traffic analytics; everything else comes from ``VcsProvider``.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, ClassVar
from urllib.parse import quote

from ..errors import ProviderError
from .base import CORE_CAPABILITIES, VcsProvider
from .insights import RepositoryAnalyticsMixin, parse_timestamp

GITHUB_API_VERSION = "2022-11-28"

RUN_CAPABILITIES = frozenset(
    {
        "list_workflow_runs",
        "get_workflow_run",
        "get_workflow_status",
        "cancel_workflow_run",
        "rerun_workflow",
        "list_jobs",
    }
)

DEPLOYMENT_CAPABILITIES = frozenset(
    {
        "list_deployments",
        "get_deployment",
        "create_deployment",
        "list_deployment_statuses",
        "update_deployment_status",
        "delete_deployment",
        "rollback_deployment",
        "list_environments",
        "get_environment",
        "create_or_update_environment",
    }
)

SECURITY_CAPABILITIES = frozenset(
    {
        "run_security_scan",
        "list_security_vulnerabilities",
        "list_security_alerts",
        "get_security_alert",
        "manage_security_alerts",
        "get_security_policy",
        "update_security_policy",
        "get_security_posture",
        "analyze_dependencies",
        "list_security_advisories",
    }
)

ANALYTICS_CAPABILITIES = frozenset(
    {
        "get_traffic_stats",
        "analyze_contributors",
        "get_activity_stats",
        "get_performance_metrics",
        "generate_reports",
        "analyze_trends",
        "get_repository_insights",
    }
)

# Alert listing endpoint per scan type.
_SCAN_ENDPOINTS = {
    "code": "/code-scanning/alerts",
    "infrastructure": "/code-scanning/alerts",
    "dependencies": "/dependabot/alerts",
    "secrets": "/secret-scanning/alerts",
}

_SECURITY_POLICY_PATHS = ("SECURITY.md", ".github/SECURITY.md", "docs/SECURITY.md")


def _is_not_found(err: ProviderError) -> bool:
    return err.status_code == 404


def _created_filter(after: str | None, before: str | None) -> str | None:
    if after and before:
        return f"{after}..{before}"
    if after:
        return f">={after}"
    if before:
        return f"<={before}"
    return None


def _run_duration_s(run: dict[str, Any]) -> float | None:
    started = parse_timestamp(run.get("run_started_at") or run.get("created_at"))
    finished = parse_timestamp(run.get("updated_at"))
    if started is None or finished is None:
        return None
    return max(0.0, (finished - started).total_seconds())


def _vulnerability_summary(alert: dict[str, Any]) -> dict[str, Any]:
    advisory = alert.get("security_advisory") or {}
    dependency = alert.get("dependency") or {}
    package = dependency.get("package") or {}
    return {
        "number": alert.get("number"),
        "state": alert.get("state"),
        "severity": advisory.get("severity"),
        "summary": advisory.get("summary"),
        "created_at": alert.get("created_at"),
        "updated_at": alert.get("updated_at"),
        "dismissed_at": alert.get("dismissed_at"),
        "dismissed_reason": alert.get("dismissed_reason"),
        "dependency": {
            "package": package.get("name"),
            "ecosystem": package.get("ecosystem"),
            "manifest_path": dependency.get("manifest_path"),
        },
    }


def _purl_ecosystem(purl: str | None) -> str:
    # pkg:pypi/requests@2.31.0 -> pypi
    if not purl or not purl.startswith("pkg:"):
        return "unknown"
    return purl[4:].split("/", 1)[0] or "unknown"


class GitHubProvider(RepositoryAnalyticsMixin, VcsProvider):
    kind: ClassVar[str] = "github"
    label: ClassVar[str] = "GitHub API"
    auth_scheme: ClassVar[str] = "Bearer"
    default_headers: ClassVar[dict[str, str]] = {
        "Accept": "application/vnd.github+json",
        "X-GitHub-Api-Version": GITHUB_API_VERSION,
    }
    workflow_dir: ClassVar[str] = ".github/workflows"
    create_file_method: ClassVar[str] = "PUT"

    CAPABILITIES: ClassVar[frozenset[str]] = (
        CORE_CAPABILITIES | RUN_CAPABILITIES | DEPLOYMENT_CAPABILITIES | SECURITY_CAPABILITIES | ANALYTICS_CAPABILITIES
    )

    # -- workflow runs ------------------------------------------------------

    async def list_workflow_runs(
        self,
        *,
        owner: str,
        repo: str,
        workflow_id: str | None = None,
        status: str | None = None,
        branch: str | None = None,
        event: str | None = None,
        created_after: str | None = None,
        created_before: str | None = None,
        page: int | None = None,
        limit: int | None = None,
    ) -> dict[str, Any]:
        suffix = "/actions/runs"
        if workflow_id is not None:
            suffix = f"/actions/workflows/{quote(str(workflow_id), safe='')}/runs"
        params: dict[str, object] = {
            "status": status,
            "branch": branch,
            "event": event,
            "created": _created_filter(created_after, created_before),
        }
        params.update(self._page_params(page, limit))
        data = self._expect_dict(await self._get(self._repo_path(owner, repo, suffix), params), "workflow run list")
        runs = data.get("workflow_runs") or []
        return {"total_count": data.get("total_count", len(runs)), "workflow_runs": runs}

    async def get_workflow_run(self, *, owner: str, repo: str, run_id: int) -> dict[str, Any]:
        return self._expect_dict(await self._get(self._repo_path(owner, repo, f"/actions/runs/{run_id}")), "workflow run")

    async def get_workflow_status(
        self,
        *,
        owner: str,
        repo: str,
        workflow_id: str,
        run_id: int | None = None,
        limit: int = 5,
    ) -> dict[str, Any]:
        if run_id is not None:
            run = await self.get_workflow_run(owner=owner, repo=repo, run_id=run_id)
            return {"workflow_id": workflow_id, "run": run}
        runs = (await self.list_workflow_runs(owner=owner, repo=repo, workflow_id=workflow_id, limit=limit))["workflow_runs"]
        return {"workflow_id": workflow_id, "latest_run": runs[0] if runs else None, "runs": runs}

    async def cancel_workflow_run(self, *, owner: str, repo: str, run_id: int) -> dict[str, Any]:
        await self._send("POST", self._repo_path(owner, repo, f"/actions/runs/{run_id}/cancel"))
        return {"run_id": run_id, "cancelled": True}

    async def rerun_workflow(self, *, owner: str, repo: str, run_id: int) -> dict[str, Any]:
        await self._send("POST", self._repo_path(owner, repo, f"/actions/runs/{run_id}/rerun"))
        return {"run_id": run_id, "rerun": True}

    async def list_jobs(
        self,
        *,
        owner: str,
        repo: str,
        run_id: int,
        page: int | None = None,
        limit: int | None = None,
    ) -> dict[str, Any]:
        path = self._repo_path(owner, repo, f"/actions/runs/{run_id}/jobs")
        data = self._expect_dict(await self._get(path, self._page_params(page, limit)), "job list")
        jobs = data.get("jobs") or []
        return {"total_count": data.get("total_count", len(jobs)), "jobs": jobs}

    # -- deployments --------------------------------------------------------

    async def list_deployments(
        self,
        *,
        owner: str,
        repo: str,
        environment: str | None = None,
        ref: str | None = None,
        sha: str | None = None,
        task: str | None = None,
        page: int | None = None,
        limit: int | None = None,
    ) -> list[Any]:
        params: dict[str, object] = {"environment": environment, "ref": ref, "sha": sha, "task": task}
        params.update(self._page_params(page, limit))
        return self._expect_list(await self._get(self._repo_path(owner, repo, "/deployments"), params), "deployment list")

    async def get_deployment(self, *, owner: str, repo: str, deployment_id: int) -> dict[str, Any]:
        path = self._repo_path(owner, repo, f"/deployments/{deployment_id}")
        return self._expect_dict(await self._get(path), "deployment")

    async def create_deployment(
        self,
        *,
        owner: str,
        repo: str,
        ref: str,
        environment: str,
        description: str | None = None,
        task: str | None = None,
        auto_merge: bool = False,
        required_contexts: list[str] | None = None,
        payload: dict[str, Any] | None = None,
        transient_environment: bool | None = None,
        production_environment: bool | None = None,
    ) -> dict[str, Any]:
        body: dict[str, Any] = {
            "ref": ref,
            "environment": environment,
            "auto_merge": auto_merge,
            "required_contexts": list(required_contexts or []),
        }
        if description is not None:
            body["description"] = description
        if task:
            body["task"] = task
        if payload:
            body["payload"] = payload
        if transient_environment is not None:
            body["transient_environment"] = transient_environment
        if production_environment is not None:
            body["production_environment"] = production_environment
        data = await self._send("POST", self._repo_path(owner, repo, "/deployments"), body)
        return self._expect_dict(data, "deployment")

    async def list_deployment_statuses(
        self,
        *,
        owner: str,
        repo: str,
        deployment_id: int,
        page: int | None = None,
        limit: int | None = None,
    ) -> list[Any]:
        path = self._repo_path(owner, repo, f"/deployments/{deployment_id}/statuses")
        return self._expect_list(await self._get(path, self._page_params(page, limit)), "deployment status list")

    async def update_deployment_status(
        self,
        *,
        owner: str,
        repo: str,
        deployment_id: int,
        state: str,
        log_url: str | None = None,
        environment_url: str | None = None,
        description: str | None = None,
    ) -> dict[str, Any]:
        body: dict[str, Any] = {"state": state, "description": description or f"Status updated to {state}"}
        if log_url:
            body["log_url"] = log_url
        if environment_url:
            body["environment_url"] = environment_url
        path = self._repo_path(owner, repo, f"/deployments/{deployment_id}/statuses")
        return self._expect_dict(await self._send("POST", path, body), "deployment status")

    async def delete_deployment(self, *, owner: str, repo: str, deployment_id: int) -> dict[str, Any]:
        # Only inactive deployments can be deleted.
        await self.update_deployment_status(
            owner=owner,
            repo=repo,
            deployment_id=deployment_id,
            state="inactive",
            description="Deployment desativado antes da remoção",
        )
        await self._send("DELETE", self._repo_path(owner, repo, f"/deployments/{deployment_id}"))
        return {"deployment_id": deployment_id, "deleted": True}

    async def rollback_deployment(
        self,
        *,
        owner: str,
        repo: str,
        deployment_id: int,
        description: str | None = None,
    ) -> dict[str, Any]:
        previous = await self.get_deployment(owner=owner, repo=repo, deployment_id=deployment_id)
        ref = previous.get("sha") or previous.get("ref")
        if not ref or not previous.get("environment"):
            raise ProviderError(message=f"Deployment {deployment_id} has no ref or environment to roll back to")
        created = await self.create_deployment(
            owner=owner,
            repo=repo,
            ref=ref,
            environment=previous["environment"],
            description=description or "Rollback automático",
            task="deploy:rollback",
        )
        return {"rolled_back_from": deployment_id, "deployment": created}

    async def list_environments(
        self,
        *,
        owner: str,
        repo: str,
        page: int | None = None,
        limit: int | None = None,
    ) -> dict[str, Any]:
        data = await self._get(self._repo_path(owner, repo, "/environments"), self._page_params(page, limit))
        data = self._expect_dict(data, "environment list")
        environments = data.get("environments") or []
        return {"total_count": data.get("total_count", len(environments)), "environments": environments}

    def _environment_path(self, owner: str, repo: str, environment_name: str) -> str:
        return self._repo_path(owner, repo, f"/environments/{quote(environment_name, safe='')}")

    async def get_environment(self, *, owner: str, repo: str, environment_name: str) -> dict[str, Any]:
        return self._expect_dict(await self._get(self._environment_path(owner, repo, environment_name)), "environment")

    async def create_or_update_environment(
        self,
        *,
        owner: str,
        repo: str,
        environment_name: str,
        wait_timer: int | None = None,
        reviewers: list[str] | None = None,
    ) -> dict[str, Any]:
        body: dict[str, Any] = {}
        if wait_timer is not None:
            body["wait_timer"] = wait_timer
        if reviewers:
            # The API takes numeric user ids.
            entries = []
            for login in reviewers:
                user = await self.get_user(username=login)
                entries.append({"type": "User", "id": user.get("id")})
            body["reviewers"] = entries
        data = await self._send("PUT", self._environment_path(owner, repo, environment_name), body)
        return self._expect_dict(data, "environment")

    # -- security -----------------------------------------------------------

    async def _count_open_alerts(self, owner: str, repo: str, endpoint: str, ref: str | None) -> int | None:
        params: dict[str, object] = {"state": "open", "per_page": 100}
        if ref and endpoint == "/code-scanning/alerts":
            params["ref"] = ref
        try:
            data = await self._get(self._repo_path(owner, repo, endpoint), params)
        except ProviderError as err:
            # 404/403 mean the scanner is not enabled for the repository.
            if err.status_code in (403, 404):
                return None
            raise
        return len(data) if isinstance(data, list) else None

    async def run_security_scan(
        self,
        *,
        owner: str,
        repo: str,
        scan_type: str = "code",
        ref: str | None = None,
    ) -> dict[str, Any]:
        data = await self.get_repository(owner=owner, repo=repo)
        analysis = data.get("security_and_analysis") or {}

        def enabled(key: str) -> bool:
            return (analysis.get(key) or {}).get("status") == "enabled"

        endpoint = _SCAN_ENDPOINTS.get(scan_type, _SCAN_ENDPOINTS["code"])
        open_alerts = await self._count_open_alerts(owner, repo, endpoint, ref)
        return {
            "scan_type": scan_type,
            "ref": ref or data.get("default_branch"),
            "scanner_enabled": open_alerts is not None,
            "open_alerts": open_alerts or 0,
            "security": {
                "advanced_security": enabled("advanced_security"),
                "secret_scanning": enabled("secret_scanning"),
                "dependabot_security_updates": enabled("dependabot_security_updates"),
            },
        }

    async def list_security_vulnerabilities(
        self,
        *,
        owner: str,
        repo: str,
        state: str | None = None,
        severity: str | None = None,
        ecosystem: str | None = None,
        package_name: str | None = None,
        page: int | None = None,
        limit: int | None = None,
    ) -> dict[str, Any]:
        alerts = await self.list_security_alerts(
            owner=owner,
            repo=repo,
            state=state,
            severity=severity,
            ecosystem=ecosystem,
            package_name=package_name,
            page=page,
            limit=limit,
        )
        vulnerabilities = [_vulnerability_summary(a) for a in alerts if isinstance(a, dict)]
        return {"total_count": len(vulnerabilities), "vulnerabilities": vulnerabilities}

    async def list_security_alerts(
        self,
        *,
        owner: str,
        repo: str,
        state: str | None = None,
        severity: str | None = None,
        ecosystem: str | None = None,
        package_name: str | None = None,
        page: int | None = None,
        limit: int | None = None,
    ) -> list[Any]:
        params: dict[str, object] = {
            "state": state,
            "severity": severity,
            "ecosystem": ecosystem,
            "package": package_name,
            "per_page": limit or 30,
        }
        # Dependabot alerts paginate by cursor; callers only ever get the first page.
        path = self._repo_path(owner, repo, "/dependabot/alerts")
        return self._expect_list(await self._get(path, params), "alert list")

    async def get_security_alert(self, *, owner: str, repo: str, alert_number: int) -> dict[str, Any]:
        path = self._repo_path(owner, repo, f"/dependabot/alerts/{alert_number}")
        return self._expect_dict(await self._get(path), "alert")

    async def manage_security_alerts(
        self,
        *,
        owner: str,
        repo: str,
        alert_number: int,
        operation: str,
        dismiss_reason: str | None = None,
        dismiss_comment: str | None = None,
    ) -> dict[str, Any]:
        if operation == "dismiss":
            body: dict[str, Any] = {"state": "dismissed", "dismissed_reason": dismiss_reason or "tolerable_risk"}
            if dismiss_comment:
                body["dismissed_comment"] = dismiss_comment
        elif operation == "reopen":
            body = {"state": "open"}
        else:
            raise ProviderError(message=f"Unknown alert operation '{operation}'")
        path = self._repo_path(owner, repo, f"/dependabot/alerts/{alert_number}")
        data = self._expect_dict(await self._send("PATCH", path, body), "alert")
        return {
            "number": data.get("number", alert_number),
            "state": data.get("state"),
            "dismissed_reason": data.get("dismissed_reason"),
            "dismissed_comment": data.get("dismissed_comment"),
            "dismissed_at": data.get("dismissed_at"),
            "updated_at": data.get("updated_at"),
        }

    def _protection_path(self, owner: str, repo: str, branch: str) -> str:
        return self._repo_path(owner, repo, f"/branches/{quote(branch, safe='')}/protection")

    async def get_security_policy(self, *, owner: str, repo: str, branch: str) -> dict[str, Any]:
        try:
            data = await self._get(self._protection_path(owner, repo, branch))
        except ProviderError as err:
            if _is_not_found(err):
                return {"branch": branch, "protected": False, "protection": None}
            raise
        return {"branch": branch, "protected": True, "protection": self._expect_dict(data, "branch protection")}

    async def update_security_policy(
        self,
        *,
        owner: str,
        repo: str,
        branch: str,
        policy_config: dict[str, Any],
    ) -> dict[str, Any]:
        body: dict[str, Any] = {
            "required_status_checks": None,
            "enforce_admins": False,
            "required_pull_request_reviews": None,
            "restrictions": None,
        }
        body.update(policy_config)
        data = await self._send("PUT", self._protection_path(owner, repo, branch), body)
        return {"branch": branch, "protected": True, "protection": self._expect_dict(data, "branch protection")}

    async def _vulnerability_alerts_enabled(self, owner: str, repo: str) -> bool:
        try:
            await self._get(self._repo_path(owner, repo, "/vulnerability-alerts"))
        except ProviderError as err:
            if _is_not_found(err):
                return False
            raise
        return True

    async def _has_security_policy(self, owner: str, repo: str) -> bool:
        for path in _SECURITY_POLICY_PATHS:
            try:
                await self.get_file(owner=owner, repo=repo, path=path)
            except ProviderError as err:
                if _is_not_found(err):
                    continue
                raise
            return True
        return False

    async def get_security_posture(self, *, owner: str, repo: str) -> dict[str, Any]:
        data = await self.get_repository(owner=owner, repo=repo)
        analysis = data.get("security_and_analysis") or {}
        default_branch = data.get("default_branch") or "main"
        policy = await self.get_security_policy(owner=owner, repo=repo, branch=default_branch)
        return {
            "default_branch": default_branch,
            "branch_protection": policy["protected"],
            "vulnerability_alerts": await self._vulnerability_alerts_enabled(owner, repo),
            "secret_scanning": (analysis.get("secret_scanning") or {}).get("status") == "enabled",
            "license": bool(data.get("license")),
            "security_policy": await self._has_security_policy(owner, repo),
        }

    async def analyze_dependencies(self, *, owner: str, repo: str) -> dict[str, Any]:
        data = self._expect_dict(await self._get(self._repo_path(owner, repo, "/dependency-graph/sbom")), "sbom")
        packages = (data.get("sbom") or {}).get("packages") or []
        dependencies = []
        ecosystems: dict[str, int] = {}
        for package in packages:
            if not isinstance(package, dict):
                continue
            refs = package.get("externalRefs") or []
            purl = next((r.get("referenceLocator") for r in refs if r.get("referenceType") == "purl"), None)
            ecosystem = _purl_ecosystem(purl)
            ecosystems[ecosystem] = ecosystems.get(ecosystem, 0) + 1
            dependencies.append(
                {
                    "name": package.get("name"),
                    "version": package.get("versionInfo"),
                    "ecosystem": ecosystem,
                    "license": package.get("licenseConcluded") or package.get("licenseDeclared"),
                }
            )
        return {"total_count": len(dependencies), "ecosystems": ecosystems, "dependencies": dependencies}

    async def list_security_advisories(
        self,
        *,
        owner: str,
        repo: str,
        state: str | None = None,
        severity: str | None = None,
        page: int | None = None,
        limit: int | None = None,
    ) -> dict[str, Any]:
        params: dict[str, object] = {"state": state, "per_page": limit or 30}
        data = await self._get(self._repo_path(owner, repo, "/security-advisories"), params)
        advisories = [a for a in self._expect_list(data, "advisory list") if isinstance(a, dict)]
        if severity:
            advisories = [a for a in advisories if a.get("severity") == severity]
        return {"total_count": len(advisories), "advisories": advisories}

    # -- analytics ----------------------------------------------------------

    async def get_traffic_stats(
        self,
        *,
        owner: str,
        repo: str,
        metric_type: str = "views",
        period: str = "day",
    ) -> dict[str, Any]:
        per = "week" if period == "week" else "day"
        if metric_type == "referrers":
            data = await self._get(self._repo_path(owner, repo, "/traffic/popular/referrers"))
            return {"metric_type": metric_type, "referrers": self._expect_list(data, "referrers")}
        if metric_type == "paths":
            data = await self._get(self._repo_path(owner, repo, "/traffic/popular/paths"))
            return {"metric_type": metric_type, "paths": self._expect_list(data, "paths")}

        key = "clones" if metric_type == "clones" else "views"
        data = self._expect_dict(await self._get(self._repo_path(owner, repo, f"/traffic/{key}"), {"per": per}), "traffic")
        return {
            "metric_type": metric_type,
            "period": per,
            "count": data.get("count", 0),
            "uniques": data.get("uniques", 0),
            "series": data.get(key) or [],
        }

    async def analyze_contributors(
        self,
        *,
        owner: str,
        repo: str,
        contributor_type: str = "all",
        sort_by: str = "contributions",
        page: int | None = None,
        limit: int | None = None,
    ) -> dict[str, Any]:
        data = await self._get(self._repo_path(owner, repo, "/contributors"), self._page_params(page, limit))
        contributors = [
            {"login": c.get("login"), "contributions": c.get("contributions", 0), "type": c.get("type")}
            for c in self._expect_list(data, "contributor list")
            if isinstance(c, dict)
        ]

        def is_bot(entry: dict[str, Any]) -> bool:
            return entry.get("type") == "Bot" or str(entry.get("login") or "").endswith("[bot]")

        if contributor_type == "bots":
            contributors = [c for c in contributors if is_bot(c)]
        elif contributor_type == "humans":
            contributors = [c for c in contributors if not is_bot(c)]
        if sort_by == "login":
            contributors.sort(key=lambda c: str(c["login"] or "").lower())
        else:
            contributors.sort(key=lambda c: c["contributions"], reverse=True)

        total = sum(c["contributions"] for c in contributors)
        return {
            "total_contributors": len(contributors),
            "total_contributions": total,
            "contributors": contributors,
            "period": "all_time",
        }

    async def get_performance_metrics(
        self,
        *,
        owner: str,
        repo: str,
        performance_metric: str = "build_time",
        since: str | None = None,
        until: str | None = None,
    ) -> dict[str, Any]:
        if performance_metric == "deployment_frequency":
            deployments = await self.list_deployments(owner=owner, repo=repo, limit=100)
            moments = sorted(m for m in (parse_timestamp(d.get("created_at")) for d in deployments) if m)
            weeks = 1.0
            if len(moments) >= 2:
                weeks = max(1.0, (moments[-1] - moments[0]).total_seconds() / (7 * 24 * 3600))
            return {
                "performance_metric": performance_metric,
                "deployments": len(moments),
                "deployments_per_week": round(len(moments) / weeks, 2),
            }

        runs = (
            await self.list_workflow_runs(
                owner=owner,
                repo=repo,
                status="completed",
                created_after=since,
                created_before=until,
                limit=100,
            )
        )["workflow_runs"]
        durations = [d for d in (_run_duration_s(r) for r in runs) if d is not None]
        succeeded = sum(1 for r in runs if r.get("conclusion") == "success")
        return {
            "performance_metric": performance_metric,
            "completed_runs": len(runs),
            "average_duration_s": round(sum(durations) / len(durations), 1) if durations else None,
            "max_duration_s": max(durations) if durations else None,
            "success_rate": round(succeeded / len(runs), 3) if runs else None,
            "measured_at": datetime.now().astimezone().isoformat(timespec="seconds"),
        }
