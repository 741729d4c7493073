"""Repository analytics computed from the plain REST endpoints.

These operations only read commits, issues, pull requests, releases and the
repository object, so any provider exposing those endpoints can mix them in.
Which of them a provider actually offers is still decided by its
``CAPABILITIES``.
"""

from __future__ import annotations

import csv
import io
from collections import Counter
from datetime import datetime
from typing import Any

ANALYTICS_SAMPLE_SIZE = 100


def parse_timestamp(value: Any) -> datetime | None:
    if not isinstance(value, str) or not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def bucket_key(moment: datetime, trend_period: str) -> str:
    if trend_period == "daily":
        return moment.date().isoformat()
    if trend_period == "monthly":
        return f"{moment.year:04d}-{moment.month:02d}"
    year, week, _ = moment.isocalendar()
    return f"{year:04d}-W{week:02d}"


def activity_level(recent_commits: int) -> str:
    if recent_commits > 10:
        return "high"
    if recent_commits > 5:
        return "medium"
    return "low"


def _commit_date(commit: dict[str, Any]) -> datetime | None:
    inner = commit.get("commit") or {}
    author = inner.get("author") or {}
    committer = inner.get("committer") or {}
    return parse_timestamp(author.get("date") or committer.get("date") or commit.get("created"))


def _commit_author(commit: dict[str, Any]) -> str | None:
    author = commit.get("author")
    if isinstance(author, dict) and author.get("login"):
        return author["login"]
    inner = (commit.get("commit") or {}).get("author") or {}
    return inner.get("name")


def rows_to_csv(rows: list[dict[str, Any]]) -> str:
    """Render flat ``metric,value`` rows as CSV text."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(["metric", "value"])
    for row in rows:
        writer.writerow([row["metric"], row["value"]])
    return buffer.getvalue()


class RepositoryAnalyticsMixin:
    """Analytics operations built on ``list_commits``/``list_issues``/... ."""

    async def _sample_commits(self, owner: str, repo: str, *, branch=None, since=None, until=None) -> list[Any]:
        return await self.list_commits(  # type: ignore[attr-defined]
            owner=owner, repo=repo, sha=branch, since=since, until=until, page=1, limit=ANALYTICS_SAMPLE_SIZE
        )

    async def _sample_issues(self, owner: str, repo: str, *, since=None) -> list[Any]:
        issues = await self.list_issues(  # type: ignore[attr-defined]
            owner=owner, repo=repo, state="all", since=since, page=1, limit=ANALYTICS_SAMPLE_SIZE
        )
        # Both APIs list pull requests among issues.
        return [i for i in issues if isinstance(i, dict) and not i.get("pull_request")]

    async def get_activity_stats(
        self,
        *,
        owner: str,
        repo: str,
        activity_type: str = "all",
        branch: str | None = None,
        since: str | None = None,
        until: str | None = None,
    ) -> dict[str, Any]:
        stats: dict[str, Any] = {"activity_type": activity_type}

        if activity_type in ("all", "commits"):
            commits = await self._sample_commits(owner, repo, branch=branch, since=since, until=until)
            authors = Counter(a for a in (_commit_author(c) for c in commits if isinstance(c, dict)) if a)
            stats["recent_commits"] = len(commits)
            stats["active_authors"] = len(authors)
            stats["top_authors"] = [{"author": a, "commits": n} for a, n in authors.most_common(5)]
            stats["activity"] = activity_level(len(commits))

        if activity_type in ("all", "issues"):
            issues = await self._sample_issues(owner, repo, since=since)
            stats["total_issues"] = len(issues)
            stats["open_issues"] = sum(1 for i in issues if i.get("state") == "open")
            stats["closed_issues"] = sum(1 for i in issues if i.get("state") == "closed")

        if activity_type in ("all", "pulls"):
            pulls = await self.list_pull_requests(  # type: ignore[attr-defined]
                owner=owner, repo=repo, state="all", page=1, limit=ANALYTICS_SAMPLE_SIZE
            )
            stats["total_pull_requests"] = len(pulls)
            stats["open_pull_requests"] = sum(1 for p in pulls if isinstance(p, dict) and p.get("state") == "open")
            stats["merged_pull_requests"] = sum(1 for p in pulls if isinstance(p, dict) and p.get("merged_at"))

        if activity_type in ("all", "releases"):
            releases = await self.list_releases(owner=owner, repo=repo, page=1, limit=ANALYTICS_SAMPLE_SIZE)  # type: ignore[attr-defined]
            stats["releases"] = len(releases)
            latest = releases[0] if releases and isinstance(releases[0], dict) else None
            stats["latest_release"] = latest.get("tag_name") if latest else None

        return stats

    async def get_repository_insights(self, *, owner: str, repo: str) -> dict[str, Any]:
        data = await self.get_repository(owner=owner, repo=repo)  # type: ignore[attr-defined]
        license_info = data.get("license")
        return {
            "insights": {
                "stars": data.get("stargazers_count", data.get("stars_count")),
                "forks": data.get("forks_count"),
                "watchers": data.get("watchers_count", data.get("watchers")),
                "open_issues": data.get("open_issues_count"),
                "language": data.get("language"),
                "size": data.get("size"),
                "created": data.get("created_at"),
                "updated": data.get("updated_at"),
                "is_archived": bool(data.get("archived")),
                "is_fork": bool(data.get("fork")),
                "default_branch": data.get("default_branch"),
                "license": license_info.get("name") if isinstance(license_info, dict) else None,
                "topics": data.get("topics") or [],
            }
        }

    async def analyze_trends(
        self,
        *,
        owner: str,
        repo: str,
        trend_metric: str = "commits",
        trend_period: str = "weekly",
        since: str | None = None,
        until: str | None = None,
    ) -> dict[str, Any]:
        buckets: Counter[str] = Counter()
        if trend_metric == "issues":
            for issue in await self._sample_issues(owner, repo, since=since):
                moment = parse_timestamp(issue.get("created_at"))
                if moment is not None:
                    buckets[bucket_key(moment, trend_period)] += 1
        elif trend_metric == "contributors":
            seen: dict[str, set[str]] = {}
            for commit in await self._sample_commits(owner, repo, since=since, until=until):
                moment = _commit_date(commit)
                author = _commit_author(commit)
                if moment is not None and author:
                    seen.setdefault(bucket_key(moment, trend_period), set()).add(author)
            buckets.update({k: len(v) for k, v in seen.items()})
        else:
            for commit in await self._sample_commits(owner, repo, since=since, until=until):
                moment = _commit_date(commit)
                if moment is not None:
                    buckets[bucket_key(moment, trend_period)] += 1

        series = [{"period": key, "value": buckets[key]} for key in sorted(buckets)]
        direction = "stable"
        if len(series) >= 2:
            first, last = series[0]["value"], series[-1]["value"]
            if last > first:
                direction = "increasing"
            elif last < first:
                direction = "decreasing"
        return {
            "trend_metric": trend_metric,
            "trend_period": trend_period,
            "series": series,
            "direction": direction,
        }

    async def generate_reports(
        self,
        *,
        owner: str,
        repo: str,
        report_type: str = "summary",
        report_format: str = "json",
        since: str | None = None,
        until: str | None = None,
    ) -> dict[str, Any]:
        insights = (await self.get_repository_insights(owner=owner, repo=repo))["insights"]
        activity = await self.get_activity_stats(owner=owner, repo=repo, since=since, until=until)

        rows = [
            {"metric": "stars", "value": insights.get("stars")},
            {"metric": "forks", "value": insights.get("forks")},
            {"metric": "open_issues", "value": insights.get("open_issues")},
            {"metric": "recent_commits", "value": activity.get("recent_commits")},
            {"metric": "active_authors", "value": activity.get("active_authors")},
            {"metric": "total_pull_requests", "value": activity.get("total_pull_requests")},
            {"metric": "releases", "value": activity.get("releases")},
        ]
        report: dict[str, Any] = {
            "repository": f"{owner}/{repo}",
            "report_type": report_type,
            "report_format": report_format,
            "generated_at": datetime.now().astimezone().isoformat(timespec="seconds"),
            "summary": {row["metric"]: row["value"] for row in rows},
        }
        if report_type in ("detailed", "trends"):
            report["activity"] = activity
            report["insights"] = insights
        if report_type == "trends":
            report["trends"] = await self.analyze_trends(owner=owner, repo=repo, since=since, until=until)
        if report_format == "csv":
            report["content"] = rows_to_csv(rows)
        return report
