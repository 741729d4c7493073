"""``code-review`` tool (GitHub only).

Reviews run locally over content fetched from the provider; nothing is posted
back to the pull request.
"""

from __future__ import annotations

import fnmatch
import logging
from datetime import datetime
from typing import Annotated, Any, ClassVar, Literal

from pydantic import BaseModel, ConfigDict, Field

from ..code_analysis import (
    analyze_code,
    analyze_commit_message,
    detect_language,
    review_pull_request,
)
from ..envelope import ToolResult
from ..errors import ProviderNotFoundError, ValidationError
from ..schemas import (
    BranchName,
    LongString,
    MediumString,
    Owner,
    PositiveId,
    ProviderName,
    RepoName,
    ShortString,
    StringList,
    ToolInput,
)
from .base import ToolContext, ToolSpec, require_capability, require_owner, upstream

logger = logging.getLogger(__name__)

GITEA_UNAVAILABLE = "Code review automatizado não está disponível para o Gitea"
REPORT_COMMIT_SAMPLE = 30

CodeString = Annotated[str, Field(max_length=100000)]


class Suggestion(BaseModel):
    model_config = ConfigDict(extra="forbid")

    file_path: MediumString
    line_number: Annotated[int, Field(ge=1)]
    suggestion: LongString
    severity: Literal["low", "medium", "high", "critical"]


class CodeReviewInput(ToolInput):
    action: Literal["analyze", "review-file", "review-commit", "review-pr", "generate-report", "apply-suggestions"]
    owner: Owner | None = None
    repo: RepoName | None = None
    provider: ProviderName | None = None
    code: CodeString | None = None
    language: ShortString | None = None
    file_path: MediumString | None = None
    path: MediumString | None = None
    sha: ShortString | None = None
    branch: BranchName | None = None
    pull_number: PositiveId | None = None
    report_type: Literal["summary", "detailed", "security", "performance"] | None = None
    include_suggestions: bool | None = None
    suggestions: Annotated[list[Suggestion], Field(max_length=50)] | None = None
    rules: StringList | None = None
    exclude_patterns: StringList | None = None

    REQUIRED_BY_ACTION: ClassVar[dict[str, tuple[tuple[str, ...], ...]]] = {
        "analyze": (("code", "file_path"),),
        "review-file": (("repo",), ("path",)),
        "review-commit": (("repo",), ("sha",)),
        "review-pr": (("repo",), ("pull_number",)),
        "generate-report": (("repo",),),
        "apply-suggestions": (("repo",), ("suggestions",)),
    }


def gitea_guard(action: str, provider_name: str | None, registry: Any) -> ToolResult | None:
    """Refuse calls naming the "gitea" provider or resolving to a Gitea-kind one."""
    if provider_name != "gitea":
        try:
            provider = registry.resolve(provider_name)
        except ProviderNotFoundError:
            return None
        if provider.kind != "gitea":
            return None
    return ToolResult.failure(
        action,
        GITEA_UNAVAILABLE,
        f"GITEA: {GITEA_UNAVAILABLE}. Esta funcionalidade é específica do GitHub.",
    )


def _excluded(path: str, patterns: list[str] | None) -> bool:
    return any(fnmatch.fnmatch(path, pattern) for pattern in patterns or [])


async def _fetch_content(ctx: ToolContext, params: CodeReviewInput, path: str) -> str:
    owner = require_owner(params)
    get_file = require_capability(ctx, "get_file")
    file = await upstream(
        "Falha ao obter arquivo para revisão",
        get_file(owner=owner, repo=params.repo, path=path, ref=params.branch),
    )
    return file.get("content") or ""


async def _analyze(ctx: ToolContext, params: CodeReviewInput) -> ToolResult:
    file_name = params.file_path or "code.txt"
    code = params.code
    if not code:
        if not params.repo:
            raise ValidationError(message="Informe 'code' ou 'repo' e 'file_path' para análise")
        code = await _fetch_content(ctx, params, params.file_path)
    if not code:
        raise ValidationError(message="Código não fornecido para análise")

    language = params.language or detect_language(params.file_path)
    analysis = analyze_code(code, language=language, file_name=file_name, rules=params.rules)
    return ToolResult.ok(params.action, f"Análise de código concluída para {file_name}", analysis)


async def _review_file(ctx: ToolContext, params: CodeReviewInput) -> ToolResult:
    if _excluded(params.path, params.exclude_patterns):
        data = {"file": params.path, "skipped": True}
        return ToolResult.ok(params.action, f"Arquivo '{params.path}' ignorado pelos padrões de exclusão", data)

    content = await _fetch_content(ctx, params, params.path)
    if not content:
        raise ValidationError(message="Arquivo não possui conteúdo para análise")
    analysis = analyze_code(content, language=detect_language(params.path), file_name=params.path, rules=params.rules)
    data = {"file": params.path, "branch": params.branch or "default", "analysis": analysis}
    return ToolResult.ok(params.action, f"Revisão de arquivo '{params.path}' concluída", data)


async def _review_commit(ctx: ToolContext, params: CodeReviewInput) -> ToolResult:
    owner = require_owner(params)
    get_commit = require_capability(ctx, "get_commit")
    commit = await upstream("Falha na revisão de commit", get_commit(owner=owner, repo=params.repo, sha=params.sha))
    files = [f for f in commit.get("files") or [] if f and not _excluded(f, params.exclude_patterns)]
    data = {
        "commit": commit.get("sha", params.sha),
        "message_analysis": analyze_commit_message(commit.get("message") or ""),
        "author": commit.get("author"),
        "committer": commit.get("committer"),
        "files": files,
        "languages": sorted({detect_language(f) for f in files} - {"unknown"}),
    }
    return ToolResult.ok(params.action, f"Revisão de commit {params.sha[:7]} concluída", data)


async def _review_pr(ctx: ToolContext, params: CodeReviewInput) -> ToolResult:
    owner = require_owner(params)
    get_pull_request = require_capability(ctx, "get_pull_request")
    pr = await upstream(
        "Falha na revisão de PR",
        get_pull_request(owner=owner, repo=params.repo, number=params.pull_number),
    )
    review = review_pull_request({**pr, "number": pr.get("number", params.pull_number)})
    return ToolResult.ok(params.action, f"Revisão de PR #{params.pull_number} concluída", review)


async def _generate_report(ctx: ToolContext, params: CodeReviewInput) -> ToolResult:
    owner = require_owner(params)
    list_commits = require_capability(ctx, "list_commits")
    commits = await upstream(
        "Falha na geração de relatório",
        list_commits(owner=owner, repo=params.repo, sha=params.branch, page=1, limit=REPORT_COMMIT_SAMPLE),
    )
    analyses = [analyze_commit_message((c.get("commit") or {}).get("message") or "") for c in commits]
    conventional = sum(1 for a in analyses if a["follows_conventions"])
    low_quality = sum(1 for a in analyses if a["quality"] == "low")

    report_type = params.report_type or "summary"
    report: dict[str, Any] = {
        "repository": f"{owner}/{params.repo}",
        "report_type": report_type,
        "generated_at": datetime.now().astimezone().isoformat(timespec="seconds"),
        "summary": {
            "commits_analyzed": len(analyses),
            "conventional_commits": conventional,
            "conventional_ratio": round(conventional / len(analyses), 2) if analyses else 0.0,
            "low_quality_messages": low_quality,
        },
        "recommendations": [],
    }
    if params.include_suggestions is not False:
        if analyses and conventional < len(analyses):
            report["recommendations"].append("Padronizar mensagens de commit com conventional commits")
        if low_quality:
            report["recommendations"].append("Escrever mensagens de commit mais descritivas")
        report["recommendations"].append("Configurar linter específico da linguagem no CI")
    if report_type == "detailed":
        report["commits"] = [
            {"sha": c.get("sha"), "analysis": a} for c, a in zip(commits, analyses)
        ]
    return ToolResult.ok(params.action, f"Relatório {report_type} gerado com sucesso", report)


async def _apply_suggestions(ctx: ToolContext, params: CodeReviewInput) -> ToolResult:
    owner = require_owner(params)
    get_file = require_capability(ctx, "get_file")
    applied: list[dict[str, Any]] = []
    failed: list[dict[str, Any]] = []

    for item in params.suggestions or []:
        try:
            file = await get_file(owner=owner, repo=params.repo, path=item.file_path, ref=params.branch)
            content = file.get("content") or ""
            if not content:
                failed.append({"file": item.file_path, "line": item.line_number, "error": "Arquivo sem conteúdo"})
                continue
            if item.line_number > len(content.split("\n")):
                failed.append(
                    {"file": item.file_path, "line": item.line_number, "error": "Linha fora do arquivo"}
                )
                continue
            applied.append(
                {
                    "file": item.file_path,
                    "line": item.line_number,
                    "suggestion": item.suggestion,
                    "severity": item.severity,
                    "status": "applied",
                }
            )
        except Exception as exc:  # pylint: disable=broad-exception-caught
            logger.debug("Suggestion for %s failed: %s", item.file_path, exc)
            failed.append({"file": item.file_path, "line": item.line_number, "error": str(exc)})

    total = len(params.suggestions or [])
    data = {"applied": applied, "failed": failed, "total": total}
    return ToolResult.ok(params.action, f"Aplicadas {len(applied)} sugestões, {len(failed)} falharam", data)


SPEC = ToolSpec(
    name="code-review",
    description=(
        "Code review heuristics (GitHub only): analyze code, review a file, commit or pull request, "
        "generate a commit-quality report and apply review suggestions."
    ),
    input_model=CodeReviewInput,
    actions={
        "analyze": _analyze,
        "review-file": _review_file,
        "review-commit": _review_commit,
        "review-pr": _review_pr,
        "generate-report": _generate_report,
        "apply-suggestions": _apply_suggestions,
    },
    failure_message="Erro na análise de código",
    guard=gitea_guard,
)
