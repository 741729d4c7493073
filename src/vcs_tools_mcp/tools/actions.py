"""``actions`` tool: workflow runs, jobs, artifacts and secrets."""

from __future__ import annotations

from typing import ClassVar, Literal

from ..envelope import ToolResult, soft_unsupported
from ..errors import ValidationError
from ..schemas import BranchName, Limit, MediumString, Page, PositiveId, RepoToolInput, ShortString
from .base import ToolContext, ToolSpec, require_capability, require_owner, upstream

RunStatus = Literal["queued", "in_progress", "completed", "cancelled", "failure", "success"]


class ActionsInput(RepoToolInput):
    action: Literal["list-runs", "cancel", "rerun", "artifacts", "secrets", "jobs", "download-artifact"]
    run_id: PositiveId | None = None
    workflow_id: ShortString | None = None
    status: RunStatus | None = None
    branch: BranchName | None = None
    event: ShortString | None = None
    job_id: PositiveId | None = None
    artifact_id: PositiveId | None = None
    artifact_name: ShortString | None = None
    download_path: MediumString | None = None
    secret_name: ShortString | None = None
    created_after: ShortString | None = None
    created_before: ShortString | None = None
    page: Page | None = None
    limit: Limit | None = None

    REQUIRED_BY_ACTION: ClassVar[dict[str, tuple[tuple[str, ...], ...]]] = {
        "cancel": (("run_id",),),
        "rerun": (("run_id",),),
        "jobs": (("run_id",),),
        "download-artifact": (("artifact_id", "artifact_name"),),
    }


async def _list_runs(ctx: ToolContext, params: ActionsInput) -> ToolResult:
    owner = require_owner(params)
    list_runs = ctx.vcs.capability("list_workflow_runs")
    if list_runs is None:
        return soft_unsupported(
            params.action, "Listagem de execuções não disponível neste provider", total_count=0, workflow_runs=[]
        )
    data = await upstream(
        "Falha ao listar execuções",
        list_runs(
            owner=owner,
            repo=params.repo,
            workflow_id=params.workflow_id,
            status=params.status,
            branch=params.branch,
            event=params.event,
            created_after=params.created_after,
            created_before=params.created_before,
            page=params.page,
            limit=params.limit,
        ),
    )
    return ToolResult.ok(params.action, f"{len(data['workflow_runs'])} execuções encontradas", data)


async def _cancel(ctx: ToolContext, params: ActionsInput) -> ToolResult:
    owner = require_owner(params)
    cancel = require_capability(ctx, "cancel_workflow_run")
    data = await upstream("Falha ao cancelar execução", cancel(owner=owner, repo=params.repo, run_id=params.run_id))
    return ToolResult.ok(params.action, f"Execução {params.run_id} cancelada com sucesso", data)


async def _rerun(ctx: ToolContext, params: ActionsInput) -> ToolResult:
    owner = require_owner(params)
    rerun = require_capability(ctx, "rerun_workflow")
    data = await upstream("Falha ao reexecutar workflow", rerun(owner=owner, repo=params.repo, run_id=params.run_id))
    return ToolResult.ok(params.action, f"Execução {params.run_id} reiniciada com sucesso", data)


async def _artifacts(ctx: ToolContext, params: ActionsInput) -> ToolResult:
    owner = require_owner(params)
    list_artifacts = ctx.vcs.capability("list_artifacts")
    if list_artifacts is None:
        return soft_unsupported(
            params.action, "Artefatos não disponíveis neste provider", total_count=0, artifacts=[]
        )
    data = await upstream(
        "Falha ao listar artefatos",
        list_artifacts(
            owner=owner,
            repo=params.repo,
            run_id=params.run_id,
            name=params.artifact_name,
            page=params.page,
            limit=params.limit,
        ),
    )
    return ToolResult.ok(params.action, f"{len(data['artifacts'])} artefatos encontrados", data)


async def _secrets(ctx: ToolContext, params: ActionsInput) -> ToolResult:
    owner = require_owner(params)
    list_secrets = ctx.vcs.capability("list_secrets")
    if list_secrets is None:
        return soft_unsupported(params.action, "Secrets não disponíveis neste provider", total_count=0, secrets=[])
    data = await upstream(
        "Falha ao listar secrets",
        list_secrets(owner=owner, repo=params.repo, page=params.page, limit=params.limit),
    )
    secrets = data["secrets"]
    if params.secret_name:
        wanted = params.secret_name.lower()
        secrets = [s for s in secrets if str(s.get("name", "")).lower() == wanted]
        data = {"total_count": len(secrets), "secrets": secrets}
    return ToolResult.ok(params.action, f"{len(secrets)} secrets encontrados", data)


async def _jobs(ctx: ToolContext, params: ActionsInput) -> ToolResult:
    owner = require_owner(params)
    list_jobs = ctx.vcs.capability("list_jobs")
    if list_jobs is None:
        return soft_unsupported(params.action, "Jobs não disponíveis neste provider", total_count=0, jobs=[])
    data = await upstream(
        "Falha ao listar jobs",
        list_jobs(owner=owner, repo=params.repo, run_id=params.run_id, page=params.page, limit=params.limit),
    )
    return ToolResult.ok(params.action, f"{len(data['jobs'])} jobs encontrados", data)


async def _resolve_artifact_id(ctx: ToolContext, params: ActionsInput, owner: str) -> int:
    if params.artifact_id is not None:
        return params.artifact_id
    list_artifacts = require_capability(ctx, "list_artifacts")
    data = await upstream(
        "Falha ao localizar artefato",
        list_artifacts(owner=owner, repo=params.repo, run_id=params.run_id, name=params.artifact_name),
    )
    for artifact in data["artifacts"]:
        if artifact.get("name") == params.artifact_name and artifact.get("id") is not None:
            return int(artifact["id"])
    raise ValidationError(message=f"Artefato '{params.artifact_name}' não encontrado")


async def _download_artifact(ctx: ToolContext, params: ActionsInput) -> ToolResult:
    owner = require_owner(params)
    download = require_capability(ctx, "download_artifact")
    artifact_id = await _resolve_artifact_id(ctx, params, owner)
    data = await upstream(
        "Falha ao baixar artefato",
        download(owner=owner, repo=params.repo, artifact_id=artifact_id, download_path=params.download_path),
    )
    if params.download_path:
        message = f"Artefato {artifact_id} baixado em {data.get('download_path', params.download_path)}"
    else:
        message = f"URL de download do artefato {artifact_id} obtida"
    return ToolResult.ok(params.action, message, data)


SPEC = ToolSpec(
    name="actions",
    description=(
        "GitHub/Gitea Actions runs: list-runs, cancel, rerun, jobs, artifacts, download-artifact and secrets. "
        "Owner is auto-detected from the token when omitted."
    ),
    input_model=ActionsInput,
    actions={
        "list-runs": _list_runs,
        "cancel": _cancel,
        "rerun": _rerun,
        "artifacts": _artifacts,
        "secrets": _secrets,
        "jobs": _jobs,
        "download-artifact": _download_artifact,
    },
    failure_message="Erro na operação de actions",
)
