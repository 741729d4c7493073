"""``deployments`` tool (GitHub deployments and environments)."""

from __future__ import annotations

from typing import Annotated, Any, ClassVar, Literal

from pydantic import Field

from ..envelope import ToolResult, soft_unsupported
from ..schemas import BranchName, Limit, MediumString, Page, PositiveId, RepoToolInput, ShortString, StringList
from .base import ToolContext, ToolSpec, require_capability, require_owner, upstream

DeploymentState = Literal["error", "failure", "inactive", "in_progress", "queued", "pending", "success"]


class DeploymentsInput(RepoToolInput):
    action: Literal["list", "create", "status", "environments", "rollback", "delete"]
    ref: BranchName | None = None
    sha: ShortString | None = None
    environment: ShortString | None = None
    description: MediumString | None = None
    task: ShortString | None = None
    auto_merge: bool | None = None
    required_contexts: StringList | None = None
    payload: Annotated[dict[str, Any], Field(max_length=50)] | None = None
    transient_environment: bool | None = None
    production_environment: bool | None = None
    deployment_id: PositiveId | None = None
    state: DeploymentState | None = None
    log_url: MediumString | None = None
    environment_url: MediumString | None = None
    environment_name: ShortString | None = None
    wait_timer: Annotated[int, Field(ge=0, le=43200)] | None = None
    reviewers: Annotated[list[ShortString], Field(max_length=6)] | None = None
    page: Page | None = None
    limit: Limit | None = None

    REQUIRED_BY_ACTION: ClassVar[dict[str, tuple[tuple[str, ...], ...]]] = {
        "create": (("ref",), ("environment",)),
        "status": (("deployment_id",),),
        "rollback": (("deployment_id",),),
        "delete": (("deployment_id",),),
    }


async def _list(ctx: ToolContext, params: DeploymentsInput) -> ToolResult:
    owner = require_owner(params)
    list_deployments = ctx.vcs.capability("list_deployments")
    if list_deployments is None:
        return soft_unsupported(params.action, "Deployments não disponíveis neste provider", deployments=[], total=0)
    deployments = await upstream(
        "Falha ao listar deployments",
        list_deployments(
            owner=owner,
            repo=params.repo,
            environment=params.environment,
            ref=params.ref,
            sha=params.sha,
            task=params.task,
            page=params.page,
            limit=params.limit,
        ),
    )
    data = {"deployments": deployments, "total": len(deployments)}
    return ToolResult.ok(params.action, f"{len(deployments)} deployments encontrados", data)


async def _create(ctx: ToolContext, params: DeploymentsInput) -> ToolResult:
    owner = require_owner(params)
    create = require_capability(ctx, "create_deployment")
    data = await upstream(
        "Falha ao criar deployment",
        create(
            owner=owner,
            repo=params.repo,
            ref=params.ref,
            environment=params.environment,
            description=params.description,
            task=params.task,
            auto_merge=bool(params.auto_merge),
            required_contexts=params.required_contexts,
            payload=params.payload,
            transient_environment=params.transient_environment,
            production_environment=params.production_environment,
        ),
    )
    return ToolResult.ok(params.action, f"Deployment {data.get('id')} criado para '{params.environment}'", data)


async def _status(ctx: ToolContext, params: DeploymentsInput) -> ToolResult:
    owner = require_owner(params)
    if params.state:
        update = require_capability(ctx, "update_deployment_status")
        data = await upstream(
            "Falha ao atualizar status do deployment",
            update(
                owner=owner,
                repo=params.repo,
                deployment_id=params.deployment_id,
                state=params.state,
                log_url=params.log_url,
                environment_url=params.environment_url,
                description=params.description,
            ),
        )
        message = f"Status do deployment {params.deployment_id} atualizado para '{params.state}'"
        return ToolResult.ok(params.action, message, data)

    list_statuses = ctx.vcs.capability("list_deployment_statuses")
    if list_statuses is None:
        return soft_unsupported(params.action, "Status de deployment não disponível neste provider", statuses=[])
    statuses = await upstream(
        "Falha ao obter status do deployment",
        list_statuses(
            owner=owner,
            repo=params.repo,
            deployment_id=params.deployment_id,
            page=params.page,
            limit=params.limit,
        ),
    )
    data = {"deployment_id": params.deployment_id, "statuses": statuses, "total": len(statuses)}
    message = f"{len(statuses)} status encontrados para o deployment {params.deployment_id}"
    return ToolResult.ok(params.action, message, data)


async def _environments(ctx: ToolContext, params: DeploymentsInput) -> ToolResult:
    owner = require_owner(params)
    name = params.environment_name

    if name and (params.wait_timer is not None or params.reviewers):
        upsert = require_capability(ctx, "create_or_update_environment")
        data = await upstream(
            "Falha ao configurar ambiente",
            upsert(
                owner=owner,
                repo=params.repo,
                environment_name=name,
                wait_timer=params.wait_timer,
                reviewers=params.reviewers,
            ),
        )
        return ToolResult.ok(params.action, f"Ambiente '{name}' configurado com sucesso", data)

    if name:
        get_environment = ctx.vcs.capability("get_environment")
        if get_environment is None:
            return soft_unsupported(params.action, "Ambientes não disponíveis neste provider", environment=None)
        data = await upstream(
            "Falha ao obter ambiente",
            get_environment(owner=owner, repo=params.repo, environment_name=name),
        )
        return ToolResult.ok(params.action, f"Ambiente '{name}' obtido com sucesso", data)

    list_environments = ctx.vcs.capability("list_environments")
    if list_environments is None:
        return soft_unsupported(
            params.action, "Ambientes não disponíveis neste provider", total_count=0, environments=[]
        )
    data = await upstream(
        "Falha ao listar ambientes",
        list_environments(owner=owner, repo=params.repo, page=params.page, limit=params.limit),
    )
    return ToolResult.ok(params.action, f"{len(data['environments'])} ambientes encontrados", data)


async def _rollback(ctx: ToolContext, params: DeploymentsInput) -> ToolResult:
    owner = require_owner(params)
    rollback = require_capability(ctx, "rollback_deployment")
    data = await upstream(
        "Falha ao executar rollback",
        rollback(
            owner=owner,
            repo=params.repo,
            deployment_id=params.deployment_id,
            description=params.description,
        ),
    )
    return ToolResult.ok(params.action, f"Rollback do deployment {params.deployment_id} criado com sucesso", data)


async def _delete(ctx: ToolContext, params: DeploymentsInput) -> ToolResult:
    owner = require_owner(params)
    delete = require_capability(ctx, "delete_deployment")
    data = await upstream(
        "Falha ao deletar deployment",
        delete(owner=owner, repo=params.repo, deployment_id=params.deployment_id),
    )
    return ToolResult.ok(params.action, f"Deployment {params.deployment_id} deletado com sucesso", data)


SPEC = ToolSpec(
    name="deployments",
    description=(
        "Deployments (GitHub): list, create, status (read or set), environments, rollback and delete."
    ),
    input_model=DeploymentsInput,
    actions={
        "list": _list,
        "create": _create,
        "status": _status,
        "environments": _environments,
        "rollback": _rollback,
        "delete": _delete,
    },
    failure_message="Erro na operação de deployments",
)
