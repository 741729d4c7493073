"""``workflows`` tool: workflow definitions, dispatch, status and logs."""

from __future__ import annotations

from typing import Annotated, Any, ClassVar, Literal

from pydantic import Field

from ..envelope import ToolResult, soft_unsupported
from ..errors import ValidationError
from ..schemas import (
    BranchName,
    Limit,
    LongString,
    MediumString,
    Page,
    PositiveId,
    RepoToolInput,
    ShortString,
)
from .base import ToolContext, ToolSpec, require_capability, require_owner, upstream

WorkflowInputs = Annotated[dict[ShortString, MediumString], Field(max_length=50)]

_NEEDS_WORKFLOW = (("workflow_id", "workflow_name"),)


class WorkflowsInput(RepoToolInput):
    action: Literal["list", "create", "trigger", "status", "logs", "disable", "enable"]
    name: ShortString | None = None
    description: MediumString | None = None
    workflow_content: LongString | None = Field(default=None, description="Workflow YAML")
    branch: BranchName | None = None
    workflow_id: ShortString | None = Field(default=None, description="Workflow id or file name")
    workflow_name: ShortString | None = None
    run_id: PositiveId | None = None
    job_id: PositiveId | None = None
    inputs: WorkflowInputs | None = None
    ref: BranchName | None = None
    page: Page | None = None
    limit: Limit | None = None

    REQUIRED_BY_ACTION: ClassVar[dict[str, tuple[tuple[str, ...], ...]]] = {
        "create": (("name",), ("workflow_content",)),
        "trigger": _NEEDS_WORKFLOW,
        "status": _NEEDS_WORKFLOW,
        "logs": (("workflow_id", "workflow_name", "run_id", "job_id"),),
        "disable": _NEEDS_WORKFLOW,
        "enable": _NEEDS_WORKFLOW,
    }


def _matches(workflow: dict[str, Any], wanted: str) -> bool:
    wanted = wanted.lower()
    name = str(workflow.get("name") or "").lower()
    path = str(workflow.get("path") or "").lower()
    return wanted in (name, path, path.rsplit("/", 1)[-1])


async def _resolve_workflow_id(ctx: ToolContext, params: WorkflowsInput, owner: str) -> str:
    if params.workflow_id:
        return params.workflow_id
    list_workflows = require_capability(ctx, "list_workflows")
    data = await upstream("Falha ao localizar workflow", list_workflows(owner=owner, repo=params.repo, limit=100))
    for workflow in data["workflows"]:
        if _matches(workflow, params.workflow_name or ""):
            return str(workflow.get("id") or workflow.get("path"))
    raise ValidationError(message=f"Workflow '{params.workflow_name}' não encontrado")


async def _list(ctx: ToolContext, params: WorkflowsInput) -> ToolResult:
    owner = require_owner(params)
    list_workflows = ctx.vcs.capability("list_workflows")
    if list_workflows is None:
        return soft_unsupported(params.action, "Workflows não disponíveis neste provider", total_count=0, workflows=[])
    data = await upstream(
        "Falha ao listar workflows",
        list_workflows(owner=owner, repo=params.repo, page=params.page, limit=params.limit),
    )
    return ToolResult.ok(params.action, f"{len(data['workflows'])} workflows encontrados", data)


async def _create(ctx: ToolContext, params: WorkflowsInput) -> ToolResult:
    owner = require_owner(params)
    create = require_capability(ctx, "create_workflow")
    data = await upstream(
        "Falha ao criar workflow",
        create(
            owner=owner,
            repo=params.repo,
            name=params.name,
            workflow_content=params.workflow_content,
            description=params.description,
            branch=params.branch,
        ),
    )
    return ToolResult.ok(params.action, f"Workflow '{params.name}' criado com sucesso", data)


async def _trigger(ctx: ToolContext, params: WorkflowsInput) -> ToolResult:
    owner = require_owner(params)
    trigger = require_capability(ctx, "trigger_workflow")
    workflow_id = await _resolve_workflow_id(ctx, params, owner)
    ref = params.ref or "main"
    data = await upstream(
        "Falha ao disparar workflow",
        trigger(owner=owner, repo=params.repo, workflow_id=workflow_id, ref=ref, inputs=params.inputs),
    )
    return ToolResult.ok(params.action, f"Workflow {workflow_id} disparado em '{ref}'", data)


async def _status(ctx: ToolContext, params: WorkflowsInput) -> ToolResult:
    owner = require_owner(params)
    get_status = ctx.vcs.capability("get_workflow_status")
    if get_status is None:
        return soft_unsupported(params.action, "Status de workflow não disponível neste provider", runs=[])
    workflow_id = await _resolve_workflow_id(ctx, params, owner)
    data = await upstream(
        "Falha ao obter status do workflow",
        get_status(owner=owner, repo=params.repo, workflow_id=workflow_id, run_id=params.run_id),
    )
    return ToolResult.ok(params.action, f"Status do workflow {workflow_id} obtido com sucesso", data)


async def _latest_run_id(ctx: ToolContext, params: WorkflowsInput, owner: str) -> tuple[str, int | None]:
    workflow_id = await _resolve_workflow_id(ctx, params, owner)
    list_runs = ctx.vcs.capability("list_workflow_runs")
    if list_runs is None:
        return workflow_id, None
    data = await upstream(
        "Falha ao localizar última execução",
        list_runs(owner=owner, repo=params.repo, workflow_id=workflow_id, limit=1),
    )
    runs = data["workflow_runs"]
    return workflow_id, (runs[0].get("id") if runs else None)


async def _logs(ctx: ToolContext, params: WorkflowsInput) -> ToolResult:
    owner = require_owner(params)
    get_logs = ctx.vcs.capability("get_workflow_logs")
    if get_logs is None:
        return soft_unsupported(params.action, "Logs não disponíveis neste provider", logs=None)

    run_id = params.run_id
    if run_id is None and params.job_id is None:
        workflow_id, run_id = await _latest_run_id(ctx, params, owner)
        if run_id is None:
            return ToolResult.ok(
                params.action,
                f"Nenhuma execução encontrada para o workflow {workflow_id}",
                {"workflow_id": workflow_id, "logs": None},
            )

    data = await upstream(
        "Falha ao obter logs",
        get_logs(owner=owner, repo=params.repo, run_id=run_id, job_id=params.job_id),
    )
    return ToolResult.ok(params.action, "Logs obtidos com sucesso", data)


async def _disable(ctx: ToolContext, params: WorkflowsInput) -> ToolResult:
    owner = require_owner(params)
    disable = require_capability(ctx, "disable_workflow")
    workflow_id = await _resolve_workflow_id(ctx, params, owner)
    data = await upstream(
        "Falha ao desabilitar workflow",
        disable(owner=owner, repo=params.repo, workflow_id=workflow_id),
    )
    return ToolResult.ok(params.action, f"Workflow {workflow_id} desabilitado com sucesso", data)


async def _enable(ctx: ToolContext, params: WorkflowsInput) -> ToolResult:
    owner = require_owner(params)
    enable = require_capability(ctx, "enable_workflow")
    workflow_id = await _resolve_workflow_id(ctx, params, owner)
    data = await upstream("Falha ao habilitar workflow", enable(owner=owner, repo=params.repo, workflow_id=workflow_id))
    return ToolResult.ok(params.action, f"Workflow {workflow_id} habilitado com sucesso", data)


SPEC = ToolSpec(
    name="workflows",
    description=(
        "CI/CD workflows: list, create (writes the workflow file), trigger (workflow_dispatch), status, logs, "
        "enable and disable. Workflows can be addressed by workflow_id or workflow_name."
    ),
    input_model=WorkflowsInput,
    actions={
        "list": _list,
        "create": _create,
        "trigger": _trigger,
        "status": _status,
        "logs": _logs,
        "disable": _disable,
        "enable": _enable,
    },
    failure_message="Erro na operação de workflows",
)
