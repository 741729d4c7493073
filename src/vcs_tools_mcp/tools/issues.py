"""``issues`` tool."""

from __future__ import annotations

from typing import Any, ClassVar, Literal

from ..envelope import ToolResult, soft_unsupported
from ..errors import ValidationError
from ..schemas import Limit, LongString, Page, PositiveId, RepoToolInput, ShortString, StringList
from .base import ToolContext, ToolSpec, require_capability, require_owner, upstream


class IssuesInput(RepoToolInput):
    action: Literal["create", "list", "get", "update", "close", "comment", "search"]
    title: ShortString | None = None
    body: LongString | None = None
    labels: StringList | None = None
    assignees: StringList | None = None
    milestone: PositiveId | None = None
    issue_number: PositiveId | None = None
    state: Literal["open", "closed", "all"] | None = None
    since: ShortString | None = None
    new_title: ShortString | None = None
    new_body: LongString | None = None
    new_state: Literal["open", "closed"] | None = None
    new_labels: StringList | None = None
    new_assignees: StringList | None = None
    new_milestone: PositiveId | None = None
    comment_body: LongString | None = None
    query: ShortString | None = None
    author: ShortString | None = None
    assignee: ShortString | None = None
    label: ShortString | None = None
    page: Page | None = None
    limit: Limit | None = None

    REQUIRED_BY_ACTION: ClassVar[dict[str, tuple[tuple[str, ...], ...]]] = {
        "create": (("title",),),
        "get": (("issue_number",),),
        "update": (("issue_number",),),
        "close": (("issue_number",),),
        "comment": (("issue_number",), ("comment_body",)),
        "search": (("query",),),
    }


_UPDATE_FIELDS = {
    "new_title": "title",
    "new_body": "body",
    "new_state": "state",
    "new_labels": "labels",
    "new_assignees": "assignees",
    "new_milestone": "milestone",
}


def _changes(params: IssuesInput) -> dict[str, Any]:
    changes = {}
    for field_name, api_name in _UPDATE_FIELDS.items():
        value = getattr(params, field_name)
        if value is not None:
            changes[api_name] = value
    return changes


async def _create(ctx: ToolContext, params: IssuesInput) -> ToolResult:
    owner = require_owner(params)
    create = require_capability(ctx, "create_issue")
    data = await upstream(
        "Falha ao criar issue",
        create(
            owner=owner,
            repo=params.repo,
            title=params.title,
            body=params.body,
            labels=params.labels,
            assignees=params.assignees,
            milestone=params.milestone,
        ),
    )
    return ToolResult.ok(params.action, f"Issue #{data.get('number')} criada com sucesso", data)


async def _list(ctx: ToolContext, params: IssuesInput) -> ToolResult:
    owner = require_owner(params)
    list_issues = ctx.vcs.capability("list_issues")
    if list_issues is None:
        return soft_unsupported(params.action, "Listagem de issues não disponível neste provider", issues=[])
    issues = await upstream(
        "Falha ao listar issues",
        list_issues(
            owner=owner,
            repo=params.repo,
            state=params.state or "open",
            labels=params.labels,
            since=params.since,
            page=params.page,
            limit=params.limit,
        ),
    )
    return ToolResult.ok(params.action, f"{len(issues)} issues encontradas", {"issues": issues, "total": len(issues)})


async def _get(ctx: ToolContext, params: IssuesInput) -> ToolResult:
    owner = require_owner(params)
    get_issue = ctx.vcs.capability("get_issue")
    if get_issue is None:
        return soft_unsupported(params.action, "Leitura de issues não disponível neste provider", issue=None)
    data = await upstream(
        "Falha ao obter issue",
        get_issue(owner=owner, repo=params.repo, number=params.issue_number),
    )
    return ToolResult.ok(params.action, f"Issue #{params.issue_number} obtida com sucesso", data)


async def _update(ctx: ToolContext, params: IssuesInput) -> ToolResult:
    owner = require_owner(params)
    changes = _changes(params)
    if not changes:
        raise ValidationError(message="Nenhum campo para atualizar foi fornecido")
    update = require_capability(ctx, "update_issue")
    data = await upstream(
        "Falha ao atualizar issue",
        update(owner=owner, repo=params.repo, number=params.issue_number, changes=changes),
    )
    return ToolResult.ok(params.action, f"Issue #{params.issue_number} atualizada com sucesso", data)


async def _close(ctx: ToolContext, params: IssuesInput) -> ToolResult:
    owner = require_owner(params)
    update = require_capability(ctx, "update_issue")
    data = await upstream(
        "Falha ao fechar issue",
        update(owner=owner, repo=params.repo, number=params.issue_number, changes={"state": "closed"}),
    )
    return ToolResult.ok(params.action, f"Issue #{params.issue_number} fechada com sucesso", data)


async def _comment(ctx: ToolContext, params: IssuesInput) -> ToolResult:
    owner = require_owner(params)
    comment = require_capability(ctx, "create_issue_comment")
    data = await upstream(
        "Falha ao comentar na issue",
        comment(owner=owner, repo=params.repo, number=params.issue_number, body=params.comment_body),
    )
    return ToolResult.ok(params.action, f"Comentário adicionado à issue #{params.issue_number}", data)


async def _search(ctx: ToolContext, params: IssuesInput) -> ToolResult:
    owner = require_owner(params)
    search = ctx.vcs.capability("search_issues")
    if search is None:
        return soft_unsupported(params.action, "Busca de issues não disponível neste provider", total_count=0, items=[])
    data = await upstream(
        "Falha ao buscar issues",
        search(
            owner=owner,
            repo=params.repo,
            query=params.query,
            state=params.state,
            author=params.author,
            assignee=params.assignee,
            label=params.label,
            page=params.page,
            limit=params.limit,
        ),
    )
    return ToolResult.ok(params.action, f"{data['total_count']} issues encontradas para '{params.query}'", data)


SPEC = ToolSpec(
    name="issues",
    description="Issues: create, list, get, update, close, comment and search.",
    input_model=IssuesInput,
    actions={
        "create": _create,
        "list": _list,
        "get": _get,
        "update": _update,
        "close": _close,
        "comment": _comment,
        "search": _search,
    },
    failure_message="Erro na operação de issues",
)
