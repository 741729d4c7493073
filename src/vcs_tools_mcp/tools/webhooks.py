"""``webhooks`` tool."""

from __future__ import annotations

from typing import Annotated, ClassVar, Literal

from pydantic import Field

from ..envelope import ToolResult, soft_unsupported
from ..errors import ValidationError
from ..schemas import Limit, Page, PositiveId, RepoToolInput, ShortString, StringList
from .base import ToolContext, ToolSpec, require_capability, require_owner, upstream

WebhookUrl = Annotated[str, Field(max_length=1000, pattern=r"^https?://")]
ContentType = Literal["json", "form"]


class WebhooksInput(RepoToolInput):
    action: Literal["create", "list", "get", "update", "delete", "test"]
    url: WebhookUrl | None = None
    content_type: ContentType | None = None
    secret: ShortString | None = None
    events: StringList | None = None
    active: bool | None = None
    webhook_id: PositiveId | None = None
    new_url: WebhookUrl | None = None
    new_content_type: ContentType | None = None
    new_secret: ShortString | None = None
    new_events: StringList | None = None
    new_active: bool | None = None
    page: Page | None = None
    limit: Limit | None = None

    REQUIRED_BY_ACTION: ClassVar[dict[str, tuple[tuple[str, ...], ...]]] = {
        "create": (("url",),),
        "get": (("webhook_id",),),
        "update": (("webhook_id",),),
        "delete": (("webhook_id",),),
        "test": (("webhook_id",),),
    }


async def _create(ctx: ToolContext, params: WebhooksInput) -> ToolResult:
    owner = require_owner(params)
    create = require_capability(ctx, "create_webhook")
    data = await upstream(
        "Falha ao criar webhook",
        create(
            owner=owner,
            repo=params.repo,
            url=params.url,
            content_type=params.content_type or "json",
            secret=params.secret,
            events=params.events or ["push"],
            active=True if params.active is None else params.active,
        ),
    )
    return ToolResult.ok(params.action, f"Webhook {data.get('id')} criado com sucesso", data)


async def _list(ctx: ToolContext, params: WebhooksInput) -> ToolResult:
    owner = require_owner(params)
    list_webhooks = ctx.vcs.capability("list_webhooks")
    if list_webhooks is None:
        return soft_unsupported(params.action, "Webhooks não disponíveis neste provider", webhooks=[])
    webhooks = await upstream(
        "Falha ao listar webhooks",
        list_webhooks(owner=owner, repo=params.repo, page=params.page, limit=params.limit),
    )
    data = {"webhooks": webhooks, "total": len(webhooks)}
    return ToolResult.ok(params.action, f"{len(webhooks)} webhooks encontrados", data)


async def _get(ctx: ToolContext, params: WebhooksInput) -> ToolResult:
    owner = require_owner(params)
    get_webhook = ctx.vcs.capability("get_webhook")
    if get_webhook is None:
        return soft_unsupported(params.action, "Webhooks não disponíveis neste provider", webhook=None)
    data = await upstream(
        "Falha ao obter webhook",
        get_webhook(owner=owner, repo=params.repo, webhook_id=params.webhook_id),
    )
    return ToolResult.ok(params.action, f"Webhook {params.webhook_id} obtido com sucesso", data)


async def _update(ctx: ToolContext, params: WebhooksInput) -> ToolResult:
    owner = require_owner(params)
    changes = {
        "url": params.new_url,
        "content_type": params.new_content_type,
        "secret": params.new_secret,
        "events": params.new_events,
        "active": params.new_active,
    }
    if all(value is None for value in changes.values()):
        raise ValidationError(message="Nenhum campo para atualizar foi fornecido")
    update = require_capability(ctx, "update_webhook")
    data = await upstream(
        "Falha ao atualizar webhook",
        update(owner=owner, repo=params.repo, webhook_id=params.webhook_id, **changes),
    )
    return ToolResult.ok(params.action, f"Webhook {params.webhook_id} atualizado com sucesso", data)


async def _delete(ctx: ToolContext, params: WebhooksInput) -> ToolResult:
    owner = require_owner(params)
    delete = require_capability(ctx, "delete_webhook")
    data = await upstream(
        "Falha ao deletar webhook",
        delete(owner=owner, repo=params.repo, webhook_id=params.webhook_id),
    )
    return ToolResult.ok(params.action, f"Webhook {params.webhook_id} deletado com sucesso", data)


async def _test(ctx: ToolContext, params: WebhooksInput) -> ToolResult:
    owner = require_owner(params)
    get_webhook = require_capability(ctx, "get_webhook")
    test = require_capability(ctx, "test_webhook")
    webhook = await upstream(
        "Falha ao testar webhook",
        get_webhook(owner=owner, repo=params.repo, webhook_id=params.webhook_id),
    )
    result = await upstream(
        "Falha ao testar webhook",
        test(owner=owner, repo=params.repo, webhook_id=params.webhook_id),
    )
    data = {**result, "url": (webhook.get("config") or {}).get("url")}
    return ToolResult.ok(params.action, f"Webhook {params.webhook_id} testado com sucesso", data)


SPEC = ToolSpec(
    name="webhooks",
    description="Repository webhooks: create, list, get, update, delete and test delivery.",
    input_model=WebhooksInput,
    actions={
        "create": _create,
        "list": _list,
        "get": _get,
        "update": _update,
        "delete": _delete,
        "test": _test,
    },
    failure_message="Erro na operação de webhooks",
)
