"""``releases`` tool."""

from __future__ import annotations

from typing import Any, ClassVar, Literal

from ..envelope import ToolResult, soft_unsupported
from ..errors import ValidationError
from ..schemas import BranchName, Limit, LongString, Page, PositiveId, RepoToolInput, ShortString
from .base import ToolContext, ToolSpec, require_capability, require_owner, upstream


class ReleasesInput(RepoToolInput):
    action: Literal["create", "list", "get", "update", "delete", "publish"]
    tag_name: ShortString | None = None
    name: ShortString | None = None
    body: LongString | None = None
    draft: bool | None = None
    prerelease: bool | None = None
    target_commitish: BranchName | None = None
    release_id: PositiveId | None = None
    latest: bool | None = None
    new_tag_name: ShortString | None = None
    new_name: ShortString | None = None
    new_body: LongString | None = None
    new_draft: bool | None = None
    new_prerelease: bool | None = None
    new_target_commitish: BranchName | None = None
    page: Page | None = None
    limit: Limit | None = None

    REQUIRED_BY_ACTION: ClassVar[dict[str, tuple[tuple[str, ...], ...]]] = {
        "create": (("tag_name",),),
        "get": (("release_id", "tag_name", "latest"),),
        "update": (("release_id",),),
        "delete": (("release_id",),),
        "publish": (("release_id",),),
    }


_UPDATE_FIELDS = ("tag_name", "name", "body", "draft", "prerelease", "target_commitish")


def _changes(params: ReleasesInput) -> dict[str, Any]:
    return {
        field: getattr(params, f"new_{field}")
        for field in _UPDATE_FIELDS
        if getattr(params, f"new_{field}") is not None
    }


async def _create(ctx: ToolContext, params: ReleasesInput) -> ToolResult:
    owner = require_owner(params)
    create = require_capability(ctx, "create_release")
    data = await upstream(
        "Falha ao criar release",
        create(
            owner=owner,
            repo=params.repo,
            tag_name=params.tag_name,
            name=params.name,
            body=params.body,
            draft=bool(params.draft),
            prerelease=bool(params.prerelease),
            target_commitish=params.target_commitish or "main",
        ),
    )
    return ToolResult.ok(params.action, f"Release '{params.tag_name}' criada com sucesso", data)


async def _list(ctx: ToolContext, params: ReleasesInput) -> ToolResult:
    owner = require_owner(params)
    list_releases = ctx.vcs.capability("list_releases")
    if list_releases is None:
        return soft_unsupported(params.action, "Releases não disponíveis neste provider", releases=[])
    releases = await upstream(
        "Falha ao listar releases",
        list_releases(owner=owner, repo=params.repo, page=params.page, limit=params.limit),
    )
    data = {"releases": releases, "total": len(releases)}
    return ToolResult.ok(params.action, f"{len(releases)} releases encontradas", data)


async def _get(ctx: ToolContext, params: ReleasesInput) -> ToolResult:
    owner = require_owner(params)
    if params.release_id is not None:
        operation, kwargs = "get_release", {"release_id": params.release_id}
        label = f"{params.release_id}"
    elif params.tag_name:
        operation, kwargs = "get_release_by_tag", {"tag": params.tag_name}
        label = f"'{params.tag_name}'"
    else:
        operation, kwargs = "get_latest_release", {}
        label = "mais recente"

    get_release = ctx.vcs.capability(operation)
    if get_release is None:
        return soft_unsupported(params.action, "Leitura de releases não disponível neste provider", release=None)
    data = await upstream("Falha ao obter release", get_release(owner=owner, repo=params.repo, **kwargs))
    return ToolResult.ok(params.action, f"Release {label} obtida com sucesso", data)


async def _update(ctx: ToolContext, params: ReleasesInput) -> ToolResult:
    owner = require_owner(params)
    changes = _changes(params)
    if not changes:
        raise ValidationError(message="Nenhum campo para atualizar foi fornecido")
    update = require_capability(ctx, "update_release")
    data = await upstream(
        "Falha ao atualizar release",
        update(owner=owner, repo=params.repo, release_id=params.release_id, changes=changes),
    )
    return ToolResult.ok(params.action, f"Release {params.release_id} atualizada com sucesso", data)


async def _delete(ctx: ToolContext, params: ReleasesInput) -> ToolResult:
    owner = require_owner(params)
    delete = require_capability(ctx, "delete_release")
    data = await upstream(
        "Falha ao deletar release",
        delete(owner=owner, repo=params.repo, release_id=params.release_id),
    )
    return ToolResult.ok(params.action, f"Release {params.release_id} deletada com sucesso", data)


async def _publish(ctx: ToolContext, params: ReleasesInput) -> ToolResult:
    owner = require_owner(params)
    update = require_capability(ctx, "update_release")
    data = await upstream(
        "Falha ao publicar release",
        update(owner=owner, repo=params.repo, release_id=params.release_id, changes={"draft": False}),
    )
    return ToolResult.ok(params.action, f"Release {params.release_id} publicada com sucesso", data)


SPEC = ToolSpec(
    name="releases",
    description="Releases: create, list, get (by id, tag or latest), update, delete and publish a draft.",
    input_model=ReleasesInput,
    actions={
        "create": _create,
        "list": _list,
        "get": _get,
        "update": _update,
        "delete": _delete,
        "publish": _publish,
    },
    failure_message="Erro na operação de releases",
)
