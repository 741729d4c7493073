"""``repositories`` tool.

``repo`` is optional here: ``list``, ``search``, ``create``, ``template`` and
``mirror`` work without it.
"""

from __future__ import annotations

from typing import Annotated, ClassVar, Literal

from pydantic import Field

from ..envelope import ToolResult, soft_unsupported
from ..errors import GitCommandError, ValidationError
from ..schemas import (
    BranchName,
    GitArgument,
    Limit,
    MediumString,
    Owner,
    Page,
    ProviderName,
    RepoName,
    ShortString,
    ToolInput,
)
from .base import ToolContext, ToolSpec, require_capability, require_owner, upstream

RemoteUrl = Annotated[str, Field(max_length=1000, pattern=r"^(https?|ssh|git)://|^git@")]


class RepositoriesInput(ToolInput):
    action: Literal[
        "create",
        "list",
        "get",
        "update",
        "delete",
        "fork",
        "search",
        "clone",
        "archive",
        "transfer",
        "template",
        "mirror",
    ]
    owner: Owner | None = None
    repo: RepoName | None = None
    provider: ProviderName | None = None
    username: Owner | None = None
    name: RepoName | None = None
    description: MediumString | None = None
    private: bool | None = None
    auto_init: bool | None = None
    gitignores: ShortString | None = None
    license: ShortString | None = None
    readme: ShortString | None = None
    default_branch: BranchName | None = None
    organization: Owner | None = None
    new_name: RepoName | None = None
    new_description: MediumString | None = None
    new_private: bool | None = None
    new_default_branch: BranchName | None = None
    archive_status: bool | None = None
    new_owner: Owner | None = None
    query: ShortString | None = None
    template_owner: Owner | None = None
    template_repo: RepoName | None = None
    include_all_branches: bool | None = None
    mirror_url: RemoteUrl | None = None
    clone_url: RemoteUrl | None = None
    local_path: GitArgument | None = None
    page: Page | None = None
    limit: Limit | None = None

    REQUIRED_BY_ACTION: ClassVar[dict[str, tuple[tuple[str, ...], ...]]] = {
        "create": (("name",),),
        "get": (("repo",),),
        "update": (("repo",),),
        "delete": (("repo",),),
        "fork": (("repo",),),
        "clone": (("repo",),),
        "archive": (("repo",),),
        "transfer": (("repo",), ("new_owner",)),
        "search": (("query",),),
        "template": (("template_owner",), ("template_repo",), ("name",)),
        "mirror": (("mirror_url",), ("name",)),
    }


async def _create(ctx: ToolContext, params: RepositoriesInput) -> ToolResult:
    create = require_capability(ctx, "create_repository")
    data = await upstream(
        "Falha ao criar repositório",
        create(
            name=params.name,
            description=params.description,
            private=bool(params.private),
            auto_init=bool(params.auto_init),
            gitignores=params.gitignores,
            license=params.license,
            readme=params.readme,
            default_branch=params.default_branch,
            organization=params.organization,
        ),
    )
    return ToolResult.ok(params.action, f"Repositório '{params.name}' criado com sucesso", data)


async def _list(ctx: ToolContext, params: RepositoriesInput) -> ToolResult:
    list_repositories = ctx.vcs.capability("list_repositories")
    if list_repositories is None:
        return soft_unsupported(params.action, "Listagem de repositórios não disponível neste provider", repositories=[])
    repositories = await upstream(
        "Falha ao listar repositórios",
        list_repositories(username=params.username, page=params.page, limit=params.limit),
    )
    data = {"repositories": repositories, "total": len(repositories)}
    return ToolResult.ok(params.action, f"{len(repositories)} repositórios encontrados", data)


async def _get(ctx: ToolContext, params: RepositoriesInput) -> ToolResult:
    owner = require_owner(params)
    get_repository = ctx.vcs.capability("get_repository")
    if get_repository is None:
        return soft_unsupported(params.action, "Leitura de repositórios não disponível neste provider", repository=None)
    data = await upstream("Falha ao obter repositório", get_repository(owner=owner, repo=params.repo))
    return ToolResult.ok(params.action, f"Repositório {owner}/{params.repo} obtido com sucesso", data)


async def _update(ctx: ToolContext, params: RepositoriesInput) -> ToolResult:
    owner = require_owner(params)
    candidates = {
        "name": params.new_name,
        "description": params.new_description,
        "private": params.new_private,
        "default_branch": params.new_default_branch,
    }
    changes = {k: v for k, v in candidates.items() if v is not None}
    if not changes:
        raise ValidationError(message="Nenhum campo para atualizar foi fornecido")
    update = require_capability(ctx, "update_repository")
    data = await upstream("Falha ao atualizar repositório", update(owner=owner, repo=params.repo, changes=changes))
    return ToolResult.ok(params.action, f"Repositório {owner}/{params.repo} atualizado com sucesso", data)


async def _delete(ctx: ToolContext, params: RepositoriesInput) -> ToolResult:
    owner = require_owner(params)
    delete = require_capability(ctx, "delete_repository")
    data = await upstream("Falha ao deletar repositório", delete(owner=owner, repo=params.repo))
    return ToolResult.ok(params.action, f"Repositório {owner}/{params.repo} deletado com sucesso", data)


async def _fork(ctx: ToolContext, params: RepositoriesInput) -> ToolResult:
    owner = require_owner(params)
    fork = require_capability(ctx, "fork_repository")
    data = await upstream(
        "Falha ao fazer fork do repositório",
        fork(owner=owner, repo=params.repo, organization=params.organization),
    )
    return ToolResult.ok(params.action, f"Fork de {owner}/{params.repo} criado com sucesso", data)


async def _search(ctx: ToolContext, params: RepositoriesInput) -> ToolResult:
    search = ctx.vcs.capability("search_repositories")
    if search is None:
        return soft_unsupported(
            params.action, "Busca de repositórios não disponível neste provider", total_count=0, items=[]
        )
    data = await upstream(
        "Falha ao buscar repositórios",
        search(query=params.query, page=params.page, limit=params.limit),
    )
    return ToolResult.ok(params.action, f"{data['total_count']} repositórios encontrados para '{params.query}'", data)


async def _clone(ctx: ToolContext, params: RepositoriesInput) -> ToolResult:
    clone_url = params.clone_url
    if not clone_url:
        owner = require_owner(params)
        get_repository = require_capability(ctx, "get_repository")
        repository = await upstream("Falha ao clonar repositório", get_repository(owner=owner, repo=params.repo))
        clone_url = repository.get("clone_url")
        if not clone_url:
            raise ValidationError(message="URL de clone não disponível; informe 'clone_url'")

    local_path = params.local_path or params.repo
    if local_path.startswith("-"):
        raise ValidationError(message=f"Destino de clone inválido: '{local_path}'")
    result = await ctx.runtime.git.run(["clone", "--", clone_url, local_path])
    if not result.ok:
        detail = (result.error or result.output).strip()
        raise GitCommandError(message=detail or f"git clone saiu com código {result.exit_code}")
    data = {"clone_url": clone_url, "local_path": local_path, "output": (result.output + result.error).strip()}
    return ToolResult.ok(params.action, f"Repositório clonado em '{local_path}'", data)


async def _archive(ctx: ToolContext, params: RepositoriesInput) -> ToolResult:
    owner = require_owner(params)
    archive = require_capability(ctx, "archive_repository")
    archived = True if params.archive_status is None else params.archive_status
    data = await upstream(
        "Falha ao arquivar repositório",
        archive(owner=owner, repo=params.repo, archived=archived),
    )
    state = "arquivado" if archived else "desarquivado"
    return ToolResult.ok(params.action, f"Repositório {owner}/{params.repo} {state} com sucesso", data)


async def _transfer(ctx: ToolContext, params: RepositoriesInput) -> ToolResult:
    owner = require_owner(params)
    transfer = require_capability(ctx, "transfer_repository")
    data = await upstream(
        "Falha ao transferir repositório",
        transfer(owner=owner, repo=params.repo, new_owner=params.new_owner),
    )
    return ToolResult.ok(params.action, f"Repositório {owner}/{params.repo} transferido para {params.new_owner}", data)


async def _template(ctx: ToolContext, params: RepositoriesInput) -> ToolResult:
    create = require_capability(ctx, "create_from_template")
    data = await upstream(
        "Falha ao criar repositório a partir do template",
        create(
            template_owner=params.template_owner,
            template_repo=params.template_repo,
            name=params.name,
            owner=params.owner,
            description=params.description,
            private=bool(params.private),
            include_all_branches=bool(params.include_all_branches),
        ),
    )
    message = f"Repositório '{params.name}' criado a partir do template {params.template_owner}/{params.template_repo}"
    return ToolResult.ok(params.action, message, data)


async def _mirror(ctx: ToolContext, params: RepositoriesInput) -> ToolResult:
    mirror = require_capability(ctx, "mirror_repository")
    data = await upstream(
        "Falha ao criar mirror",
        mirror(
            clone_addr=params.mirror_url,
            repo_name=params.name,
            repo_owner=params.owner,
            description=params.description,
            private=bool(params.private),
        ),
    )
    return ToolResult.ok(params.action, f"Mirror '{params.name}' criado a partir de {params.mirror_url}", data)


SPEC = ToolSpec(
    name="repositories",
    description=(
        "Repositories: create, list, get, update, delete, fork, search, clone (local git clone), "
        "archive, transfer, template and mirror (Gitea)."
    ),
    input_model=RepositoriesInput,
    actions={
        "create": _create,
        "list": _list,
        "get": _get,
        "update": _update,
        "delete": _delete,
        "fork": _fork,
        "search": _search,
        "clone": _clone,
        "archive": _archive,
        "transfer": _transfer,
        "template": _template,
        "mirror": _mirror,
    },
    failure_message="Erro na operação de repositórios",
)
