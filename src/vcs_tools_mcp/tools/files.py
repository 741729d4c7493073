"""``files`` tool: repository contents."""

from __future__ import annotations

from typing import Any, ClassVar, Literal

from ..envelope import ToolResult, soft_unsupported
from ..errors import ProviderError, ValidationError
from ..schemas import BranchName, Limit, LongString, MediumString, Page, RepoToolInput, ShortString
from .base import ToolContext, ToolSpec, require_capability, require_owner, upstream

DEFAULT_LIST_LIMIT = 30
MIN_SEARCH_LENGTH = 3


class FilesInput(RepoToolInput):
    action: Literal["get", "create", "update", "delete", "list", "search"]
    path: MediumString | None = None
    content: LongString | None = None
    message: MediumString | None = None
    branch: BranchName | None = None
    sha: ShortString | None = None
    ref: BranchName | None = None
    query: ShortString | None = None
    page: Page | None = None
    limit: Limit | None = None

    REQUIRED_BY_ACTION: ClassVar[dict[str, tuple[tuple[str, ...], ...]]] = {
        "get": (("path",),),
        "create": (("path",), ("content",)),
        "update": (("path",), ("content",)),
        "delete": (("path",),),
        "search": (("query",),),
    }


def _paginate(items: list[Any], page: int | None, limit: int | None) -> tuple[list[Any], int, int]:
    page = page or 1
    limit = limit or DEFAULT_LIST_LIMIT
    start = (page - 1) * limit
    return items[start : start + limit], page, limit


async def _current_sha(ctx: ToolContext, params: FilesInput, owner: str) -> str:
    if params.sha:
        return params.sha
    get_file = require_capability(ctx, "get_file")
    try:
        current = await get_file(owner=owner, repo=params.repo, path=params.path, ref=params.branch)
    except ProviderError:
        current = {}
    sha = current.get("sha") if isinstance(current, dict) else None
    if not sha:
        raise ValidationError(
            message=(
                f"Não foi possível obter SHA automaticamente para '{params.path}'. "
                "Forneça o parâmetro 'sha' manualmente."
            )
        )
    return sha


async def _get(ctx: ToolContext, params: FilesInput) -> ToolResult:
    owner = require_owner(params)
    get_file = ctx.vcs.capability("get_file")
    if get_file is None:
        return soft_unsupported(params.action, "Leitura de arquivos não disponível neste provider", content=None)
    data = await upstream(
        "Falha ao obter arquivo",
        get_file(owner=owner, repo=params.repo, path=params.path, ref=params.ref or params.branch),
    )
    return ToolResult.ok(params.action, f"Arquivo '{params.path}' obtido com sucesso", data)


async def _create(ctx: ToolContext, params: FilesInput) -> ToolResult:
    owner = require_owner(params)
    create = require_capability(ctx, "create_file")
    data = await upstream(
        "Falha ao criar arquivo",
        create(
            owner=owner,
            repo=params.repo,
            path=params.path,
            content=params.content,
            message=params.message or f"Criar {params.path}",
            branch=params.branch,
        ),
    )
    return ToolResult.ok(params.action, f"Arquivo '{params.path}' criado com sucesso", data)


async def _update(ctx: ToolContext, params: FilesInput) -> ToolResult:
    owner = require_owner(params)
    update = require_capability(ctx, "update_file")
    sha = await _current_sha(ctx, params, owner)
    data = await upstream(
        "Falha ao atualizar arquivo",
        update(
            owner=owner,
            repo=params.repo,
            path=params.path,
            content=params.content,
            message=params.message or f"Atualizar {params.path}",
            sha=sha,
            branch=params.branch,
        ),
    )
    return ToolResult.ok(params.action, f"Arquivo '{params.path}' atualizado com sucesso", data)


async def _delete(ctx: ToolContext, params: FilesInput) -> ToolResult:
    owner = require_owner(params)
    delete = require_capability(ctx, "delete_file")
    sha = await _current_sha(ctx, params, owner)
    data = await upstream(
        "Falha ao deletar arquivo",
        delete(
            owner=owner,
            repo=params.repo,
            path=params.path,
            message=params.message or f"Remover {params.path}",
            sha=sha,
            branch=params.branch,
        ),
    )
    return ToolResult.ok(params.action, f"Arquivo '{params.path}' deletado com sucesso", data)


async def _list(ctx: ToolContext, params: FilesInput) -> ToolResult:
    owner = require_owner(params)
    list_files = ctx.vcs.capability("list_files")
    path = params.path or ""
    if list_files is None:
        return soft_unsupported(
            params.action, "Listagem de arquivos não disponível neste provider", path=path, files=[], total=0
        )
    entries = await upstream(
        "Falha ao listar arquivos",
        list_files(owner=owner, repo=params.repo, path=path, ref=params.ref or params.branch),
    )
    files, page, limit = _paginate(entries, params.page, params.limit)
    data = {"path": path, "files": files, "page": page, "limit": limit, "total": len(entries)}
    return ToolResult.ok(params.action, f"{len(files)} itens encontrados em '{path or 'raiz'}'", data)


async def _search(ctx: ToolContext, params: FilesInput) -> ToolResult:
    owner = require_owner(params)
    query = (params.query or "").strip()
    if len(query) < MIN_SEARCH_LENGTH:
        raise ValidationError(message=f"A busca requer pelo menos {MIN_SEARCH_LENGTH} caracteres")

    get_tree = ctx.vcs.capability("get_tree")
    if get_tree is None:
        return soft_unsupported(
            params.action, "Busca de arquivos não disponível neste provider", query=query, files=[], total=0
        )

    ref = params.ref or params.branch
    if not ref:
        get_repository = require_capability(ctx, "get_repository")
        repository = await upstream("Falha ao buscar arquivos", get_repository(owner=owner, repo=params.repo))
        ref = repository.get("default_branch") or "main"

    tree = await upstream("Falha ao buscar arquivos", get_tree(owner=owner, repo=params.repo, ref=ref))
    needle = query.lower()
    matches = [
        {"path": entry.get("path"), "sha": entry.get("sha"), "size": entry.get("size")}
        for entry in tree["tree"]
        if entry.get("type") == "blob" and needle in str(entry.get("path", "")).lower()
    ]
    files, page, limit = _paginate(matches, params.page, params.limit)
    data = {
        "query": query,
        "ref": ref,
        "files": files,
        "page": page,
        "limit": limit,
        "total": len(matches),
        "truncated": tree.get("truncated", False),
    }
    return ToolResult.ok(params.action, f"{len(matches)} arquivos encontrados para '{query}'", data)


SPEC = ToolSpec(
    name="files",
    description=(
        "Repository files: get, create, update, delete, list (directory) and search (by path). "
        "update/delete fetch the current SHA automatically when it is not given."
    ),
    input_model=FilesInput,
    actions={
        "get": _get,
        "create": _create,
        "update": _update,
        "delete": _delete,
        "list": _list,
        "search": _search,
    },
    failure_message="Erro na operação de arquivos",
)
