"""``git-bundle`` tool: local ``git bundle`` operations.

Runs against a working copy on disk; no provider API call is made, so
``provider`` is only recorded, not resolved.
"""

from __future__ import annotations

from typing import Any, ClassVar, Literal

from pydantic import Field

from ..envelope import ToolResult
from ..errors import GitCommandError
from ..git_runner import GitResult
from ..schemas import GitArgument, MediumString, ProviderName, RepoName, ToolInput
from .base import ToolContext, ToolSpec


class GitBundleInput(ToolInput):
    action: Literal["create", "verify", "list-heads", "unbundle"]
    repo: RepoName
    provider: ProviderName
    project_path: MediumString = Field(alias="projectPath", description="Local project path for git operations")
    bundle_file: GitArgument | None = None
    verify_bundle: GitArgument | None = None
    list_bundle: GitArgument | None = None
    unbundle_file: GitArgument | None = None
    unbundle_path: MediumString | None = None
    commit_range: GitArgument | None = None
    branch_name: GitArgument | None = None
    all_branches: bool | None = None
    all_tags: bool | None = None
    all_remotes: bool | None = None

    REQUIRED_BY_ACTION: ClassVar[dict[str, tuple[tuple[str, ...], ...]]] = {
        "create": (("bundle_file",),),
        "verify": (("verify_bundle", "bundle_file"),),
        "list-heads": (("list_bundle", "bundle_file"),),
        "unbundle": (("unbundle_file", "bundle_file"),),
    }


def parse_heads(output: str) -> list[dict[str, str]]:
    """Parse ``<sha> <ref>`` lines from ``git bundle list-heads``."""
    heads = []
    for line in output.splitlines():
        parts = line.strip().split()
        if not parts:
            continue
        heads.append({"commit": parts[0], "ref": parts[1] if len(parts) > 1 else "HEAD"})
    return heads


def _combined(result: GitResult) -> str:
    return "\n".join(part.strip() for part in (result.output, result.error) if part.strip())


async def _git(ctx: ToolContext, args: list[str], cwd: str, failure_prefix: str) -> GitResult:
    result = await ctx.runtime.git.run(args, cwd=cwd)
    if not result.ok:
        detail = _combined(result) or f"git saiu com código {result.exit_code}"
        raise GitCommandError(message=f"{failure_prefix}: {detail}")
    return result


def _revisions(params: GitBundleInput) -> list[str]:
    if params.all_branches:
        return ["--all"]
    revisions = []
    if params.all_tags:
        revisions.append("--tags")
    if params.all_remotes:
        revisions.append("--remotes")
    if revisions:
        return revisions
    if params.commit_range:
        return [params.commit_range]
    if params.branch_name:
        return [params.branch_name]
    return ["HEAD"]


async def _create(ctx: ToolContext, params: GitBundleInput) -> ToolResult:
    revisions = _revisions(params)
    result = await _git(
        ctx,
        ["bundle", "create", params.bundle_file, *revisions],
        params.project_path,
        "Falha ao criar bundle",
    )
    data: dict[str, Any] = {
        "bundle_file": params.bundle_file,
        "revisions": revisions,
        "commit_range": params.commit_range,
        "branch_name": params.branch_name,
        "output": _combined(result),
    }
    return ToolResult.ok(params.action, f"Bundle criado com sucesso: {params.bundle_file}", data)


async def _verify(ctx: ToolContext, params: GitBundleInput) -> ToolResult:
    bundle = params.verify_bundle or params.bundle_file
    result = await _git(ctx, ["bundle", "verify", bundle], params.project_path, "Falha ao verificar bundle")
    data = {"bundle": bundle, "valid": True, "output": _combined(result)}
    return ToolResult.ok(params.action, f"Bundle válido: {bundle}", data)


async def _list_heads(ctx: ToolContext, params: GitBundleInput) -> ToolResult:
    bundle = params.list_bundle or params.bundle_file
    result = await _git(
        ctx,
        ["bundle", "list-heads", bundle],
        params.project_path,
        "Falha ao listar heads do bundle",
    )
    heads = parse_heads(result.output)
    data = {"bundle": bundle, "heads": heads, "total": len(heads)}
    return ToolResult.ok(params.action, f"{len(heads)} heads encontrados em {bundle}", data)


async def _unbundle(ctx: ToolContext, params: GitBundleInput) -> ToolResult:
    bundle = params.unbundle_file or params.bundle_file
    path = params.unbundle_path or params.project_path
    result = await _git(ctx, ["bundle", "unbundle", bundle], path, "Falha ao extrair bundle")
    data = {"bundle_file": bundle, "unbundle_path": path, "heads": parse_heads(result.output)}
    return ToolResult.ok(params.action, f"Bundle extraído com sucesso: {bundle}", data)


SPEC = ToolSpec(
    name="git-bundle",
    description=(
        "Local git bundles for offline transfer: create (HEAD, a branch, a commit range, or --all/--tags/--remotes), "
        "verify, list-heads and unbundle. Runs git in projectPath."
    ),
    input_model=GitBundleInput,
    actions={
        "create": _create,
        "verify": _verify,
        "list-heads": _list_heads,
        "unbundle": _unbundle,
    },
    failure_message="Erro na operação de bundle",
    uses_provider=False,
    detect_user=False,
)
