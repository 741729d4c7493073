"""``security`` tool: scans, alerts, branch protection, compliance and dependencies."""

from __future__ import annotations

import csv
import io
from typing import Annotated, Any, ClassVar, Literal

from pydantic import Field

from ..envelope import ToolResult, soft_unsupported
from ..errors import MISSING_PARAMETERS_MESSAGE, ValidationError
from ..schemas import BranchName, Limit, MediumString, Page, PositiveId, RepoToolInput, ShortString
from .base import ToolContext, ToolSpec, require_capability, require_owner, upstream

ComplianceFramework = Literal["sox", "pci", "hipaa", "gdpr", "iso27001"]

COMPLIANCE_CHECKS = ("branch_protection", "vulnerability_alerts", "secret_scanning", "license", "security_policy")

FRAMEWORK_REQUIREMENTS: dict[str, tuple[str, ...]] = {
    "sox": ("branch_protection", "security_policy"),
    "pci": ("branch_protection", "vulnerability_alerts", "secret_scanning"),
    "hipaa": ("branch_protection", "vulnerability_alerts", "secret_scanning", "security_policy"),
    "gdpr": ("secret_scanning", "security_policy"),
    "iso27001": COMPLIANCE_CHECKS,
}


class SecurityInput(RepoToolInput):
    action: Literal["scan", "vulnerabilities", "alerts", "policies", "compliance", "dependencies", "advisories"]
    scan_type: Literal["code", "dependencies", "secrets", "infrastructure"] | None = None
    ref: BranchName | None = None
    branch: BranchName | None = None
    severity: Literal["low", "medium", "high", "critical"] | None = None
    state: Literal["open", "dismissed", "fixed", "auto_dismissed"] | None = None
    advisory_state: Literal["triage", "draft", "published", "closed"] | None = None
    ecosystem: ShortString | None = None
    package_name: ShortString | None = None
    alert_number: PositiveId | None = None
    dismiss_reason: Literal["fix_started", "inaccurate", "no_bandwidth", "not_used", "tolerable_risk"] | None = None
    dismiss_comment: MediumString | None = None
    policy_config: Annotated[dict[str, Any], Field(max_length=20)] | None = None
    compliance_framework: ComplianceFramework | None = None
    report_format: Literal["json", "csv"] | None = None
    created_after: ShortString | None = None
    created_before: ShortString | None = None
    page: Page | None = None
    limit: Limit | None = None


def _within_window(item: dict[str, Any], after: str | None, before: str | None) -> bool:
    # ISO-8601 timestamps compare correctly as strings.
    created = str(item.get("created_at") or "")
    if after and created < after:
        return False
    if before and created > before:
        return False
    return True


def evaluate_compliance(posture: dict[str, Any], framework: str | None) -> dict[str, Any]:
    """Score a security posture against a framework's required checks."""
    required = FRAMEWORK_REQUIREMENTS.get(framework or "", COMPLIANCE_CHECKS)
    checks = [
        {"check": name, "passed": bool(posture.get(name)), "required": name in required}
        for name in COMPLIANCE_CHECKS
    ]
    passed = sum(1 for c in checks if c["required"] and c["passed"])
    return {
        "framework": framework or "general",
        "checks": checks,
        "passed": passed,
        "required": len(required),
        "score": round(100 * passed / len(required)) if required else 100,
        "compliant": passed == len(required),
    }


def compliance_csv(report: dict[str, Any]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(["check", "required", "passed"])
    for check in report["checks"]:
        writer.writerow([check["check"], str(check["required"]).lower(), str(check["passed"]).lower()])
    return buffer.getvalue()


async def _scan(ctx: ToolContext, params: SecurityInput) -> ToolResult:
    owner = require_owner(params)
    scan = ctx.vcs.capability("run_security_scan")
    if scan is None:
        return soft_unsupported(params.action, "Scan de segurança não disponível neste provider", open_alerts=0)
    scan_type = params.scan_type or "code"
    data = await upstream(
        "Falha ao executar scan de segurança",
        scan(owner=owner, repo=params.repo, scan_type=scan_type, ref=params.ref),
    )
    message = f"Scan de segurança ({scan_type}) concluído: {data.get('open_alerts', 0)} alertas abertos"
    return ToolResult.ok(params.action, message, data)


async def _vulnerabilities(ctx: ToolContext, params: SecurityInput) -> ToolResult:
    owner = require_owner(params)
    list_vulnerabilities = ctx.vcs.capability("list_security_vulnerabilities")
    if list_vulnerabilities is None:
        return soft_unsupported(
            params.action,
            "Vulnerabilidades não disponíveis neste provider",
            total_count=0,
            vulnerabilities=[],
        )
    data = await upstream(
        "Falha ao listar vulnerabilidades",
        list_vulnerabilities(
            owner=owner,
            repo=params.repo,
            state=params.state,
            severity=params.severity,
            ecosystem=params.ecosystem,
            package_name=params.package_name,
            page=params.page,
            limit=params.limit,
        ),
    )
    vulnerabilities = [
        v for v in data["vulnerabilities"] if _within_window(v, params.created_after, params.created_before)
    ]
    data = {"total_count": len(vulnerabilities), "vulnerabilities": vulnerabilities}
    return ToolResult.ok(params.action, f"{len(vulnerabilities)} vulnerabilidades encontradas", data)


async def _manage_alert(ctx: ToolContext, params: SecurityInput, owner: str, operation: str) -> ToolResult:
    manage = require_capability(ctx, "manage_security_alerts")
    data = await upstream(
        "Falha ao gerenciar alertas de segurança",
        manage(
            owner=owner,
            repo=params.repo,
            alert_number=params.alert_number,
            operation=operation,
            dismiss_reason=params.dismiss_reason,
            dismiss_comment=params.dismiss_comment,
        ),
    )
    verb = "descartado" if operation == "dismiss" else "reaberto"
    return ToolResult.ok(params.action, f"Alerta #{params.alert_number} {verb} com sucesso", data)


async def _alerts(ctx: ToolContext, params: SecurityInput) -> ToolResult:
    owner = require_owner(params)
    if params.dismiss_reason and params.alert_number is None:
        raise ValidationError(message=MISSING_PARAMETERS_MESSAGE, hint="dismiss_reason requer alert_number")
    if params.alert_number is not None and params.dismiss_reason:
        return await _manage_alert(ctx, params, owner, "dismiss")
    if params.alert_number is not None and params.state == "open":
        return await _manage_alert(ctx, params, owner, "reopen")

    if params.alert_number is not None:
        get_alert = ctx.vcs.capability("get_security_alert")
        if get_alert is None:
            return soft_unsupported(params.action, "Alertas de segurança não disponíveis neste provider", alert=None)
        data = await upstream(
            "Falha ao obter alerta de segurança",
            get_alert(owner=owner, repo=params.repo, alert_number=params.alert_number),
        )
        return ToolResult.ok(params.action, f"Alerta #{params.alert_number} obtido com sucesso", data)

    list_alerts = ctx.vcs.capability("list_security_alerts")
    if list_alerts is None:
        return soft_unsupported(
            params.action, "Alertas de segurança não disponíveis neste provider", alerts=[], total=0
        )
    if params.page and params.page > 1:
        # Alerts paginate by cursor upstream; only the first page is addressable.
        return soft_unsupported(
            params.action,
            "Paginação por número de página não suportada para alertas; use 'limit' (até 100)",
            alerts=[],
            total=0,
            page=params.page,
        )
    alerts = await upstream(
        "Falha ao listar alertas de segurança",
        list_alerts(
            owner=owner,
            repo=params.repo,
            state=params.state,
            severity=params.severity,
            ecosystem=params.ecosystem,
            package_name=params.package_name,
            page=params.page,
            limit=params.limit,
        ),
    )
    alerts = [a for a in alerts if _within_window(a, params.created_after, params.created_before)]
    return ToolResult.ok(params.action, f"{len(alerts)} alertas encontrados", {"alerts": alerts, "total": len(alerts)})


async def _default_branch(ctx: ToolContext, params: SecurityInput, owner: str) -> str:
    if params.branch:
        return params.branch
    get_repository = require_capability(ctx, "get_repository")
    repository = await upstream("Falha ao obter branch padrão", get_repository(owner=owner, repo=params.repo))
    return repository.get("default_branch") or "main"


async def _policies(ctx: ToolContext, params: SecurityInput) -> ToolResult:
    owner = require_owner(params)
    if params.policy_config:
        update = require_capability(ctx, "update_security_policy")
        branch = await _default_branch(ctx, params, owner)
        data = await upstream(
            "Falha ao atualizar políticas de segurança",
            update(owner=owner, repo=params.repo, branch=branch, policy_config=params.policy_config),
        )
        return ToolResult.ok(params.action, f"Proteção da branch '{branch}' atualizada com sucesso", data)

    get_policy = ctx.vcs.capability("get_security_policy")
    if get_policy is None:
        return soft_unsupported(params.action, "Políticas de segurança não disponíveis neste provider", protection=None)
    branch = await _default_branch(ctx, params, owner)
    data = await upstream(
        "Falha ao obter políticas de segurança",
        get_policy(owner=owner, repo=params.repo, branch=branch),
    )
    return ToolResult.ok(params.action, f"Políticas de segurança da branch '{branch}' obtidas com sucesso", data)


async def _compliance(ctx: ToolContext, params: SecurityInput) -> ToolResult:
    owner = require_owner(params)
    get_posture = ctx.vcs.capability("get_security_posture")
    if get_posture is None:
        return soft_unsupported(params.action, "Verificação de conformidade não disponível neste provider", checks=[])
    posture = await upstream(
        "Falha ao verificar conformidade",
        get_posture(owner=owner, repo=params.repo),
    )
    report = evaluate_compliance(posture, params.compliance_framework)
    report["report_format"] = params.report_format or "json"
    if params.report_format == "csv":
        report["content"] = compliance_csv(report)
    message = f"Conformidade {report['framework']}: {report['passed']}/{report['required']} verificações atendidas"
    return ToolResult.ok(params.action, message, report)


async def _dependencies(ctx: ToolContext, params: SecurityInput) -> ToolResult:
    owner = require_owner(params)
    analyze = ctx.vcs.capability("analyze_dependencies")
    if analyze is None:
        return soft_unsupported(
            params.action, "Análise de dependências não disponível neste provider", total_count=0, dependencies=[]
        )
    data = await upstream("Falha ao analisar dependências", analyze(owner=owner, repo=params.repo))
    dependencies = data["dependencies"]
    if params.ecosystem:
        dependencies = [d for d in dependencies if d.get("ecosystem") == params.ecosystem.lower()]
    if params.package_name:
        dependencies = [d for d in dependencies if d.get("name") == params.package_name]
    data = {**data, "total_count": len(dependencies), "dependencies": dependencies}
    return ToolResult.ok(params.action, f"{len(dependencies)} dependências analisadas", data)


async def _advisories(ctx: ToolContext, params: SecurityInput) -> ToolResult:
    owner = require_owner(params)
    list_advisories = ctx.vcs.capability("list_security_advisories")
    if list_advisories is None:
        return soft_unsupported(
            params.action, "Advisories não disponíveis neste provider", total_count=0, advisories=[]
        )
    data = await upstream(
        "Falha ao listar advisories",
        list_advisories(
            owner=owner,
            repo=params.repo,
            state=params.advisory_state,
            severity=params.severity,
            page=params.page,
            limit=params.limit,
        ),
    )
    return ToolResult.ok(params.action, f"{data['total_count']} advisories encontrados", data)


SPEC = ToolSpec(
    name="security",
    description=(
        "Repository security (GitHub): scan summary, vulnerabilities, dependabot alerts (read, dismiss, reopen), "
        "branch protection policies, compliance checklist, dependency analysis and security advisories."
    ),
    input_model=SecurityInput,
    actions={
        "scan": _scan,
        "vulnerabilities": _vulnerabilities,
        "alerts": _alerts,
        "policies": _policies,
        "compliance": _compliance,
        "dependencies": _dependencies,
        "advisories": _advisories,
    },
    failure_message="Erro na operação de segurança",
)
