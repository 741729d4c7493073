"""``analytics`` tool. Every action is read-only."""

from __future__ import annotations

from typing import Any, Literal

from ..envelope import ToolResult, soft_unsupported
from ..schemas import BranchName, Limit, Page, RepoToolInput, ShortString
from .base import ToolContext, ToolSpec, require_owner, upstream


class AnalyticsInput(RepoToolInput):
    action: Literal["traffic", "contributors", "activity", "performance", "reports", "trends", "insights"]
    period: Literal["day", "week", "month", "quarter", "year"] | None = None
    start_date: ShortString | None = None
    end_date: ShortString | None = None
    metric_type: Literal["views", "clones", "visitors", "unique_visitors", "referrers", "paths"] | None = None
    contributor_type: Literal["all", "humans", "bots"] | None = None
    sort_by: Literal["contributions", "login"] | None = None
    activity_type: Literal["commits", "issues", "pulls", "releases", "all"] | None = None
    branch: BranchName | None = None
    performance_metric: Literal["build_time", "deployment_frequency", "success_rate"] | None = None
    report_type: Literal["summary", "detailed", "trends"] | None = None
    report_format: Literal["json", "csv"] | None = None
    trend_metric: Literal["commits", "contributors", "issues"] | None = None
    trend_period: Literal["daily", "weekly", "monthly"] | None = None
    page: Page | None = None
    limit: Limit | None = None


async def _run(
    ctx: ToolContext,
    params: AnalyticsInput,
    *,
    operation: str,
    unavailable: str,
    failure: str,
    message: str,
    **kwargs: Any,
) -> ToolResult:
    owner = require_owner(params)
    func = ctx.vcs.capability(operation)
    if func is None:
        return soft_unsupported(
            params.action,
            f"{unavailable} não disponíveis neste provider",
            period=params.period or "month",
            metrics={},
        )
    data = await upstream(failure, func(owner=owner, repo=params.repo, **kwargs))
    return ToolResult.ok(params.action, message, data)


async def _traffic(ctx: ToolContext, params: AnalyticsInput) -> ToolResult:
    return await _run(
        ctx,
        params,
        operation="get_traffic_stats",
        unavailable="Estatísticas de tráfego",
        failure="Falha ao obter estatísticas de tráfego",
        message="Estatísticas de tráfego obtidas com sucesso",
        metric_type=params.metric_type or "views",
        period=params.period or "day",
    )


async def _contributors(ctx: ToolContext, params: AnalyticsInput) -> ToolResult:
    return await _run(
        ctx,
        params,
        operation="analyze_contributors",
        unavailable="Dados de contribuidores",
        failure="Falha ao analisar contribuidores",
        message="Análise de contribuidores concluída com sucesso",
        contributor_type=params.contributor_type or "all",
        sort_by=params.sort_by or "contributions",
        page=params.page,
        limit=params.limit,
    )


async def _activity(ctx: ToolContext, params: AnalyticsInput) -> ToolResult:
    return await _run(
        ctx,
        params,
        operation="get_activity_stats",
        unavailable="Estatísticas de atividade",
        failure="Falha ao obter estatísticas de atividade",
        message="Estatísticas de atividade obtidas com sucesso",
        activity_type=params.activity_type or "all",
        branch=params.branch,
        since=params.start_date,
        until=params.end_date,
    )


async def _performance(ctx: ToolContext, params: AnalyticsInput) -> ToolResult:
    return await _run(
        ctx,
        params,
        operation="get_performance_metrics",
        unavailable="Métricas de performance",
        failure="Falha ao obter métricas de performance",
        message="Métricas de performance obtidas com sucesso",
        performance_metric=params.performance_metric or "build_time",
        since=params.start_date,
        until=params.end_date,
    )


async def _reports(ctx: ToolContext, params: AnalyticsInput) -> ToolResult:
    return await _run(
        ctx,
        params,
        operation="generate_reports",
        unavailable="Relatórios",
        failure="Falha ao gerar relatório",
        message="Relatório gerado com sucesso",
        report_type=params.report_type or "summary",
        report_format=params.report_format or "json",
        since=params.start_date,
        until=params.end_date,
    )


async def _trends(ctx: ToolContext, params: AnalyticsInput) -> ToolResult:
    return await _run(
        ctx,
        params,
        operation="analyze_trends",
        unavailable="Análises de tendência",
        failure="Falha ao analisar tendências",
        message="Análise de tendências executada com sucesso",
        trend_metric=params.trend_metric or "commits",
        trend_period=params.trend_period or "weekly",
        since=params.start_date,
        until=params.end_date,
    )


async def _insights(ctx: ToolContext, params: AnalyticsInput) -> ToolResult:
    return await _run(
        ctx,
        params,
        operation="get_repository_insights",
        unavailable="Insights",
        failure="Falha ao obter insights do repositório",
        message="Insights do repositório obtidos com sucesso",
    )


SPEC = ToolSpec(
    name="analytics",
    description=(
        "Repository analytics: traffic, contributors, activity, performance (CI durations, deployment frequency), "
        "reports (json/csv), trends and general insights. Unsupported metrics return an explanatory note."
    ),
    input_model=AnalyticsInput,
    actions={
        "traffic": _traffic,
        "contributors": _contributors,
        "activity": _activity,
        "performance": _performance,
        "reports": _reports,
        "trends": _trends,
        "insights": _insights,
    },
    failure_message="Erro na operação de analytics",
)
