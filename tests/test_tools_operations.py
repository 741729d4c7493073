"""deployments, security and analytics tools."""

from __future__ import annotations

import pytest
from vcs_tools_mcp.errors import MISSING_PARAMETERS_MESSAGE
from vcs_tools_mcp.tools import analytics, deployments, security
from vcs_tools_mcp.tools.base import run_tool
from vcs_tools_mcp.tools.security import evaluate_compliance

from conftest import FakeProvider, make_runtime


async def _run(spec, provider: FakeProvider, **arguments):
    return (await run_tool(spec, make_runtime(provider), {"repo": "demo", "owner": "octo", **arguments})).to_dict()


@pytest.mark.asyncio
async def test_deployment_create() -> None:
    provider = FakeProvider(responses={"create_deployment": {"id": 31}})

    out = await _run(deployments.SPEC, provider, action="create", ref="main", environment="staging")

    assert out["message"] == "Deployment 31 criado para 'staging'"
    assert provider.calls_to("create_deployment")[0]["auto_merge"] is False


@pytest.mark.asyncio
async def test_deployment_status_reads_or_sets() -> None:
    provider = FakeProvider(
        responses={
            "list_deployment_statuses": [{"state": "success"}],
            "update_deployment_status": {"state": "failure"},
        }
    )

    read = await _run(deployments.SPEC, provider, action="status", deployment_id=31)
    written = await _run(deployments.SPEC, provider, action="status", deployment_id=31, state="failure")

    assert read["data"]["total"] == 1
    assert written["message"] == "Status do deployment 31 atualizado para 'failure'"


@pytest.mark.asyncio
async def test_environments_list_get_and_configure() -> None:
    provider = FakeProvider(
        responses={
            "list_environments": {"total_count": 1, "environments": [{"name": "prod"}]},
            "get_environment": {"name": "prod"},
            "create_or_update_environment": {"name": "prod", "wait_timer": 5},
        }
    )

    listed = await _run(deployments.SPEC, provider, action="environments")
    fetched = await _run(deployments.SPEC, provider, action="environments", environment_name="prod")
    configured = await _run(deployments.SPEC, provider, action="environments", environment_name="prod", wait_timer=5)

    assert listed["message"] == "1 ambientes encontrados"
    assert fetched["data"] == {"name": "prod"}
    assert configured["message"] == "Ambiente 'prod' configurado com sucesso"


@pytest.mark.asyncio
async def test_deployments_on_gitea_are_soft_for_reads_and_hard_for_writes() -> None:
    gitea = FakeProvider("gitea")

    listed = await _run(deployments.SPEC, gitea, action="list")
    rollback = await _run(deployments.SPEC, gitea, action="rollback", deployment_id=3)

    assert listed["success"] is True
    assert listed["data"]["deployments"] == []
    assert rollback["success"] is False


@pytest.mark.asyncio
async def test_security_alert_dismiss_requires_alert_number() -> None:
    provider = FakeProvider(responses={"manage_security_alerts": {}})

    out = await _run(security.SPEC, provider, action="alerts", dismiss_reason="not_used")

    assert out["success"] is False
    assert out["error"] == MISSING_PARAMETERS_MESSAGE
    assert provider.calls == []


@pytest.mark.asyncio
async def test_security_alert_dismiss_and_reopen() -> None:
    provider = FakeProvider(responses={"manage_security_alerts": {"number": 4}})

    dismissed = await _run(security.SPEC, provider, action="alerts", alert_number=4, dismiss_reason="tolerable_risk")
    reopened = await _run(security.SPEC, provider, action="alerts", alert_number=4, state="open")

    assert dismissed["message"] == "Alerta #4 descartado com sucesso"
    assert reopened["message"] == "Alerta #4 reaberto com sucesso"
    ops = [call["operation"] for call in provider.calls_to("manage_security_alerts")]
    assert ops == ["dismiss", "reopen"]


@pytest.mark.asyncio
async def test_security_alert_list_window_filter() -> None:
    alerts = [
        {"number": 1, "created_at": "2024-01-10T00:00:00Z"},
        {"number": 2, "created_at": "2024-03-10T00:00:00Z"},
    ]
    provider = FakeProvider(responses={"list_security_alerts": alerts})

    out = await _run(security.SPEC, provider, action="alerts", created_after="2024-02-01")

    assert [a["number"] for a in out["data"]["alerts"]] == [2]


@pytest.mark.asyncio
async def test_security_policies_use_default_branch() -> None:
    provider = FakeProvider(
        responses={
            "get_repository": {"default_branch": "trunk"},
            "get_security_policy": {"branch": "trunk", "protected": False, "protection": None},
        }
    )

    out = await _run(security.SPEC, provider, action="policies")

    assert out["message"] == "Políticas de segurança da branch 'trunk' obtidas com sucesso"
    assert provider.calls_to("get_security_policy")[0]["branch"] == "trunk"


@pytest.mark.asyncio
async def test_compliance_csv() -> None:
    posture = {
        "branch_protection": True,
        "vulnerability_alerts": True,
        "secret_scanning": False,
        "license": True,
        "security_policy": True,
    }
    provider = FakeProvider(responses={"get_security_posture": posture})

    out = await _run(security.SPEC, provider, action="compliance", compliance_framework="pci", report_format="csv")

    assert out["data"]["compliant"] is False
    assert out["message"] == "Conformidade pci: 2/3 verificações atendidas"
    assert out["data"]["content"].splitlines()[0] == "check,required,passed"


def test_evaluate_compliance_general_framework() -> None:
    report = evaluate_compliance({name: True for name in security.COMPLIANCE_CHECKS}, None)
    assert report["framework"] == "general"
    assert report["score"] == 100
    assert report["compliant"] is True


@pytest.mark.asyncio
async def test_security_scan_soft_on_gitea() -> None:
    out = await _run(security.SPEC, FakeProvider("gitea"), action="scan")
    assert out["success"] is True
    assert out["data"]["open_alerts"] == 0


@pytest.mark.asyncio
async def test_analytics_activity_maps_dates() -> None:
    provider = FakeProvider(responses={"get_activity_stats": {"recent_commits": 3}})

    out = await _run(analytics.SPEC, provider, action="activity", start_date="2024-01-01", end_date="2024-02-01")

    assert out["data"] == {"recent_commits": 3}
    call = provider.calls_to("get_activity_stats")[0]
    assert (call["activity_type"], call["since"], call["until"]) == ("all", "2024-01-01", "2024-02-01")


@pytest.mark.asyncio
async def test_analytics_unsupported_metric_is_soft() -> None:
    out = await _run(analytics.SPEC, FakeProvider("gitea"), action="traffic")

    assert out["success"] is True
    assert out["data"]["metrics"] == {}
    assert out["data"]["note"] == "Estatísticas de tráfego não disponíveis neste provider"


@pytest.mark.asyncio
async def test_security_alert_pages_beyond_first_are_reported() -> None:
    provider = FakeProvider(responses={"list_security_alerts": [{"number": 1}]})

    out = await _run(security.SPEC, provider, action="alerts", page=2)

    assert out["success"] is True
    assert out["data"]["alerts"] == []
    assert out["data"]["page"] == 2
    assert "limit" in out["data"]["note"]
    assert "list_security_alerts" not in provider.call_names()
