"""actions and workflows tools."""

from __future__ import annotations

import pytest
from vcs_tools_mcp.tools import actions, workflows
from vcs_tools_mcp.tools.base import run_tool

from conftest import FakeProvider, make_runtime

WORKFLOWS = {
    "total_count": 2,
    "workflows": [
        {"id": 101, "name": "CI", "path": ".github/workflows/ci.yml"},
        {"id": 102, "name": "Release", "path": ".github/workflows/release.yml"},
    ],
}


async def _run(spec, provider: FakeProvider, **arguments):
    return (await run_tool(spec, make_runtime(provider), {"repo": "demo", "owner": "octo", **arguments})).to_dict()


@pytest.mark.asyncio
async def test_list_runs_passes_filters() -> None:
    provider = FakeProvider(responses={"list_workflow_runs": {"total_count": 0, "workflow_runs": []}})

    out = await _run(
        actions.SPEC,
        provider,
        action="list-runs",
        status="completed",
        branch="main",
        created_after="2024-01-01",
        limit=10,
    )

    assert out["message"] == "0 execuções encontradas"
    call = provider.calls_to("list_workflow_runs")[0]
    assert (call["status"], call["branch"], call["created_after"], call["limit"]) == (
        "completed",
        "main",
        "2024-01-01",
        10,
    )


@pytest.mark.asyncio
async def test_secrets_filtered_by_name() -> None:
    secrets = {"total_count": 2, "secrets": [{"name": "NPM_TOKEN"}, {"name": "PYPI_TOKEN"}]}
    provider = FakeProvider(responses={"list_secrets": secrets})

    out = await _run(actions.SPEC, provider, action="secrets", secret_name="pypi_token")

    assert out["data"] == {"total_count": 1, "secrets": [{"name": "PYPI_TOKEN"}]}


@pytest.mark.asyncio
async def test_download_artifact_resolves_name() -> None:
    provider = FakeProvider(
        responses={
            "list_artifacts": {"total_count": 1, "artifacts": [{"id": 55, "name": "dist"}]},
            "download_artifact": {"artifact_id": 55, "download_url": "https://signed/x.zip"},
        }
    )

    out = await _run(actions.SPEC, provider, action="download-artifact", artifact_name="dist", run_id=9)

    assert out["success"] is True
    assert out["message"] == "URL de download do artefato 55 obtida"
    assert provider.calls_to("download_artifact")[0]["artifact_id"] == 55


@pytest.mark.asyncio
async def test_download_artifact_unknown_name() -> None:
    provider = FakeProvider(
        responses={"list_artifacts": {"total_count": 0, "artifacts": []}, "download_artifact": {}}
    )

    out = await _run(actions.SPEC, provider, action="download-artifact", artifact_name="nope")

    assert out["success"] is False
    assert out["error"] == "Artefato 'nope' não encontrado"


@pytest.mark.asyncio
async def test_trigger_by_workflow_name_defaults_ref() -> None:
    provider = FakeProvider(
        responses={"list_workflows": WORKFLOWS, "trigger_workflow": {"dispatched": True}}
    )

    out = await _run(workflows.SPEC, provider, action="trigger", workflow_name="release.yml", inputs={"level": "minor"})

    assert out["message"] == "Workflow 102 disparado em 'main'"
    call = provider.calls_to("trigger_workflow")[0]
    assert (call["workflow_id"], call["ref"], call["inputs"]) == ("102", "main", {"level": "minor"})


@pytest.mark.asyncio
async def test_unknown_workflow_name() -> None:
    provider = FakeProvider(responses={"list_workflows": WORKFLOWS, "disable_workflow": {}})

    out = await _run(workflows.SPEC, provider, action="disable", workflow_name="deploy")

    assert out["success"] is False
    assert out["error"] == "Workflow 'deploy' não encontrado"


@pytest.mark.asyncio
async def test_logs_use_latest_run_when_no_run_given() -> None:
    provider = FakeProvider(
        responses={
            "list_workflow_runs": {"total_count": 1, "workflow_runs": [{"id": 900}]},
            "get_workflow_logs": {"run_id": 900, "logs_url": "https://signed/logs.zip"},
        }
    )

    out = await _run(workflows.SPEC, provider, action="logs", workflow_id="ci.yml")

    assert out["data"]["logs_url"] == "https://signed/logs.zip"
    assert provider.calls_to("get_workflow_logs")[0]["run_id"] == 900


@pytest.mark.asyncio
async def test_logs_without_runs() -> None:
    provider = FakeProvider(
        responses={"list_workflow_runs": {"total_count": 0, "workflow_runs": []}, "get_workflow_logs": {}}
    )

    out = await _run(workflows.SPEC, provider, action="logs", workflow_id="ci.yml")

    assert out["success"] is True
    assert out["message"] == "Nenhuma execução encontrada para o workflow ci.yml"
    assert "get_workflow_logs" not in provider.call_names()


@pytest.mark.asyncio
async def test_create_workflow() -> None:
    provider = FakeProvider(responses={"create_workflow": {"path": ".github/workflows/ci.yml"}})

    out = await _run(workflows.SPEC, provider, action="create", name="CI", workflow_content="on: push")

    assert out["message"] == "Workflow 'CI' criado com sucesso"


@pytest.mark.asyncio
async def test_status_soft_on_provider_without_runs() -> None:
    out = await _run(workflows.SPEC, FakeProvider("gitea"), action="status", workflow_id="ci.yml")

    assert out["success"] is True
    assert out["data"]["runs"] == []
