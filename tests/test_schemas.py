from __future__ import annotations

import pytest
from vcs_tools_mcp.errors import MISSING_PARAMETERS_MESSAGE, ValidationError
from vcs_tools_mcp.schemas import is_present, parse_arguments
from vcs_tools_mcp.tools.actions import ActionsInput
from vcs_tools_mcp.tools.deployments import DeploymentsInput
from vcs_tools_mcp.tools.files import FilesInput
from vcs_tools_mcp.tools.git_bundle import GitBundleInput
from vcs_tools_mcp.tools.webhooks import WebhooksInput


def test_per_action_rule_gives_one_combined_message() -> None:
    with pytest.raises(ValidationError) as exc:
        parse_arguments(ActionsInput, {"action": "cancel", "repo": "demo"})
    assert MISSING_PARAMETERS_MESSAGE in exc.value.message


def test_alternative_fields_satisfy_a_rule() -> None:
    params = parse_arguments(ActionsInput, {"action": "download-artifact", "repo": "demo", "artifact_name": "dist"})
    assert params.artifact_name == "dist"


def test_every_violation_is_listed_with_its_path() -> None:
    with pytest.raises(ValidationError) as exc:
        parse_arguments(FilesInput, {"action": "list", "repo": "demo", "page": 0, "limit": 500})
    assert "page:" in exc.value.message
    assert "limit:" in exc.value.message


def test_missing_repo_and_bad_action() -> None:
    with pytest.raises(ValidationError) as exc:
        parse_arguments(DeploymentsInput, {"action": "explode"})
    assert "action:" in exc.value.message
    assert "repo:" in exc.value.message


def test_unknown_fields_are_rejected() -> None:
    with pytest.raises(ValidationError) as exc:
        parse_arguments(FilesInput, {"action": "get", "repo": "demo", "path": "a", "pth": "b"})
    assert "pth" in exc.value.message


def test_string_bounds() -> None:
    with pytest.raises(ValidationError):
        parse_arguments(FilesInput, {"action": "get", "repo": "demo", "path": "x" * 1001})


def test_webhook_url_must_be_http() -> None:
    with pytest.raises(ValidationError):
        parse_arguments(WebhooksInput, {"action": "create", "repo": "demo", "url": "ftp://example.com"})


def test_project_path_alias_and_field_name_both_accepted() -> None:
    by_alias = parse_arguments(
        GitBundleInput,
        {"action": "verify", "repo": "demo", "provider": "github", "projectPath": "/w", "bundle_file": "a.bundle"},
    )
    by_name = parse_arguments(
        GitBundleInput,
        {"action": "verify", "repo": "demo", "provider": "github", "project_path": "/w", "bundle_file": "a.bundle"},
    )
    assert by_alias.project_path == by_name.project_path == "/w"


def test_git_arguments_cannot_be_options() -> None:
    with pytest.raises(ValidationError):
        parse_arguments(
            GitBundleInput,
            {"action": "create", "repo": "d", "provider": "github", "projectPath": "/w", "bundle_file": "--upload-pack=x"},
        )


@pytest.mark.parametrize(
    ("value", "expected"),
    [(None, False), ("", False), ([], False), ({}, False), (False, False), (True, True), (0, True), ("x", True)],
)
def test_is_present(value: object, expected: bool) -> None:
    assert is_present(value) is expected
