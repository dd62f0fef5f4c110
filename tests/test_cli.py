"""Tests for the CLI."""

import json
import shutil
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from immutable_guard.cli import cli, EXIT_OK, EXIT_MUTABLE, EXIT_ERROR
from immutable_guard.github import Release, ReleaseNotFound


CI_WORKFLOW = """
name: CI
on: push
jobs:
  test:
    runs-on: ubuntu-latest
    steps:
      - uses: actions/checkout@v4
      - uses: third-party/action@v1
"""

FIRST_PARTY_WORKFLOW = """
name: CI
on: push
jobs:
  test:
    runs-on: ubuntu-latest
    steps:
      - uses: actions/checkout@v4
      - uses: actions/setup-node@v4
"""


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def workspace(tmp_path):
    wf_dir = tmp_path / ".github" / "workflows"
    wf_dir.mkdir(parents=True)
    (wf_dir / "ci.yml").write_text(CI_WORKFLOW)
    return tmp_path


@pytest.fixture
def release_client():
    with patch("immutable_guard.cli.GitHubReleaseClient") as mock_cls:
        client = mock_cls.return_value
        client.get_release_by_tag.return_value = ReleaseNotFound()
        yield client


def _check(runner, workspace, *args):
    return runner.invoke(cli, ["check", "--workspace", str(workspace), "--github-token", "test-token", *args])


# ---------------------------------------------------------------------------
# Exit codes
# ---------------------------------------------------------------------------

class TestExitCodes:
    def test_exit_0_with_immutable_actions(self, runner, workspace, release_client):
        release_client.get_release_by_tag.return_value = Release(tag="v1", immutable=True)
        result = _check(runner, workspace)
        assert result.exit_code == EXIT_OK
        assert "All third-party actions are using immutable releases" in result.output

    def test_exit_1_with_mutable_actions(self, runner, workspace, release_client):
        release_client.get_release_by_tag.return_value = Release(tag="v1", immutable=False)
        result = _check(runner, workspace)
        assert result.exit_code == EXIT_MUTABLE
        assert "third-party/action@v1" in result.output

    def test_exit_0_when_fail_on_mutable_false(self, runner, workspace, release_client):
        result = _check(runner, workspace, "--fail-on-mutable", "false")
        assert result.exit_code == EXIT_OK

    def test_fail_on_mutable_from_env(self, runner, workspace, release_client, monkeypatch):
        monkeypatch.setenv("INPUT_FAIL_ON_MUTABLE", "no")
        result = _check(runner, workspace)
        assert result.exit_code == EXIT_OK

    def test_exit_2_without_token(self, runner, workspace, release_client):
        result = runner.invoke(cli, ["check", "--workspace", str(workspace)])
        assert result.exit_code == EXIT_ERROR
        assert "github-token is required" in result.output

    def test_token_from_env(self, runner, workspace, release_client, monkeypatch):
        monkeypatch.setenv("INPUT_GITHUB_TOKEN", "env-token")
        release_client.get_release_by_tag.return_value = Release(tag="v1", immutable=True)
        result = runner.invoke(cli, ["check", "--workspace", str(workspace)])
        assert result.exit_code == EXIT_OK

    def test_api_error_fails_safe(self, runner, workspace, release_client):
        release_client.get_release_by_tag.side_effect = RuntimeError("network down")
        result = _check(runner, workspace)
        assert result.exit_code == EXIT_MUTABLE
        assert "API error: network down" in result.output


# ---------------------------------------------------------------------------
# Nothing to check
# ---------------------------------------------------------------------------

class TestNoWork:
    def test_no_workflows_dir(self, runner, tmp_path, release_client):
        result = _check(runner, tmp_path)
        assert result.exit_code == EXIT_OK
        release_client.get_release_by_tag.assert_not_called()

    def test_no_workflows_dir_even_with_fail_on_mutable(self, runner, tmp_path, release_client):
        result = _check(runner, tmp_path, "--fail-on-mutable", "true")
        assert result.exit_code == EXIT_OK

    def test_only_first_party_actions(self, runner, workspace, release_client):
        (workspace / ".github" / "workflows" / "ci.yml").write_text(FIRST_PARTY_WORKFLOW)
        result = _check(runner, workspace)
        assert result.exit_code == EXIT_OK
        release_client.get_release_by_tag.assert_not_called()

    def test_malformed_workflow_is_skipped(self, runner, workspace, release_client):
        (workspace / ".github" / "workflows" / "broken.yml").write_text("jobs: [unclosed")
        release_client.get_release_by_tag.return_value = Release(tag="v1", immutable=True)
        result = _check(runner, workspace)
        assert result.exit_code == EXIT_OK


# ---------------------------------------------------------------------------
# Workflow selection
# ---------------------------------------------------------------------------

class TestWorkflowSelection:
    def test_workflows_option(self, runner, workspace, release_client):
        (workspace / ".github" / "workflows" / "other.yml").write_text(FIRST_PARTY_WORKFLOW)
        result = _check(runner, workspace, "--workflows", "other.yml", "--format", "json")
        parsed = json.loads(result.output)
        assert parsed["workflows_checked"] == ["other.yml"]
        assert result.exit_code == EXIT_OK

    def test_exclude_workflows_option(self, runner, workspace, release_client):
        (workspace / ".github" / "workflows" / "other.yml").write_text(FIRST_PARTY_WORKFLOW)
        result = _check(runner, workspace, "--exclude-workflows", "ci.yml", "--format", "json")
        parsed = json.loads(result.output)
        assert parsed["workflows_checked"] == ["other.yml"]

    def test_config_file_trusted_owners(self, runner, workspace, release_client):
        (workspace / ".immutable-guard.yml").write_text("trusted_owners: [third-party, actions]\n")
        result = _check(runner, workspace)
        assert result.exit_code == EXIT_OK
        release_client.get_release_by_tag.assert_not_called()


# ---------------------------------------------------------------------------
# Outputs
# ---------------------------------------------------------------------------

class TestOutputs:
    def test_json_output(self, runner, workspace, release_client):
        result = _check(runner, workspace, "--format", "json")
        parsed = json.loads(result.output)
        assert parsed["all_passed"] is False
        assert parsed["totals"] == {"mutable": 1, "immutable": 0, "first_party": 1}
        assert list(parsed["by_file"]) == ["ci.yml"]

    def test_github_outputs_file(self, runner, workspace, release_client, tmp_path, monkeypatch):
        output_file = tmp_path / "github_output"
        monkeypatch.setenv("GITHUB_OUTPUT", str(output_file))
        _check(runner, workspace)

        outputs = dict(line.split("=", 1) for line in output_file.read_text().splitlines())
        assert outputs["all-passed"] == "false"
        assert json.loads(outputs["workflows-checked"]) == ["ci.yml"]
        assert json.loads(outputs["mutable-actions"])[0]["raw_specifier"] == "third-party/action@v1"
        assert json.loads(outputs["immutable-actions"]) == []

    def test_step_summary_file(self, runner, workspace, release_client, tmp_path, monkeypatch):
        summary_file = tmp_path / "summary.md"
        monkeypatch.setenv("GITHUB_STEP_SUMMARY", str(summary_file))
        _check(runner, workspace)
        assert "Immutable Actions Check - Failed" in summary_file.read_text()

    def test_workspace_from_env(self, runner, workspace, release_client, monkeypatch):
        monkeypatch.setenv("GITHUB_WORKSPACE", str(workspace))
        result = runner.invoke(cli, ["check", "--github-token", "t", "--format", "json"])
        assert json.loads(result.output)["workflows_checked"] == ["ci.yml"]

    def test_fixture_workspace(self, runner, fixtures_workspace, release_client, tmp_path):
        shutil.copytree(fixtures_workspace, tmp_path / "repo")
        result = _check(runner, tmp_path / "repo", "--format", "json")
        parsed = json.loads(result.output)
        assert parsed["workflows_checked"] == ["ci.yml", "release.yaml"]
        assert parsed["totals"] == {"mutable": 3, "immutable": 1, "first_party": 2}


class TestVerbose:
    def test_verbose_flag_accepted(self, runner, workspace, release_client):
        release_client.get_release_by_tag.return_value = Release(tag="v1", immutable=True)
        result = runner.invoke(cli, ["-v", "check", "--workspace", str(workspace), "--github-token", "t"])
        assert result.exit_code == EXIT_OK
