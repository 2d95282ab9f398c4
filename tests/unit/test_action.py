"""
Unit tests for the GitHub Actions entry point.
"""

import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from railway_preview.action import load_event, run_action, split_repository, write_outputs
from railway_preview.core.exceptions import SourceEnvironmentError
from railway_preview.orchestrator.schemas import EventKind, RunOutcome, RunStatus

PR_PAYLOAD = {
    "action": "opened",
    "number": 42,
    "pull_request": {"number": 42, "head": {"ref": "feature/login"}},
    "repository": {"name": "web", "owner": {"login": "octo-org"}},
}


@pytest.fixture
def action_env(tmp_path):
    event_path = tmp_path / "event.json"
    event_path.write_text(json.dumps(PR_PAYLOAD), encoding="utf-8")
    return {
        "GITHUB_EVENT_NAME": "pull_request",
        "GITHUB_EVENT_PATH": str(event_path),
        "GITHUB_OUTPUT": str(tmp_path / "output.txt"),
        "GITHUB_REPOSITORY": "octo-org/web",
        "GITHUB_RUN_ID": "123",
        "INPUT_RAILWAY_TOKEN": "rw",
        "INPUT_SOURCE_ENVIRONMENT_ID": "src",
    }


class TestLoadEvent:
    def test_reads_event_file(self, action_env):
        event = load_event(action_env)

        assert event.kind == EventKind.PULL_REQUEST
        assert event.context.pr_number == 42

    def test_missing_event_file_is_unsupported_for_other_events(self):
        event = load_event({"GITHUB_EVENT_NAME": "workflow_dispatch"})

        assert event.kind == EventKind.UNSUPPORTED


class TestSplitRepository:
    def test_prefers_github_repository(self, action_env):
        event = load_event(action_env)

        assert split_repository({"GITHUB_REPOSITORY": "a/b"}, event) == ("a", "b")

    def test_falls_back_to_payload(self, action_env):
        event = load_event(action_env)

        assert split_repository({}, event) == ("octo-org", "web")


class TestWriteOutputs:
    def test_appends_name_value_lines(self, tmp_path):
        output_file = tmp_path / "output.txt"
        output_file.write_text("existing=1\n", encoding="utf-8")

        write_outputs(
            {"environment_id": "env-42", "deployment_url": "https://svc-42.example.app"},
            {"GITHUB_OUTPUT": str(output_file)},
        )

        assert output_file.read_text(encoding="utf-8").splitlines() == [
            "existing=1",
            "environment_id=env-42",
            "deployment_url=https://svc-42.example.app",
        ]

    def test_without_output_file_only_logs(self):
        write_outputs({"skipped": "true"}, {})


class TestRunAction:
    @pytest.mark.asyncio
    async def test_success_writes_outputs(self, action_env, tmp_path):
        orchestrator = MagicMock()
        orchestrator.run = AsyncMock(
            return_value=RunOutcome(
                status=RunStatus.DEPLOYED, outputs={"environment_name": "pr-42"}
            )
        )

        with patch(
            "railway_preview.action.PreviewOrchestrator.from_inputs",
            return_value=orchestrator,
        ) as from_inputs:
            exit_code = await run_action(action_env)

        assert exit_code == 0
        assert from_inputs.call_args.args[1:3] == ("octo-org", "web")
        assert (tmp_path / "output.txt").read_text(encoding="utf-8") == (
            "environment_name=pr-42\n"
        )

    @pytest.mark.asyncio
    async def test_fatal_error_exits_non_zero(self, action_env):
        orchestrator = MagicMock()
        orchestrator.run = AsyncMock(side_effect=SourceEnvironmentError("gone"))

        with patch(
            "railway_preview.action.PreviewOrchestrator.from_inputs",
            return_value=orchestrator,
        ):
            exit_code = await run_action(action_env)

        assert exit_code == 1

    @pytest.mark.asyncio
    async def test_invalid_inputs_exit_non_zero(self, action_env):
        action_env["INPUT_URL_WAIT_TIMEOUT"] = "soon"

        assert await run_action(action_env) == 1

    @pytest.mark.asyncio
    async def test_malformed_event_file_exits_non_zero(self, action_env, tmp_path):
        (tmp_path / "event.json").write_text("{not json", encoding="utf-8")

        assert await run_action(action_env) == 1
