"""
Unit tests for PreviewOrchestrator.
End-to-end runs against in-memory Railway and GitHub fakes.
"""

import pytest

from railway_preview.core.exceptions import (
    PlatformQueryError,
    SourceEnvironmentError,
    TransportError,
)
from railway_preview.github.comments.schemas import CommentAuthor, CommentRecord
from railway_preview.github.comments.service import CommentReconciler
from railway_preview.github.comments.templates import COMMENT_MARKER
from railway_preview.orchestrator.schemas import (
    EventKind,
    PRContext,
    PreviewInputs,
    RepositoryEvent,
    RunStatus,
)
from railway_preview.orchestrator.service import PreviewOrchestrator
from railway_preview.railway import queries
from railway_preview.railway.discovery import UrlDiscovery
from railway_preview.railway.registry import EnvironmentRegistry
from railway_preview.railway.trigger import DeploymentTrigger

SOURCE_NODE = {"id": "src-env", "name": "production", "projectId": "proj-1"}


class FakeGitHub:
    """In-memory GitHub: comments on one repository plus open PRs by branch."""

    def __init__(self, open_pulls=None):
        self.comments = {}
        self.created = []
        self.updated = []
        self.open_pulls = open_pulls or {}
        self.fail_writes = False

    async def list_comments(self, issue_number):
        return list(self.comments.get(issue_number, []))

    async def create_comment(self, issue_number, body):
        if self.fail_writes:
            raise TransportError("GitHub API error: 403", status_code=403)
        record = CommentRecord(
            id=len(self.created) + 1,
            body=body,
            user=CommentAuthor(login="github-actions[bot]", type="Bot"),
        )
        self.comments.setdefault(issue_number, []).append(record)
        self.created.append((issue_number, body))
        return record

    async def update_comment(self, comment_id, body):
        self.updated.append((comment_id, body))
        for issue_number, records in self.comments.items():
            self.comments[issue_number] = [
                r.model_copy(update={"body": body}) if r.id == comment_id else r
                for r in records
            ]
        return CommentRecord(id=comment_id, body=body)

    async def find_open_pull_request(self, branch):
        return self.open_pulls.get(branch)

    def body_of(self, issue_number):
        return self.comments[issue_number][-1].body


def pr_event(action="opened", number=42):
    return RepositoryEvent(
        kind=EventKind.PULL_REQUEST,
        name="pull_request",
        action=action,
        context=PRContext(
            pr_number=number,
            branch_name="feature/login",
            repository_name="web",
            owner="octo-org",
        ),
    )


def push_event(branch="feature/login"):
    return RepositoryEvent(
        kind=EventKind.PUSH,
        name="push",
        ref=f"refs/heads/{branch}",
        context=PRContext(
            branch_name=branch, repository_name="web", owner="octo-org"
        ),
    )


@pytest.fixture
def railway_state():
    """Environments that exist in the fake project, keyed by id."""
    return {}


@pytest.fixture
def railway(fake_railway, railway_state, environment_node_factory):
    """Fake Railway where created environments get one URL per PR number."""

    def get(variables):
        env_id = variables["id"]
        if env_id == "src-env":
            return {"environment": SOURCE_NODE}
        node = railway_state.get(env_id)
        if node is None:
            return {"environment": None}
        suffix = node["name"].split("-")[-1]
        return {
            "environment": environment_node_factory(
                env_id=env_id,
                name=node["name"],
                services=[
                    {
                        "service_id": "svc-app",
                        "service_name": "app",
                        "domains": [f"svc-{suffix}.example.app"],
                        "deployment_id": f"dep-{suffix}",
                    }
                ],
            )
        }

    def listing(variables):
        nodes = [{"node": n} for n in railway_state.values()]
        return {"project": {"environments": {"edges": nodes}}}

    def create(variables):
        name = variables["input"]["name"]
        node = {"id": f"env-{name.split('-')[-1]}", "name": name, "projectId": "proj-1"}
        railway_state[node["id"]] = node
        return {"environmentCreate": node}

    fake_railway.on(queries.GET_ENVIRONMENT, get)
    fake_railway.on(queries.LIST_ENVIRONMENTS_VIA_PROJECT, listing)
    fake_railway.on(queries.CREATE_ENVIRONMENT, create)
    fake_railway.on(
        queries.SERVICE_INSTANCE_REDEPLOY, {"serviceInstanceRedeploy": True}
    )
    return fake_railway


@pytest.fixture
def github():
    return FakeGitHub()


@pytest.fixture
def build_orchestrator(railway, github, fake_clock):
    def build(with_github=True, **overrides):
        values = {
            "platform_token": "rw-token",
            "source_environment_id": "src-env",
            "comment_token": "gh-token",
            "url_wait_timeout": 30,
        }
        values.update(overrides)
        inputs = PreviewInputs(**values)
        registry = EnvironmentRegistry(railway, ephemeral=inputs.ephemeral)
        return PreviewOrchestrator(
            inputs=inputs,
            registry=registry,
            trigger=DeploymentTrigger(railway),
            discovery=UrlDiscovery(
                registry, sleep=fake_clock.sleep, clock=fake_clock
            ),
            reconciler=CommentReconciler(github) if with_github else None,
            github=github if with_github else None,
        )

    return build


class TestEnsureAndDeploy:
    """Tests for PR opened / synchronize / reopened."""

    @pytest.mark.asyncio
    async def test_opened_pr_creates_deploys_and_comments(
        self, build_orchestrator, railway, github
    ):
        orchestrator = build_orchestrator()

        outcome = await orchestrator.run(pr_event("opened", 42))

        assert outcome.status == RunStatus.DEPLOYED
        assert outcome.outputs == {
            "environment_id": "env-42",
            "environment_name": "pr-42",
            "deploy_status": "triggered",
            "deployment_url": "https://svc-42.example.app",
        }
        assert len(railway.calls_for(queries.CREATE_ENVIRONMENT)) == 1
        assert railway.calls_for(queries.SERVICE_INSTANCE_REDEPLOY) == [
            {"environmentId": "env-42", "serviceId": "svc-app"}
        ]

        # "creating" comment is created, then edited into the final status
        assert len(github.created) == 1
        assert "Creating" in github.created[0][1]
        assert len(github.updated) == 1
        final_body = github.body_of(42)
        assert final_body.startswith(COMMENT_MARKER)
        assert "Ready" in final_body
        assert "https://svc-42.example.app" in final_body

    @pytest.mark.asyncio
    async def test_synchronize_reuses_environment_and_updates_comment(
        self, build_orchestrator, railway, github
    ):
        orchestrator = build_orchestrator()
        await orchestrator.run(pr_event("opened", 42))

        outcome = await orchestrator.run(pr_event("synchronize", 42))

        assert outcome.outputs["environment_id"] == "env-42"
        assert len(railway.calls_for(queries.CREATE_ENVIRONMENT)) == 1
        assert len(github.created) == 1
        assert len(github.comments[42]) == 1
        assert "Railway Preview Environment Updated" in github.body_of(42)

    @pytest.mark.asyncio
    async def test_failed_deploy_still_reports_environment(
        self, build_orchestrator, railway, github
    ):
        error = PlatformQueryError([{"message": "Problem processing request"}])
        railway.on(queries.SERVICE_INSTANCE_REDEPLOY, error)
        railway.on(queries.ENVIRONMENT_TRIGGERS_DEPLOY, error)
        railway.on(queries.DEPLOYMENT_RESTART, error)
        orchestrator = build_orchestrator()

        outcome = await orchestrator.run(pr_event("opened", 42))

        assert outcome.status == RunStatus.DEPLOYED
        assert outcome.outputs["deploy_status"] == "failed"
        assert "Trigger it manually" in github.body_of(42)

    @pytest.mark.asyncio
    async def test_deploy_and_wait_can_be_disabled(
        self, build_orchestrator, railway, github
    ):
        orchestrator = build_orchestrator(deploy_on_create=False, wait_for_urls=False)

        outcome = await orchestrator.run(pr_event("opened", 42))

        assert outcome.outputs["deploy_status"] == "skipped"
        assert "deployment_url" not in outcome.outputs
        assert railway.calls_for(queries.SERVICE_INSTANCE_REDEPLOY) == []
        assert "🔄 Deploying..." in github.body_of(42)

    @pytest.mark.asyncio
    async def test_comment_on_pr_false_posts_nothing(
        self, build_orchestrator, github
    ):
        orchestrator = build_orchestrator(comment_on_pr=False)

        outcome = await orchestrator.run(pr_event("opened", 42))

        assert outcome.status == RunStatus.DEPLOYED
        assert github.created == []

    @pytest.mark.asyncio
    async def test_comment_failures_do_not_fail_the_run(
        self, build_orchestrator, github
    ):
        github.fail_writes = True
        orchestrator = build_orchestrator()

        outcome = await orchestrator.run(pr_event("opened", 42))

        assert outcome.status == RunStatus.DEPLOYED

    @pytest.mark.asyncio
    async def test_custom_prefix_names_environment(self, build_orchestrator):
        orchestrator = build_orchestrator(environment_name_prefix="preview-")

        outcome = await orchestrator.run(pr_event("opened", 7))

        assert outcome.outputs["environment_name"] == "preview-7"


class TestTearDown:
    """Tests for PR closed."""

    @pytest.mark.asyncio
    async def test_closed_pr_deletes_environment(
        self, build_orchestrator, railway, railway_state, github
    ):
        railway_state["env-42"] = {"id": "env-42", "name": "pr-42"}
        railway.on(queries.DELETE_ENVIRONMENT, {"environmentDelete": True})
        orchestrator = build_orchestrator()

        outcome = await orchestrator.run(pr_event("closed", 42))

        assert outcome.status == RunStatus.DELETED
        assert railway.calls_for(queries.DELETE_ENVIRONMENT) == [{"id": "env-42"}]
        assert "has been deleted" in github.body_of(42)

    @pytest.mark.asyncio
    async def test_delete_not_found_is_treated_as_deleted(
        self, build_orchestrator, railway, railway_state, github
    ):
        """An environment deleted concurrently is not an error."""
        railway_state["env-42"] = {"id": "env-42", "name": "pr-42"}
        railway.on(
            queries.DELETE_ENVIRONMENT,
            PlatformQueryError([{"message": "Environment not found"}]),
        )
        orchestrator = build_orchestrator()

        outcome = await orchestrator.run(pr_event("closed", 42))

        assert outcome.status == RunStatus.DELETED
        assert "Deleted" in github.body_of(42)

    @pytest.mark.asyncio
    async def test_missing_environment_is_noop(
        self, build_orchestrator, railway, github
    ):
        orchestrator = build_orchestrator()

        outcome = await orchestrator.run(pr_event("closed", 42))

        assert outcome.status == RunStatus.NOOP
        assert railway.calls_for(queries.DELETE_ENVIRONMENT) == []
        assert github.created == []

    @pytest.mark.asyncio
    async def test_delete_failure_is_logged_not_raised(
        self, build_orchestrator, railway, railway_state, github
    ):
        railway_state["env-42"] = {"id": "env-42", "name": "pr-42"}
        railway.on(
            queries.DELETE_ENVIRONMENT,
            TransportError("HTTP error! status: 500", status_code=500),
        )
        orchestrator = build_orchestrator()

        outcome = await orchestrator.run(pr_event("closed", 42))

        assert outcome.status == RunStatus.NOOP
        assert github.created == []


class TestRunGuards:
    """Tests for skips, no-ops and fatal source errors."""

    @pytest.mark.asyncio
    async def test_missing_credentials_skip_without_calls(
        self, build_orchestrator, railway
    ):
        orchestrator = build_orchestrator(platform_token=None)

        outcome = await orchestrator.run(pr_event("opened", 42))

        assert outcome.status == RunStatus.SKIPPED
        assert outcome.outputs == {"skipped": "true"}
        assert railway.calls == []

    @pytest.mark.asyncio
    async def test_unhandled_action_is_noop(self, build_orchestrator, railway):
        orchestrator = build_orchestrator()

        outcome = await orchestrator.run(pr_event("labeled", 42))

        assert outcome.status == RunStatus.NOOP
        assert railway.calls == []

    @pytest.mark.asyncio
    async def test_unsupported_event_is_noop(self, build_orchestrator, railway):
        orchestrator = build_orchestrator()

        outcome = await orchestrator.run(
            RepositoryEvent(kind=EventKind.UNSUPPORTED, name="issues")
        )

        assert outcome.status == RunStatus.NOOP
        assert railway.calls == []

    @pytest.mark.asyncio
    async def test_source_environment_failure_is_fatal(
        self, build_orchestrator, railway
    ):
        railway.on(
            queries.GET_ENVIRONMENT,
            TransportError("HTTP error! status: 401", status_code=401),
        )
        orchestrator = build_orchestrator()

        with pytest.raises(SourceEnvironmentError):
            await orchestrator.run(pr_event("opened", 42))

        assert railway.calls_for(queries.CREATE_ENVIRONMENT) == []


class TestPushEvents:
    """Tests for pushes to branches with or without an open PR."""

    @pytest.mark.asyncio
    async def test_push_without_open_pr_is_noop(self, build_orchestrator, railway):
        orchestrator = build_orchestrator()

        outcome = await orchestrator.run(push_event("feature/login"))

        assert outcome.status == RunStatus.NOOP
        assert railway.calls == []

    @pytest.mark.asyncio
    async def test_push_to_pr_branch_redeploys_that_pr(
        self, build_orchestrator, github
    ):
        github.open_pulls["feature/login"] = 42
        orchestrator = build_orchestrator()

        outcome = await orchestrator.run(push_event("feature/login"))

        assert outcome.status == RunStatus.DEPLOYED
        assert outcome.outputs["environment_name"] == "pr-42"
        assert 42 in github.comments

    @pytest.mark.asyncio
    async def test_push_without_github_token_is_noop(self, build_orchestrator):
        orchestrator = build_orchestrator(with_github=False, comment_token=None)

        outcome = await orchestrator.run(push_event())

        assert outcome.status == RunStatus.NOOP


class TestEnvironmentName:
    def test_uses_pr_number(self, build_orchestrator):
        orchestrator = build_orchestrator()
        context = PRContext(pr_number=5, branch_name="x", repository_name="web")

        assert orchestrator.environment_name(context) == "pr-5"

    def test_falls_back_to_branch(self, build_orchestrator):
        orchestrator = build_orchestrator()
        context = PRContext(branch_name="hotfix", repository_name="web")

        assert orchestrator.environment_name(context) == "pr-hotfix"
