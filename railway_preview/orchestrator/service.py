"""
Preview Environment Orchestrator

Maps one repository event to one of three terminal outcomes:

- EnsureAndDeploy (PR opened / synchronize / reopened, or a push to a PR branch):
  ensure environment → "creating" comment if new → trigger deploy →
  wait for URLs → final status comment
- TearDown (PR closed): find environment → delete → "deleted" comment
- NoOp (anything else)

Nothing is kept between runs; every run rebuilds its view from Railway and GitHub.
"""

import logging
from typing import Optional

import httpx

from railway_preview.core.exceptions import (
    NotFoundError,
    PreviewEnvironmentError,
    SourceEnvironmentError,
)
from railway_preview.github.client import GitHubClient
from railway_preview.github.comments.schemas import CommentContent, CommentPhase
from railway_preview.github.comments.service import CommentReconciler
from railway_preview.orchestrator.schemas import (
    DeployStatus,
    EventKind,
    PRContext,
    PreviewInputs,
    RepositoryEvent,
    RunOutcome,
    RunStatus,
)
from railway_preview.railway.client import RailwayGraphQLClient
from railway_preview.railway.discovery import UrlDiscovery
from railway_preview.railway.registry import EnvironmentRegistry
from railway_preview.railway.schemas import Environment
from railway_preview.railway.trigger import DeploymentTrigger

logger = logging.getLogger(__name__)

ENSURE_ACTIONS = {"opened", "synchronize", "reopened"}
TEARDOWN_ACTIONS = {"closed"}


class PreviewOrchestrator:
    """Runs the preview lifecycle for one repository event."""

    def __init__(
        self,
        inputs: PreviewInputs,
        registry: EnvironmentRegistry,
        trigger: DeploymentTrigger,
        discovery: UrlDiscovery,
        reconciler: Optional[CommentReconciler] = None,
        github: Optional[GitHubClient] = None,
        log: Optional[logging.Logger] = None,
    ):
        self.inputs = inputs
        self.registry = registry
        self.trigger = trigger
        self.discovery = discovery
        self.reconciler = reconciler
        self.github = github
        self.logger = log or logger

    @classmethod
    def from_inputs(
        cls,
        inputs: PreviewInputs,
        owner: Optional[str],
        repo: Optional[str],
        http_client: httpx.AsyncClient,
        log: Optional[logging.Logger] = None,
    ) -> "PreviewOrchestrator":
        """Wire the default Railway and GitHub collaborators around one HTTP client."""
        railway = RailwayGraphQLClient(
            inputs.platform_token or "", http_client=http_client
        )
        registry = EnvironmentRegistry(railway, ephemeral=inputs.ephemeral, log=log)

        github = None
        reconciler = None
        if inputs.comment_token and owner and repo:
            github = GitHubClient(
                inputs.comment_token, owner, repo, http_client=http_client
            )
            reconciler = CommentReconciler(
                github, author_login=inputs.comment_author_login, log=log
            )

        return cls(
            inputs=inputs,
            registry=registry,
            trigger=DeploymentTrigger(railway, log=log),
            discovery=UrlDiscovery(registry, log=log),
            reconciler=reconciler,
            github=github,
            log=log,
        )

    def environment_name(self, context: PRContext) -> str:
        suffix = context.pr_number
        if suffix is None:
            suffix = context.branch_name
        return f"{self.inputs.environment_name_prefix}{suffix}"

    # ----- entry point -----

    async def run(self, event: RepositoryEvent) -> RunOutcome:
        if not self.inputs.has_platform_credentials:
            self.logger.warning(
                "Railway credentials not available. Skipping preview deployment. "
                "This is normal for forked repositories due to security restrictions."
            )
            return RunOutcome(status=RunStatus.SKIPPED, outputs={"skipped": "true"})

        self.logger.info(f"Event: {event.name}, action: {event.action}")

        if event.kind == EventKind.UNSUPPORTED or event.context is None:
            return self._noop(f"Event '{event.name}' not handled")

        context = event.context
        action = event.action

        if event.kind == EventKind.PUSH:
            context = await self._resolve_push(context)
            if context is None:
                return self._noop(f"No open pull request for {event.ref}")
            action = "synchronize"

        if action not in ENSURE_ACTIONS | TEARDOWN_ACTIONS:
            return self._noop(f"Pull request action '{action}' not handled")

        project_id = await self._resolve_project_id()
        environment_name = self.environment_name(context)
        self.logger.info(f"Environment name: {environment_name}")

        if action in TEARDOWN_ACTIONS:
            return await self.tear_down(project_id, environment_name, context)
        return await self.ensure_and_deploy(project_id, environment_name, context)

    # ----- states -----

    async def ensure_and_deploy(
        self, project_id: str, environment_name: str, context: PRContext
    ) -> RunOutcome:
        self.logger.info(f"Handling PR opened/updated for PR #{context.pr_number}")

        environment, is_new = await self.registry.ensure(
            project_id, self.inputs.source_environment_id, environment_name
        )

        if is_new:
            await self._publish_comment(
                context,
                CommentContent(
                    phase=CommentPhase.CREATING, environment_name=environment.name
                ),
            )
        else:
            self.logger.info(
                "Using existing environment - will redeploy to get latest changes"
            )

        deploy_status = DeployStatus.SKIPPED
        if self.inputs.deploy_on_create:
            deploy_status = await self._deploy(environment, is_new)

        urls = []
        if self.inputs.wait_for_urls:
            self.logger.info("Waiting for deployment URLs...")
            environment, urls = await self.discovery.wait_for(
                environment.id,
                max_wait=self.inputs.url_wait_timeout,
                interval=self.inputs.url_poll_interval,
            )
            if urls:
                self.logger.info(
                    f"Deployment URLs: {', '.join(u.url for u in urls)}"
                )
            else:
                self.logger.warning("No deployment URLs found after waiting")

        outputs = {
            "environment_id": environment.id,
            "environment_name": environment.name,
            "deploy_status": deploy_status.value,
        }
        if urls:
            outputs["deployment_url"] = urls[0].url

        await self._publish_comment(
            context,
            CommentContent(
                phase=CommentPhase.CREATED if is_new else CommentPhase.UPDATED,
                environment_name=environment.name,
                urls=urls,
                deploy_failed=deploy_status == DeployStatus.FAILED,
            ),
        )

        self.logger.info(f"Environment ready: {environment.name}")
        return RunOutcome(status=RunStatus.DEPLOYED, outputs=outputs)

    async def tear_down(
        self, project_id: str, environment_name: str, context: PRContext
    ) -> RunOutcome:
        """Delete the PR's environment. Cleanup failures never fail the run."""
        self.logger.info(f"Handling PR closed for PR #{context.pr_number}")

        try:
            environment = await self.registry.find_by_name(project_id, environment_name)
        except PreviewEnvironmentError as e:
            self.logger.error(f"Failed to look up {environment_name}: {e}")
            return self._noop(f"Lookup of {environment_name} failed")

        if environment is None:
            self.logger.info(f"Environment not found: {environment_name}")
            return self._noop(f"Environment {environment_name} does not exist")

        self.logger.info(f"Deleting environment: {environment.name}")
        try:
            await self.registry.delete(environment.id)
        except NotFoundError:
            self.logger.info(f"Environment {environment.name} was already deleted")
        except PreviewEnvironmentError as e:
            self.logger.error(f"Failed to delete {environment.name}: {e}")
            return self._noop(f"Deletion of {environment.name} failed")

        await self._publish_comment(
            context,
            CommentContent(
                phase=CommentPhase.DELETED, environment_name=environment.name
            ),
        )
        return RunOutcome(
            status=RunStatus.DELETED,
            outputs={
                "environment_id": environment.id,
                "environment_name": environment.name,
            },
        )

    # ----- helpers -----

    def _noop(self, message: str) -> RunOutcome:
        self.logger.info(message)
        return RunOutcome(status=RunStatus.NOOP, message=message)

    async def _resolve_project_id(self) -> str:
        source_id = self.inputs.source_environment_id
        self.logger.info("Getting project information from source environment...")
        try:
            source = await self.registry.get(source_id)
        except PreviewEnvironmentError as e:
            self.logger.error(f"Failed to get source environment: {e}")
            raise SourceEnvironmentError(
                "Source environment not found or inaccessible. Please verify "
                "the environment ID and token permissions."
            ) from e

        if not source.project_id:
            raise SourceEnvironmentError(
                f"Source environment {source_id} has no project id"
            )
        self.logger.info(f"Project: {source.name} environment")
        return source.project_id

    async def _resolve_push(self, context: PRContext) -> Optional[PRContext]:
        """Find the open PR a pushed branch belongs to."""
        if self.github is None:
            self.logger.info("No GitHub token; cannot map push to a pull request")
            return None

        try:
            pr_number = await self.github.find_open_pull_request(context.branch_name)
        except PreviewEnvironmentError as e:
            self.logger.warning(
                f"Failed to look up pull request for {context.branch_name}: {e}"
            )
            return None

        if pr_number is None:
            return None
        return context.model_copy(update={"pr_number": pr_number})

    async def _deploy(self, environment: Environment, is_new: bool) -> DeployStatus:
        if is_new:
            self.logger.info("Triggering initial deployment...")
        else:
            self.logger.info("Redeploying with latest changes...")

        # List/create responses carry no service instances; fetch the full snapshot
        try:
            snapshot = await self.registry.get(environment.id)
        except PreviewEnvironmentError as e:
            self.logger.warning(f"Could not refresh {environment.name}: {e}")
            snapshot = environment

        if await self.trigger.trigger(snapshot):
            self.logger.info("Deployment triggered successfully")
            return DeployStatus.TRIGGERED

        self.logger.warning(
            "Environment ready but deployment must be triggered manually"
        )
        return DeployStatus.FAILED

    async def _publish_comment(
        self, context: PRContext, content: CommentContent
    ) -> None:
        if not self.inputs.comment_on_pr or self.reconciler is None:
            return
        if context.pr_number is None:
            return

        try:
            await self.reconciler.publish(context.pr_number, content)
        except PreviewEnvironmentError as e:
            self.logger.warning(f"Failed to post PR comment: {e}")
