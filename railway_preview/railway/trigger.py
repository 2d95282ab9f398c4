"""
Deployment trigger for preview environments.

Railway has accepted different deploy mutations over time, so a deploy is
attempted through an ordered chain of strategies:

1. service-instance-redeploy: redeploy every service instance of the environment
2. environment-triggers-deploy: the older environment-wide trigger
3. deployment-restart: restart each service's latest deployment

The first strategy that succeeds wins. When none does, the caller reports that
the deploy has to be triggered manually.
"""

import logging
from typing import List, Optional

from railway_preview.railway import queries
from railway_preview.railway.client import RailwayGraphQLClient
from railway_preview.railway.schemas import Environment
from railway_preview.railway.strategies import (
    ChainResult,
    Strategy,
    StrategyNotApplicable,
    run_chain,
)

logger = logging.getLogger(__name__)


class DeploymentTrigger:
    """Starts a build/deploy for an environment, never raising on shape mismatches."""

    def __init__(
        self,
        client: RailwayGraphQLClient,
        log: Optional[logging.Logger] = None,
    ):
        self.client = client
        self.logger = log or logger

    async def redeploy_service_instances(self, environment: Environment) -> bool:
        if not environment.service_instances:
            raise StrategyNotApplicable("environment has no service instances")

        for instance in environment.service_instances:
            await self.client.execute(
                queries.SERVICE_INSTANCE_REDEPLOY,
                {"environmentId": environment.id, "serviceId": instance.service_id},
            )
            service_label = instance.service_name or instance.service_id
            self.logger.info(f"Redeploy requested for service {service_label}")
        return True

    async def trigger_environment_deploy(self, environment: Environment) -> bool:
        await self.client.execute(
            queries.ENVIRONMENT_TRIGGERS_DEPLOY,
            {"input": {"environmentId": environment.id}},
        )
        return True

    async def restart_latest_deployments(self, environment: Environment) -> bool:
        deployment_ids = [
            instance.latest_deployment.id
            for instance in environment.service_instances
            if instance.latest_deployment and instance.latest_deployment.id
        ]
        if not deployment_ids:
            raise StrategyNotApplicable("no previous deployment to restart")

        for deployment_id in deployment_ids:
            await self.client.execute(queries.DEPLOYMENT_RESTART, {"id": deployment_id})
        return True

    @property
    def strategies(self) -> List[Strategy[bool]]:
        return [
            Strategy("service-instance-redeploy", self.redeploy_service_instances),
            Strategy("environment-triggers-deploy", self.trigger_environment_deploy),
            Strategy("deployment-restart", self.restart_latest_deployments),
        ]

    async def attempt(self, environment: Environment) -> ChainResult[bool]:
        """Run the strategy chain and return the full report."""
        return await run_chain(
            "deploy", self.strategies, environment, log=self.logger
        )

    async def trigger(self, environment: Environment) -> bool:
        """
        Trigger a deploy of `environment`.

        Returns:
            True if one strategy succeeded, False if all failed or none applied
        """
        result = await self.attempt(environment)
        if not result.succeeded:
            self.logger.warning(
                f"Deployment could not be triggered for {environment.name}: "
                f"last error: {result.last_error}"
            )
        return result.succeeded
