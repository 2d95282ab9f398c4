"""
Service layer for Railway environment operations.

Find, create and delete environments by project and name. Creation always goes
through a name lookup first, so repeated invocations for the same pull request
reuse the environment instead of cloning a second one.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from pydantic import ValidationError as SchemaValidationError

from railway_preview.core.exceptions import (
    NotFoundError,
    PlatformQueryError,
    ValidationError,
)
from railway_preview.railway import queries
from railway_preview.railway.client import RailwayGraphQLClient
from railway_preview.railway.schemas import Environment
from railway_preview.railway.strategies import ChainResult, Strategy, run_chain

logger = logging.getLogger(__name__)

MAX_ENVIRONMENT_NAME_LENGTH = 50
ENVIRONMENT_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")


def validate_environment_name(name: str) -> str:
    """Check Railway's naming rules locally, before anything goes over the wire."""
    if not name:
        raise ValidationError("Environment name must not be empty")

    if len(name) > MAX_ENVIRONMENT_NAME_LENGTH:
        raise ValidationError(
            f"Environment name too long ({len(name)} chars). "
            f"Must be {MAX_ENVIRONMENT_NAME_LENGTH} characters or less: {name}"
        )

    if not ENVIRONMENT_NAME_PATTERN.match(name):
        raise ValidationError(
            f"Invalid environment name format: {name}. Only alphanumeric "
            "characters, hyphens, and underscores are allowed."
        )

    return name


@dataclass(frozen=True)
class _CreateRequest:
    project_id: str
    source_environment_id: str
    name: str


# A missing or null level raises KeyError/TypeError so the shape counts as
# failed; only an explicit empty edges list means "no environments".


def _environments_from_project(data: Dict[str, Any]) -> List[Dict[str, Any]]:
    edges = data["project"]["environments"]["edges"]
    return [edge["node"] for edge in edges]


def _environments_from_connection(data: Dict[str, Any]) -> List[Dict[str, Any]]:
    edges = data["environments"]["edges"]
    return [edge["node"] for edge in edges]


def _environments_from_flat_list(data: Dict[str, Any]) -> List[Dict[str, Any]]:
    environments = data["environments"]
    if not isinstance(environments, list):
        raise TypeError(f"expected a list of environments, got {environments!r}")
    return environments


class EnvironmentRegistry:
    """Idempotent find/create/delete of Railway environments."""

    def __init__(
        self,
        client: RailwayGraphQLClient,
        ephemeral: bool = False,
        log: Optional[logging.Logger] = None,
    ):
        self.client = client
        self.ephemeral = ephemeral
        self.logger = log or logger

    # ----- listing -----

    def _list_shape(self, query: str, variable: str, transform):
        async def run(project_id: str) -> List[Environment]:
            data = await self.client.execute(query, {variable: project_id})
            try:
                return [
                    Environment.from_graphql(node) for node in transform(data) if node
                ]
            except (KeyError, TypeError, AttributeError, SchemaValidationError) as e:
                raise PlatformQueryError(
                    [{"message": f"Unexpected environments payload: {e}"}]
                ) from e

        return run

    @property
    def list_strategies(self) -> List[Strategy[List[Environment]]]:
        return [
            Strategy(
                "project-environments",
                self._list_shape(
                    queries.LIST_ENVIRONMENTS_VIA_PROJECT,
                    "id",
                    _environments_from_project,
                ),
            ),
            Strategy(
                "environments-connection",
                self._list_shape(
                    queries.LIST_ENVIRONMENTS_CONNECTION,
                    "projectId",
                    _environments_from_connection,
                ),
            ),
            Strategy(
                "environments-flat-list",
                self._list_shape(
                    queries.LIST_ENVIRONMENTS_FLAT,
                    "projectId",
                    _environments_from_flat_list,
                ),
            ),
        ]

    async def list_by_project(self, project_id: str) -> List[Environment]:
        """
        List environments of a project.

        Tries every known query shape in order and returns the first that
        works. If all of them fail, the last error is raised.
        """
        result = await run_chain(
            "list-environments", self.list_strategies, project_id, log=self.logger
        )
        return result.unwrap()

    async def find_by_name(self, project_id: str, name: str) -> Optional[Environment]:
        environments = await self.list_by_project(project_id)
        return next((env for env in environments if env.name == name), None)

    # ----- reads -----

    async def get(self, environment_id: str) -> Environment:
        """Fetch an environment with its services, domains and latest deployments."""
        try:
            data = await self.client.execute(
                queries.GET_ENVIRONMENT, {"id": environment_id}
            )
        except PlatformQueryError as e:
            if e.mentions_not_found():
                raise NotFoundError(f"Environment {environment_id} not found") from e
            raise

        node = data.get("environment")
        if not node:
            raise NotFoundError(f"Environment {environment_id} not found")

        return Environment.from_graphql(node)

    # ----- writes -----

    def _create_with(self, query: str, extra_input: Dict[str, Any]):
        async def run(request: _CreateRequest) -> Environment:
            variables = {
                "input": {
                    "name": request.name,
                    "projectId": request.project_id,
                    "sourceEnvironmentId": request.source_environment_id,
                    **extra_input,
                }
            }
            data = await self.client.execute(query, variables)
            node = data.get("environmentCreate")
            if not node:
                raise PlatformQueryError(
                    [{"message": "environmentCreate returned no environment"}]
                )
            return Environment.from_graphql(node)

        return run

    @property
    def create_strategies(self) -> List[Strategy[Environment]]:
        strategies = []
        if self.ephemeral:
            strategies.append(
                Strategy(
                    "create-ephemeral",
                    self._create_with(
                        queries.CREATE_EPHEMERAL_ENVIRONMENT, {"ephemeral": True}
                    ),
                )
            )
        strategies.append(
            Strategy("create", self._create_with(queries.CREATE_ENVIRONMENT, {}))
        )
        return strategies

    async def create(
        self, project_id: str, source_environment_id: str, name: str
    ) -> Environment:
        """Clone the source environment under a new name (no existence check)."""
        if not project_id or not source_environment_id:
            raise ValidationError(
                f"Missing required parameters: projectId={project_id}, "
                f"sourceEnvironmentId={source_environment_id}, name={name}"
            )
        validate_environment_name(name)

        result: ChainResult[Environment] = await run_chain(
            "create-environment",
            self.create_strategies,
            _CreateRequest(project_id, source_environment_id, name),
            log=self.logger,
        )
        return result.unwrap()

    async def ensure(
        self, project_id: str, source_environment_id: str, name: str
    ) -> Tuple[Environment, bool]:
        """
        Return the environment called `name`, creating it if needed.

        Returns:
            (environment, is_new)
        """
        if not project_id or not source_environment_id:
            raise ValidationError(
                f"Missing required parameters: projectId={project_id}, "
                f"sourceEnvironmentId={source_environment_id}, name={name}"
            )
        validate_environment_name(name)

        self.logger.info("Checking for existing environment...")
        existing = await self.find_by_name(project_id, name)
        if existing:
            self.logger.info(f"Environment already exists: {existing.name}")
            return existing, False

        self.logger.info(f"Creating new environment: {name}")
        environment = await self.create(project_id, source_environment_id, name)
        self.logger.info(f"Environment created successfully: {environment.name}")
        return environment, True

    async def delete(self, environment_id: str) -> None:
        try:
            await self.client.execute(
                queries.DELETE_ENVIRONMENT, {"id": environment_id}
            )
        except PlatformQueryError as e:
            if e.mentions_not_found():
                raise NotFoundError(f"Environment {environment_id} not found") from e
            raise
        self.logger.info(f"Deleted environment {environment_id}")
