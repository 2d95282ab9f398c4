"""
Pydantic schemas for Railway environments, service instances and deployments.

Railway returns relay-style connections (`{"edges": [{"node": {...}}]}`); the
validators below flatten them so the rest of the code works with plain lists.
"""

from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _unwrap_edges(value: Any) -> Any:
    """Turn a relay connection into a list of nodes; pass lists through."""
    if value is None:
        return []
    if isinstance(value, dict) and "edges" in value:
        return [edge.get("node") for edge in value.get("edges") or [] if edge]
    return value


class RailwayModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")


class Domain(RailwayModel):
    """A platform subdomain or custom domain attached to a service."""

    id: Optional[str] = None
    domain: str


class ServiceDomains(RailwayModel):
    service_domains: List[Domain] = Field(default_factory=list, alias="serviceDomains")
    custom_domains: List[Domain] = Field(default_factory=list, alias="customDomains")

    @field_validator("service_domains", "custom_domains", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return _unwrap_edges(value)


class Deployment(RailwayModel):
    id: str
    url: Optional[str] = None
    static_url: Optional[str] = Field(default=None, alias="staticUrl")
    status: Optional[str] = None


class ServiceInstance(RailwayModel):
    id: Optional[str] = None
    service_id: str = Field(alias="serviceId")
    service_name: Optional[str] = Field(default=None, alias="serviceName")
    domains: ServiceDomains = Field(default_factory=ServiceDomains)
    latest_deployment: Optional[Deployment] = Field(
        default=None, alias="latestDeployment"
    )

    @field_validator("domains", mode="before")
    @classmethod
    def _domains_default(cls, value: Any) -> Any:
        return value or {}


class Environment(RailwayModel):
    """
    A Railway environment.

    Snapshots returned by the list queries only carry id/name; the full
    `environment(id)` query also fills service instances.
    """

    id: str
    name: str
    project_id: Optional[str] = Field(default=None, alias="projectId")
    is_ephemeral: Optional[bool] = Field(default=None, alias="isEphemeral")
    service_instances: List[ServiceInstance] = Field(
        default_factory=list, alias="serviceInstances"
    )

    @field_validator("service_instances", mode="before")
    @classmethod
    def _flatten_service_instances(cls, value: Any) -> Any:
        return _unwrap_edges(value)

    @classmethod
    def from_graphql(cls, node: dict) -> "Environment":
        return cls.model_validate(node)


class UrlType(str, Enum):
    SERVICE = "service"
    CUSTOM = "custom"
    DEPLOYMENT = "deployment"
    STATIC = "static"


class DeploymentUrl(RailwayModel):
    """An externally reachable address exposed by a service instance."""

    url: str
    domain: str
    type: UrlType
    service_name: str = "Service"
