"""
Pytest configuration and shared fixtures for preview environment tests.
"""

import os

# Set required environment variables BEFORE importing railway_preview modules
os.environ.setdefault("LOG_LEVEL", "INFO")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("EXTERNAL_API_RETRY_ATTEMPTS", "1")
os.environ.setdefault("EXTERNAL_API_RETRY_MIN_WAIT", "0")
os.environ.setdefault("EXTERNAL_API_RETRY_MAX_WAIT", "0")

import pytest

from railway_preview.railway.schemas import Environment


class FakeRailwayClient:
    """
    Stand-in for RailwayGraphQLClient keyed by query text.

    Each registered result is a dict (returned as `data`), an exception
    (raised) or a callable taking the variables. Results are consumed in
    order; the last one repeats.
    """

    def __init__(self):
        self.calls = []
        self.handlers = {}

    def on(self, query, *results):
        self.handlers[query] = list(results)
        return self

    async def execute(self, query, variables=None):
        variables = variables or {}
        self.calls.append((query, variables))
        results = self.handlers.get(query)
        if not results:
            raise AssertionError(f"Unexpected query: {query[:60]}")

        result = results.pop(0) if len(results) > 1 else results[0]
        if isinstance(result, BaseException):
            raise result
        if callable(result):
            return result(variables)
        return result

    def calls_for(self, query):
        return [variables for q, variables in self.calls if q == query]


class FakeClock:
    """Monotonic clock that only moves when the paired sleep is awaited."""

    def __init__(self, start: float = 0.0):
        self.now = start
        self.sleeps = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


def make_environment_node(
    env_id="env-1",
    name="pr-1",
    project_id="proj-1",
    services=None,
):
    """
    Build an `environment(id)` GraphQL node.

    services: list of dicts with keys service_id, service_name, domains,
    custom_domains, deployment_id, url, static_url.
    """
    edges = []
    for index, service in enumerate(services or []):
        deployment = None
        if service.get("deployment_id"):
            deployment = {
                "id": service["deployment_id"],
                "url": service.get("url"),
                "staticUrl": service.get("static_url"),
                "status": "SUCCESS",
            }
        edges.append(
            {
                "node": {
                    "id": f"si-{index}",
                    "serviceId": service.get("service_id", f"svc-{index}"),
                    "serviceName": service.get("service_name", f"service-{index}"),
                    "domains": {
                        "serviceDomains": [
                            {"domain": d} for d in service.get("domains", [])
                        ],
                        "customDomains": [
                            {"domain": d} for d in service.get("custom_domains", [])
                        ],
                    },
                    "latestDeployment": deployment,
                }
            }
        )
    return {
        "id": env_id,
        "name": name,
        "projectId": project_id,
        "isEphemeral": False,
        "serviceInstances": {"edges": edges},
    }


@pytest.fixture
def fake_railway():
    return FakeRailwayClient()


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def environment_factory():
    """Build Environment snapshots from the same shape the GraphQL API returns."""

    def factory(**kwargs) -> Environment:
        return Environment.from_graphql(make_environment_node(**kwargs))

    return factory


@pytest.fixture
def environment_node_factory():
    return make_environment_node
