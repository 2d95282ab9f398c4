"""
Deployment URL discovery.

Railway assigns service domains and deployment URLs asynchronously, so a freshly
created environment usually has none. `extract` reads whatever a snapshot
exposes; `wait_for` polls until something appears or the time budget runs out.
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable, List, Optional, Tuple
from urllib.parse import urlparse

from railway_preview.core.exceptions import TransportError
from railway_preview.railway.registry import EnvironmentRegistry
from railway_preview.railway.schemas import DeploymentUrl, Environment, UrlType

logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL_SECONDS = 10.0


def normalize_url(raw: Optional[str]) -> Optional[str]:
    """
    Turn a bare hostname into an https URL and validate it.

    Returns None when the value is empty or does not parse as an http(s) URL
    with a host.
    """
    if not raw:
        return None
    candidate = raw.strip()
    if "://" not in candidate:
        candidate = f"https://{candidate}"

    try:
        parsed = urlparse(candidate)
    except ValueError:
        return None
    if parsed.scheme not in ("http", "https") or not parsed.hostname:
        return None
    if any(ch.isspace() for ch in candidate):
        return None
    return candidate


class UrlDiscovery:
    """Finds the externally visible URLs of an environment."""

    def __init__(
        self,
        registry: EnvironmentRegistry,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
        log: Optional[logging.Logger] = None,
    ):
        self.registry = registry
        self.sleep = sleep
        self.clock = clock
        self.logger = log or logger

    def extract(self, environment: Environment) -> List[DeploymentUrl]:
        """Collect, normalise and de-duplicate the URLs of every service instance."""
        urls: List[DeploymentUrl] = []
        seen = set()

        def add(raw: Optional[str], url_type: UrlType, service_name: str) -> None:
            url = normalize_url(raw)
            if url is None:
                if raw:
                    self.logger.warning(
                        f"Discarding invalid {url_type.value} URL "
                        f"for {service_name}: {raw}"
                    )
                return
            if url in seen:
                return
            seen.add(url)
            urls.append(
                DeploymentUrl(
                    url=url,
                    domain=urlparse(url).hostname,
                    type=url_type,
                    service_name=service_name,
                )
            )

        for instance in environment.service_instances:
            service_name = instance.service_name or "Service"

            for domain in instance.domains.service_domains:
                add(domain.domain, UrlType.SERVICE, service_name)

            for domain in instance.domains.custom_domains:
                add(domain.domain, UrlType.CUSTOM, service_name)

            deployment = instance.latest_deployment
            if deployment:
                add(deployment.url, UrlType.DEPLOYMENT, service_name)
                add(deployment.static_url, UrlType.STATIC, service_name)

        return urls

    async def wait_for(
        self,
        environment_id: str,
        max_wait: float,
        interval: float = DEFAULT_POLL_INTERVAL_SECONDS,
    ) -> Tuple[Environment, List[DeploymentUrl]]:
        """
        Poll the environment until at least one URL shows up.

        Args:
            environment_id: Railway environment ID
            max_wait: Time budget in seconds, measured from the call
            interval: Seconds to sleep after a poll that found nothing,
                capped so the last sleep ends at the budget

        Returns:
            (environment, urls). On timeout the last fetched snapshot is
            returned with an empty list.
        """
        started = self.clock()
        environment: Optional[Environment] = None
        last_error: Optional[TransportError] = None
        polls = 0

        while True:
            polls += 1
            try:
                environment = await self.registry.get(environment_id)
            except TransportError as e:
                self.logger.warning(f"Polling {environment_id} failed: {e}")
                last_error = e
            else:
                urls = self.extract(environment)
                if urls:
                    self.logger.info(
                        f"Found {len(urls)} deployment URL(s) after {polls} poll(s)"
                    )
                    return environment, urls

            elapsed = self.clock() - started
            if elapsed >= max_wait:
                break
            await self.sleep(min(interval, max_wait - elapsed))

        self.logger.warning(
            f"No deployment URLs for {environment_id} after {max_wait}s ({polls} polls)"
        )
        if environment is None:
            raise last_error
        return environment, []
