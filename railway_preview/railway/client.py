"""
Railway GraphQL transport.

Sends a query + variables payload to the single Railway endpoint and returns the
parsed `data` object. Transient HTTP failures are retried through tenacity; what
is left over is classified into TransportError or PlatformQueryError.
"""

import json
import logging
from typing import Any, Dict, Optional

import httpx

from railway_preview.core.config import settings
from railway_preview.core.exceptions import PlatformQueryError, TransportError
from railway_preview.utils.retry_decorator import retry_external_api

logger = logging.getLogger(__name__)


class RailwayGraphQLClient:
    """Thin async client for Railway's public GraphQL API."""

    def __init__(
        self,
        token: str,
        http_client: Optional[httpx.AsyncClient] = None,
        endpoint: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.token = token
        self.endpoint = endpoint or settings.RAILWAY_GRAPHQL_URL
        self.timeout = timeout or settings.HTTP_REQUEST_TIMEOUT_SECONDS
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=self.timeout)

    async def __aenter__(self) -> "RailwayGraphQLClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    @property
    def headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.token}",
            "Content-Type": "application/json",
        }

    async def execute(
        self, query: str, variables: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """
        Execute a GraphQL query or mutation.

        Returns:
            The `data` object of the response

        Raises:
            TransportError: non-2xx status, network failure after retries,
                or a body that is not a JSON object
            PlatformQueryError: the response carries GraphQL `errors`
        """
        payload = {"query": query, "variables": variables or {}}

        try:
            async for attempt in retry_external_api("Railway"):
                with attempt:
                    response = await self._client.post(
                        self.endpoint,
                        json=payload,
                        headers=self.headers,
                        timeout=self.timeout,
                    )
                    response.raise_for_status()
        except httpx.HTTPStatusError as e:
            body = e.response.text
            logger.error(
                f"Railway API error: status={e.response.status_code}, body={body}"
            )
            raise TransportError(
                f"HTTP error! status: {e.response.status_code}, body: {body}",
                status_code=e.response.status_code,
                body=body,
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"Railway API request failed: {type(e).__name__}: {e}")
            raise TransportError(f"Railway request failed: {e}") from e

        try:
            result = response.json()
        except (json.JSONDecodeError, ValueError) as e:
            logger.error(f"Failed to parse Railway API response: {response.text}")
            raise TransportError(
                f"Invalid JSON response: {response.text}",
                status_code=response.status_code,
                body=response.text,
            ) from e

        if not isinstance(result, dict):
            raise TransportError(
                f"Unexpected response shape: {response.text}",
                status_code=response.status_code,
                body=response.text,
            )

        errors = result.get("errors")
        if errors:
            logger.debug(f"GraphQL errors: {errors}")
            raise PlatformQueryError(errors if isinstance(errors, list) else [errors])

        return result.get("data") or {}
