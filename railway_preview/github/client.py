"""
GitHub REST client for pull request comments.

Only the handful of endpoints the preview flow needs: list/create/update issue
comments and look up the open pull request of a branch.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from railway_preview.core.config import settings
from railway_preview.core.exceptions import TransportError
from railway_preview.github.comments.schemas import CommentRecord
from railway_preview.utils.retry_decorator import retry_external_api

logger = logging.getLogger(__name__)


class GitHubClient:
    """Async client for the GitHub issues/pulls REST endpoints."""

    def __init__(
        self,
        token: str,
        owner: str,
        repo: str,
        http_client: Optional[httpx.AsyncClient] = None,
        base_url: Optional[str] = None,
    ):
        self.token = token
        self.owner = owner
        self.repo = repo
        self.base_url = (base_url or settings.GITHUB_API_BASE_URL).rstrip("/")
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=settings.HTTP_REQUEST_TIMEOUT_SECONDS
        )

    async def __aenter__(self) -> "GitHubClient":
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
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": settings.GITHUB_API_VERSION,
        }

    @property
    def repo_path(self) -> str:
        return f"/repos/{self.owner}/{self.repo}"

    async def _request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> Any:
        url = f"{self.base_url}{endpoint}"
        try:
            async for attempt in retry_external_api("GitHub"):
                with attempt:
                    response = await self._client.request(
                        method, url, params=params, json=json, headers=self.headers
                    )
                    response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise TransportError(
                f"GitHub API error: {e.response.status_code} {e.response.text}",
                status_code=e.response.status_code,
                body=e.response.text,
            ) from e
        except httpx.HTTPError as e:
            raise TransportError(f"GitHub request failed: {e}") from e

        try:
            return response.json()
        except ValueError as e:
            raise TransportError(
                f"Invalid JSON from GitHub: {response.text}",
                status_code=response.status_code,
                body=response.text,
            ) from e

    async def list_comments(self, issue_number: int) -> List[CommentRecord]:
        """List every comment on an issue or pull request (all pages)."""
        comments: List[CommentRecord] = []
        page = 1
        per_page = settings.GITHUB_COMMENTS_PER_PAGE

        while True:
            batch = await self._request(
                "GET",
                f"{self.repo_path}/issues/{issue_number}/comments",
                params={"per_page": per_page, "page": page},
            )
            comments.extend(CommentRecord.model_validate(item) for item in batch)
            if len(batch) < per_page:
                return comments
            page += 1

    async def create_comment(self, issue_number: int, body: str) -> CommentRecord:
        data = await self._request(
            "POST",
            f"{self.repo_path}/issues/{issue_number}/comments",
            json={"body": body},
        )
        return CommentRecord.model_validate(data)

    async def update_comment(self, comment_id: int, body: str) -> CommentRecord:
        data = await self._request(
            "PATCH",
            f"{self.repo_path}/issues/comments/{comment_id}",
            json={"body": body},
        )
        return CommentRecord.model_validate(data)

    async def find_open_pull_request(self, branch: str) -> Optional[int]:
        """Return the number of the open pull request whose head is `branch`."""
        pulls = await self._request(
            "GET",
            f"{self.repo_path}/pulls",
            params={"head": f"{self.owner}:{branch}", "state": "open"},
        )
        if not pulls:
            return None
        return pulls[0]["number"]
