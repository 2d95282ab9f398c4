"""
Status comment reconciliation.

Keeps exactly one automation-authored status comment per pull request: the
existing one is edited in place, and a new one is only created when none is
found.
"""

import logging
from typing import List, Optional

from railway_preview.github.client import GitHubClient
from railway_preview.github.comments.schemas import CommentContent, CommentRecord
from railway_preview.github.comments.templates import (
    COMMENT_MARKER,
    LEGACY_COMMENT_MARKER,
    render_comment,
)

logger = logging.getLogger(__name__)


class CommentReconciler:
    """Create-or-update of the single preview status comment on a PR."""

    def __init__(
        self,
        client: GitHubClient,
        author_login: Optional[str] = None,
        log: Optional[logging.Logger] = None,
    ):
        self.client = client
        self.author_login = author_login
        self.logger = log or logger

    def is_status_comment(self, comment: CommentRecord) -> bool:
        """
        Check whether a comment is our status comment.

        The author must be a bot (and the configured login, if any). The body
        must carry the marker, or the legacy heading for comments written
        before the marker was introduced.
        """
        if not comment.is_bot:
            return False
        if self.author_login and comment.user.login != self.author_login:
            return False
        body = comment.body or ""
        return COMMENT_MARKER in body or LEGACY_COMMENT_MARKER in body

    def find_status_comment(
        self, comments: List[CommentRecord]
    ) -> Optional[CommentRecord]:
        candidates = [c for c in comments if self.is_status_comment(c)]
        # Marker matches win over legacy text matches
        for comment in candidates:
            if COMMENT_MARKER in (comment.body or ""):
                return comment
        return candidates[0] if candidates else None

    async def upsert(self, pr_number: int, body: str) -> CommentRecord:
        """Replace the body of the existing status comment, or create one."""
        comments = await self.client.list_comments(pr_number)
        existing = self.find_status_comment(comments)

        if existing:
            record = await self.client.update_comment(existing.id, body)
            self.logger.info(
                f"Updated existing PR comment {existing.id} on #{pr_number}"
            )
            return record

        record = await self.client.create_comment(pr_number, body)
        self.logger.info(f"Created new PR comment {record.id} on #{pr_number}")
        return record

    async def publish(self, pr_number: int, content: CommentContent) -> CommentRecord:
        """Render a lifecycle template and upsert it."""
        return await self.upsert(pr_number, render_comment(content))
