"""
GitHub Webhook Event Handler Service

Receives pull_request / push deliveries and runs the preview orchestration for
them, the same way the CI action does for its own event.

Also includes webhook signature verification for security.
GitHub signs every webhook request with HMAC-SHA256 to ensure security.
This prevents malicious actors from creating or deleting environments with
fake events.

Documentation: https://docs.github.com/en/webhooks/using-webhooks/validating-webhook-deliveries
"""

import hashlib
import hmac
import logging
import uuid
from typing import Optional

import httpx

from railway_preview.core.config import settings
from railway_preview.core.exceptions import PreviewEnvironmentError
from railway_preview.core.logging_config import clear_run_id, set_run_id
from railway_preview.orchestrator.schemas import (
    PreviewInputs,
    RepositoryEvent,
    RunOutcome,
)
from railway_preview.orchestrator.service import PreviewOrchestrator

logger = logging.getLogger(__name__)


class GitHubWebhookService:
    """Verifies webhook deliveries and drives the orchestrator for them."""

    def __init__(self, inputs: Optional[PreviewInputs] = None):
        self._inputs = inputs

    @property
    def inputs(self) -> PreviewInputs:
        if self._inputs is None:
            self._inputs = PreviewInputs.from_settings(settings)
        return self._inputs

    @staticmethod
    def verify_signature(signature: str, request_body: str) -> bool:
        """
        Verify GitHub webhook signature

        Args:
            signature: Value from X-Hub-Signature-256 header (format: "sha256=...")
            request_body: Raw request body as string (must be EXACT bytes GitHub sent)

        Returns:
            bool: True if signature is valid

        Raises:
            ValueError: If webhook secret is not configured, signature is missing,
                format is invalid, or signature verification fails

        Security notes:
        - Uses constant-time comparison (hmac.compare_digest) to prevent timing attacks
        - Must use raw request body (before JSON parsing)
        """
        if not settings.GITHUB_WEBHOOK_SECRET:
            error_msg = "GITHUB_WEBHOOK_SECRET not configured in settings"
            logger.error(error_msg)
            raise ValueError(error_msg)

        if not signature:
            error_msg = "No signature provided in webhook request"
            logger.error(error_msg)
            raise ValueError(error_msg)

        if not signature.startswith("sha256="):
            error_msg = f"Invalid signature format: {signature}"
            logger.error(error_msg)
            raise ValueError(error_msg)

        signature_hash = signature.replace("sha256=", "")

        expected_signature = hmac.new(
            key=settings.GITHUB_WEBHOOK_SECRET.encode("utf-8"),
            msg=request_body.encode("utf-8"),
            digestmod=hashlib.sha256,
        ).hexdigest()

        if not hmac.compare_digest(expected_signature, signature_hash):
            error_msg = (
                "GitHub webhook signature verification failed. "
                "This could indicate a fake request or misconfigured secret."
            )
            logger.error(error_msg)
            raise ValueError(error_msg)

        return True

    async def handle_event(self, event: RepositoryEvent) -> Optional[RunOutcome]:
        """
        Run the preview orchestration for one delivery.

        Runs as a background task, so failures are logged rather than raised.
        """
        set_run_id(str(uuid.uuid4()))
        try:
            owner = event.context.owner if event.context else None
            repo = event.context.repository_name if event.context else None

            async with httpx.AsyncClient(
                timeout=settings.HTTP_REQUEST_TIMEOUT_SECONDS
            ) as http_client:
                orchestrator = PreviewOrchestrator.from_inputs(
                    self.inputs, owner, repo, http_client
                )
                outcome = await orchestrator.run(event)

            logger.info(
                f"📦 Preview run finished: event={event.name}, "
                f"status={outcome.status.value}, outputs={outcome.outputs}"
            )
            return outcome
        except PreviewEnvironmentError as e:
            logger.error(f"❌ Preview run failed for {event.name}: {e}", exc_info=True)
            return None
        finally:
            clear_run_id()


github_webhook_service = GitHubWebhookService()
