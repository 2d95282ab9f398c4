"""
Normalization of raw GitHub events into RepositoryEvent.
"""

import logging
from typing import Any, Dict

from railway_preview.github.webhook.schema import (
    PullRequestWebhookPayload,
    PushWebhookPayload,
)
from railway_preview.orchestrator.schemas import EventKind, PRContext, RepositoryEvent

logger = logging.getLogger(__name__)

PULL_REQUEST_EVENTS = {"pull_request", "pull_request_target"}
BRANCH_REF_PREFIX = "refs/heads/"


def parse_event(event_name: str, payload: Dict[str, Any]) -> RepositoryEvent:
    """
    Turn an event name and its payload into a RepositoryEvent.

    Raises:
        pydantic.ValidationError: if a supported event has a malformed payload
    """
    if event_name in PULL_REQUEST_EVENTS:
        pr_payload = PullRequestWebhookPayload.model_validate(payload)
        return RepositoryEvent(
            kind=EventKind.PULL_REQUEST,
            name=event_name,
            action=pr_payload.action,
            context=PRContext(
                pr_number=pr_payload.pull_request.number,
                branch_name=pr_payload.pull_request.head.ref,
                repository_name=pr_payload.repository.name,
                owner=pr_payload.repository.owner.login,
            ),
        )

    if event_name == "push":
        push_payload = PushWebhookPayload.model_validate(payload)
        ref = push_payload.ref
        if not ref.startswith(BRANCH_REF_PREFIX) or push_payload.deleted:
            logger.info(f"Push event not for a live branch ({ref}), skipping")
            return RepositoryEvent(kind=EventKind.UNSUPPORTED, name=event_name, ref=ref)

        return RepositoryEvent(
            kind=EventKind.PUSH,
            name=event_name,
            ref=ref,
            context=PRContext(
                branch_name=ref[len(BRANCH_REF_PREFIX):],
                repository_name=push_payload.repository.name,
                owner=push_payload.repository.owner.login,
            ),
        )

    logger.info(f"Unsupported event type: {event_name}")
    return RepositoryEvent(kind=EventKind.UNSUPPORTED, name=event_name)
