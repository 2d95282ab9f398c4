"""
GitHub Actions entry point.

    python -m railway_preview.action

Reads inputs from INPUT_* variables, the event from GITHUB_EVENT_NAME and
GITHUB_EVENT_PATH, runs one orchestration and appends the outputs to the file
named by GITHUB_OUTPUT. Exits 1 when the run fails.
"""

import asyncio
import json
import logging
import os
import sys
import uuid
from pathlib import Path
from typing import Dict, Mapping, Optional

import httpx
from dotenv import load_dotenv
from pydantic import ValidationError

from railway_preview.core.config import settings
from railway_preview.core.exceptions import PreviewEnvironmentError
from railway_preview.core.logging_config import configure_logging, set_run_id
from railway_preview.orchestrator.events import parse_event
from railway_preview.orchestrator.schemas import PreviewInputs, RepositoryEvent
from railway_preview.orchestrator.service import PreviewOrchestrator

logger = logging.getLogger(__name__)


def load_event(environ: Mapping[str, str]) -> RepositoryEvent:
    """Read the triggering event the runner wrote to GITHUB_EVENT_PATH."""
    event_name = environ.get("GITHUB_EVENT_NAME", "")
    event_path = environ.get("GITHUB_EVENT_PATH")

    payload = {}
    if event_path and Path(event_path).exists():
        payload = json.loads(Path(event_path).read_text(encoding="utf-8"))
    else:
        logger.warning("GITHUB_EVENT_PATH not set or missing; using an empty payload")

    return parse_event(event_name, payload)


def split_repository(environ: Mapping[str, str], event: RepositoryEvent):
    """Return (owner, repo), preferring GITHUB_REPOSITORY over the payload."""
    full_name = environ.get("GITHUB_REPOSITORY", "")
    if "/" in full_name:
        owner, repo = full_name.split("/", 1)
        return owner, repo
    if event.context:
        return event.context.owner, event.context.repository_name
    return None, None


def write_outputs(outputs: Dict[str, str], environ: Mapping[str, str]) -> None:
    output_path: Optional[str] = environ.get("GITHUB_OUTPUT")
    for name, value in outputs.items():
        logger.info(f"Output {name}: {value}")

    if not output_path:
        return
    with open(output_path, "a", encoding="utf-8") as handle:
        for name, value in outputs.items():
            handle.write(f"{name}={value}\n")


async def run_action(environ: Mapping[str, str] = os.environ) -> int:
    set_run_id(environ.get("GITHUB_RUN_ID") or str(uuid.uuid4()))

    try:
        inputs = PreviewInputs.from_action_env(environ)
        event = load_event(environ)
    except (ValidationError, ValueError) as e:
        logger.error(f"Action failed: invalid inputs or event payload: {e}")
        return 1

    owner, repo = split_repository(environ, event)

    try:
        async with httpx.AsyncClient(
            timeout=settings.HTTP_REQUEST_TIMEOUT_SECONDS
        ) as http_client:
            orchestrator = PreviewOrchestrator.from_inputs(
                inputs, owner, repo, http_client
            )
            outcome = await orchestrator.run(event)
    except PreviewEnvironmentError as e:
        logger.error(f"Action failed: {e}", exc_info=True)
        return 1

    write_outputs(outcome.outputs, environ)
    logger.info(f"Preview run finished with status {outcome.status.value}")
    return 0


def main() -> None:
    load_dotenv()
    configure_logging()
    sys.exit(asyncio.run(run_action()))


if __name__ == "__main__":
    main()
