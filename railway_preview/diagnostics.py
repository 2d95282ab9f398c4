"""
Connectivity check for a Railway token and source environment.

    RAILWAY_TOKEN=... RAILWAY_SOURCE_ENVIRONMENT_ID=... python -m railway_preview.diagnostics [--round-trip]

Steps:
1. Fetch the source environment
2. List the project's environments
3. With --round-trip, create and delete a throw-away environment
"""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

import httpx
from dotenv import load_dotenv

from railway_preview.core.config import settings
from railway_preview.core.exceptions import PreviewEnvironmentError, TransportError
from railway_preview.core.logging_config import configure_logging
from railway_preview.railway.client import RailwayGraphQLClient
from railway_preview.railway.registry import EnvironmentRegistry

logger = logging.getLogger(__name__)

ROUND_TRIP_ENVIRONMENT_NAME = "preview-diagnostics-check"

TROUBLESHOOTING = {
    401: [
        "Check that your Railway token is valid",
        "Ensure the token has access to the project",
    ],
    404: [
        "Check that the source environment ID is correct",
        "Verify you have access to the project containing this environment",
    ],
    400: [
        "The request format might be invalid",
        "Check environment name constraints (length, characters)",
    ],
}


def troubleshooting_tips(error: Exception) -> List[str]:
    """Hints for the most common failure causes, keyed by HTTP status."""
    if isinstance(error, TransportError) and error.status_code in TROUBLESHOOTING:
        return TROUBLESHOOTING[error.status_code]
    if "not found" in str(error).lower():
        return TROUBLESHOOTING[404]
    return []


async def run_diagnostics(
    registry: EnvironmentRegistry,
    source_environment_id: str,
    round_trip: bool = False,
) -> bool:
    try:
        logger.info("1. Getting source environment...")
        source = await registry.get(source_environment_id)
        logger.info(f"✅ Source environment: {source.name} (project {source.project_id})")

        logger.info("2. Listing project environments...")
        environments = await registry.list_by_project(source.project_id)
        for env in environments:
            logger.info(f"   - {env.name} (ephemeral={env.is_ephemeral})")

        if round_trip:
            logger.info(
                f"3. Creating round-trip environment {ROUND_TRIP_ENVIRONMENT_NAME}..."
            )
            existing = await registry.find_by_name(
                source.project_id, ROUND_TRIP_ENVIRONMENT_NAME
            )
            if existing:
                logger.info("Round-trip environment already exists; deleting it first")
                await registry.delete(existing.id)

            created = await registry.create(
                source.project_id, source_environment_id, ROUND_TRIP_ENVIRONMENT_NAME
            )
            logger.info(f"✅ Environment created: {created.name}")
            await registry.delete(created.id)
            logger.info("✅ Round-trip environment deleted")
    except PreviewEnvironmentError as e:
        logger.error(f"❌ Error during Railway API test: {e}")
        for tip in troubleshooting_tips(e):
            logger.info(f"💡 {tip}")
        return False

    logger.info("🎉 All checks passed! Railway API is working correctly.")
    return True


async def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument(
        "--round-trip",
        action="store_true",
        help="create and delete a test environment",
    )
    args = parser.parse_args(argv)

    token = settings.RAILWAY_TOKEN
    source_environment_id = settings.RAILWAY_SOURCE_ENVIRONMENT_ID
    if not token or not source_environment_id:
        logger.error("Please set RAILWAY_TOKEN and RAILWAY_SOURCE_ENVIRONMENT_ID")
        return 2

    async with httpx.AsyncClient(
        timeout=settings.HTTP_REQUEST_TIMEOUT_SECONDS
    ) as http_client:
        registry = EnvironmentRegistry(
            RailwayGraphQLClient(token, http_client=http_client)
        )
        ok = await run_diagnostics(
            registry, source_environment_id, round_trip=args.round_trip
        )
    return 0 if ok else 1


def cli() -> None:
    load_dotenv()
    configure_logging()
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    cli()
