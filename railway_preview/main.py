from contextlib import asynccontextmanager
from dotenv import load_dotenv
import logging
import sentry_sdk
from fastapi import APIRouter, FastAPI
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from railway_preview.core.config import settings
from railway_preview.core.logging_config import configure_logging
from railway_preview.github.webhook.router import limiter
from railway_preview.github.webhook.router import router as github_webhook_router


# Load environment variables
load_dotenv()

configure_logging()

logger = logging.getLogger(__name__)

# Initialize Sentry for error tracking
if settings.SENTRY_DSN:
    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        traces_sample_rate=1.0 if settings.is_local else 0.1,
        environment=settings.ENVIRONMENT,
        send_default_pii=False,
    )
    logger.info("Sentry initialized")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Log start-up configuration problems early; nothing else needs setup."""
    logger.info("Starting preview environment webhook service...")
    if not settings.GITHUB_WEBHOOK_SECRET:
        logger.warning("GITHUB_WEBHOOK_SECRET not set; every delivery will be rejected")
    if not settings.RAILWAY_TOKEN or not settings.RAILWAY_SOURCE_ENVIRONMENT_ID:
        logger.warning("Railway credentials not set; preview runs will be skipped")
    yield
    logger.info("Preview environment webhook service stopped")


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

api_router = APIRouter()
api_router.include_router(github_webhook_router)
app.include_router(api_router, prefix=settings.API_V1_PREFIX)


@app.get("/health")
async def health():
    return {"status": "healthy", "service": settings.PROJECT_NAME}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("railway_preview.main:app", host="0.0.0.0", port=8000)
