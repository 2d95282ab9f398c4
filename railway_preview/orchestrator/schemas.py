"""
Pydantic schemas for preview orchestration: invocation inputs, the normalized
repository event, and the outcome of one run.
"""

from enum import Enum
from typing import Dict, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field

from railway_preview.core.config import Settings

# Input name -> accepted INPUT_* variable names, first non-empty wins
ACTION_INPUT_ALIASES: Dict[str, tuple] = {
    "platform_token": ("PLATFORM_TOKEN", "RAILWAY_TOKEN"),
    "source_environment_id": ("SOURCE_ENVIRONMENT_ID",),
    "comment_token": ("COMMENT_TOKEN", "GITHUB_TOKEN"),
    "environment_name_prefix": ("ENVIRONMENT_NAME_PREFIX",),
    "comment_on_pr": ("COMMENT_ON_PR",),
    "deploy_on_create": ("DEPLOY_ON_CREATE",),
    "wait_for_urls": ("WAIT_FOR_URLS",),
    "url_wait_timeout": ("URL_WAIT_TIMEOUT",),
    "ephemeral": ("EPHEMERAL", "IS_EPHEMERAL"),
    "comment_author_login": ("COMMENT_AUTHOR_LOGIN",),
}


class PreviewInputs(BaseModel):
    """Invocation inputs for one orchestration run."""

    model_config = ConfigDict(frozen=True)

    platform_token: Optional[str] = None
    source_environment_id: Optional[str] = None
    comment_token: Optional[str] = None
    environment_name_prefix: str = "pr-"
    comment_on_pr: bool = True
    deploy_on_create: bool = True
    wait_for_urls: bool = True
    url_wait_timeout: int = Field(default=120, ge=0)  # seconds
    url_poll_interval: float = Field(default=10.0, gt=0)  # seconds
    ephemeral: bool = False
    comment_author_login: Optional[str] = None

    @property
    def has_platform_credentials(self) -> bool:
        return bool(self.platform_token and self.source_environment_id)

    @classmethod
    def from_action_env(cls, environ: Mapping[str, str]) -> "PreviewInputs":
        """
        Build inputs from GitHub Actions `INPUT_*` variables.

        Empty values fall back to the defaults, which is what an unset
        `with:` key looks like inside a composite action.
        """
        values = {}
        for field_name, names in ACTION_INPUT_ALIASES.items():
            for name in names:
                raw = (environ.get(f"INPUT_{name}") or "").strip()
                if raw:
                    values[field_name] = raw
                    break
        return cls.model_validate(values)

    @classmethod
    def from_settings(cls, settings: Settings) -> "PreviewInputs":
        return cls(
            platform_token=settings.RAILWAY_TOKEN,
            source_environment_id=settings.RAILWAY_SOURCE_ENVIRONMENT_ID,
            comment_token=settings.GITHUB_TOKEN,
            environment_name_prefix=settings.PREVIEW_ENVIRONMENT_NAME_PREFIX,
            comment_on_pr=settings.PREVIEW_COMMENT_ON_PR,
            deploy_on_create=settings.PREVIEW_DEPLOY_ON_CREATE,
            wait_for_urls=settings.PREVIEW_WAIT_FOR_URLS,
            url_wait_timeout=settings.PREVIEW_URL_WAIT_TIMEOUT_SECONDS,
            url_poll_interval=settings.PREVIEW_URL_POLL_INTERVAL_SECONDS,
            ephemeral=settings.PREVIEW_EPHEMERAL,
            comment_author_login=settings.PREVIEW_COMMENT_AUTHOR_LOGIN,
        )


class PRContext(BaseModel):
    """The pull request a run is about. Derived once, never mutated."""

    model_config = ConfigDict(frozen=True)

    pr_number: Optional[int] = None
    branch_name: str
    repository_name: str
    owner: Optional[str] = None


class EventKind(str, Enum):
    PULL_REQUEST = "pull_request"
    PUSH = "push"
    UNSUPPORTED = "unsupported"


class RepositoryEvent(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: EventKind
    name: str  # raw event name, e.g. "pull_request_target"
    action: Optional[str] = None
    context: Optional[PRContext] = None
    ref: Optional[str] = None


class DeployStatus(str, Enum):
    TRIGGERED = "triggered"  # a deploy strategy succeeded
    FAILED = "failed"  # every strategy failed or none applied; deploy manually
    SKIPPED = "skipped"  # deploy_on_create disabled


class RunStatus(str, Enum):
    DEPLOYED = "deployed"
    DELETED = "deleted"
    NOOP = "noop"
    SKIPPED = "skipped"


class RunOutcome(BaseModel):
    status: RunStatus
    outputs: Dict[str, str] = Field(default_factory=dict)
    message: Optional[str] = None
