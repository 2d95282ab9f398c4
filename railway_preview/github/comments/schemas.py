"""
Pydantic schemas for GitHub issue comments.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from railway_preview.railway.schemas import DeploymentUrl


class CommentAuthor(BaseModel):
    """
    GitHub user that wrote a comment

    Example:
    {
        "login": "github-actions[bot]",
        "type": "Bot"
    }
    """

    model_config = ConfigDict(extra="ignore")

    login: str
    type: str = "User"  # "User", "Bot" or "Organization"


class CommentRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    body: Optional[str] = ""
    user: Optional[CommentAuthor] = None
    html_url: Optional[str] = None

    @property
    def is_bot(self) -> bool:
        return bool(self.user and self.user.type == "Bot")


class CommentPhase(str, Enum):
    """Lifecycle phase that selects the status comment template."""

    CREATING = "creating"
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"


class CommentContent(BaseModel):
    """Everything a status comment template needs."""

    phase: CommentPhase
    environment_name: str
    urls: List[DeploymentUrl] = Field(default_factory=list)
    deploy_failed: bool = False
