"""
GitHub Event Payload Schemas

The same payloads arrive two ways: as webhook deliveries to the FastAPI
receiver, and as the JSON file GitHub Actions writes to GITHUB_EVENT_PATH.
Only the fields the preview flow reads are modelled; the rest is ignored.

Documentation: https://docs.github.com/en/webhooks/webhook-events-and-payloads
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict


class GitHubAccount(BaseModel):
    """
    GitHub user or organization account

    Example:
    {
        "id": 123456,
        "login": "octo-org",
        "type": "Organization"
    }
    """

    model_config = ConfigDict(extra="ignore")

    id: Optional[int] = None
    login: str  # GitHub username or org name
    type: Optional[str] = None  # "User", "Bot" or "Organization"


class GitHubRepository(BaseModel):
    """
    Repository the event belongs to

    Example:
    {
        "name": "web",
        "full_name": "octo-org/web",
        "owner": {"login": "octo-org"}
    }
    """

    model_config = ConfigDict(extra="ignore")

    name: str
    full_name: Optional[str] = None
    owner: GitHubAccount


class PullRequestHead(BaseModel):
    model_config = ConfigDict(extra="ignore")

    ref: str  # Branch name, e.g. "feature/login"
    sha: Optional[str] = None


class PullRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    number: int
    state: Optional[str] = None
    head: PullRequestHead


class PullRequestWebhookPayload(BaseModel):
    """
    Payload of `pull_request` / `pull_request_target` events

    Actions the preview flow reacts to:
    - opened / reopened / synchronize: ensure and deploy the preview
    - closed: tear the preview down
    """

    model_config = ConfigDict(extra="ignore")

    action: str
    number: Optional[int] = None
    pull_request: PullRequest
    repository: GitHubRepository
    sender: Optional[GitHubAccount] = None


class PushWebhookPayload(BaseModel):
    """
    Payload of `push` events

    Example:
    {
        "ref": "refs/heads/feature/login",
        "repository": {...}
    }
    """

    model_config = ConfigDict(extra="ignore")

    ref: str
    repository: GitHubRepository
    deleted: bool = False
    sender: Optional[GitHubAccount] = None
