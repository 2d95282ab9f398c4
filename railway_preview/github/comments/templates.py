"""
Markdown templates for the pull request status comment.

Every body starts with COMMENT_MARKER, an HTML comment GitHub does not render,
so the reconciler can find its own comment without guessing from the text.
"""

from collections import OrderedDict
from typing import Dict, List

from railway_preview.github.comments.schemas import CommentContent, CommentPhase
from railway_preview.railway.schemas import DeploymentUrl, UrlType

COMMENT_MARKER = "<!-- railway-preview-environment -->"
# Heading text used by comments written before the marker existed
LEGACY_COMMENT_MARKER = "Railway Preview Environment"

TYPE_LABELS = {
    UrlType.CUSTOM: " (Custom Domain)",
    UrlType.STATIC: " (Static)",
}


def format_urls_section(urls: List[DeploymentUrl]) -> str:
    """Render URLs grouped by service; service headings only when there are several."""
    if not urls:
        return "\n\n*🔄 Deployment URLs will appear here once the build completes...*"

    by_service: Dict[str, List[DeploymentUrl]] = OrderedDict()
    for url in urls:
        by_service.setdefault(url.service_name or "Service", []).append(url)

    section = "\n\n**🔗 Deployment URLs:**"
    for service_name, service_urls in by_service.items():
        if len(by_service) > 1:
            section += f"\n\n**{service_name}:**"
        for url in service_urls:
            label = TYPE_LABELS.get(url.type, "")
            section += f"\n- [{url.domain}]({url.url}){label}"

    return section


def _creating_body(content: CommentContent) -> str:
    return f"""## 🚀 Railway Preview Environment Creating

**Environment:** {content.environment_name}
**Status:** 🔄 Creating and deploying...

*Deployment URLs will appear here once the build completes (usually takes 1-2 minutes).*

---
*This comment will be automatically updated with deployment URLs.*"""


def _deleted_body(content: CommentContent) -> str:
    return f"""## 🗑️ Railway Preview Environment Deleted

The preview environment **{content.environment_name}** has been deleted as the PR was closed."""


def _status_body(content: CommentContent) -> str:
    title = "Ready" if content.phase == CommentPhase.CREATED else "Updated"
    if content.urls:
        status = "✅ Ready"
    else:
        status = "🔄 Deploying..."

    manual_note = ""
    if content.deploy_failed:
        manual_note = (
            "\n\n> ⚠️ The deployment could not be triggered automatically. "
            "Trigger it manually from the Railway dashboard."
        )

    return f"""## 🚀 Railway Preview Environment {title}

**Environment:** {content.environment_name}
**Status:** {status}{format_urls_section(content.urls)}{manual_note}

---
*This comment is automatically updated when the PR is synchronized.*"""


def render_comment(content: CommentContent) -> str:
    """Render the status comment body for a lifecycle phase."""
    if content.phase == CommentPhase.CREATING:
        body = _creating_body(content)
    elif content.phase == CommentPhase.DELETED:
        body = _deleted_body(content)
    else:
        body = _status_body(content)
    return f"{COMMENT_MARKER}\n{body}"
