"""GitHub PR comment formatting and posting."""

from typing import Optional
import requests
from .markdown import format_markdown
from ..approval.models import ApprovalOutcome, ApprovalRecord
from ..plan.models import PlanHandle
from ..presentation.human_formatter import format_change_summary
from ..utils.errors import PlanGateError
from ..utils.logging import get_logger

logger = get_logger("report.github")

# Marker to identify plangate comments
COMMENT_MARKER = "<!-- plangate-plan -->"

GITHUB_API = "https://api.github.com"

OUTCOME_EMOJI = {
    ApprovalOutcome.PENDING: "⏳",
    ApprovalOutcome.APPROVED: "✅",
    ApprovalOutcome.REJECTED: "❌",
    ApprovalOutcome.EXPIRED: "⌛",
}


def format_github_comment(handle: PlanHandle, approval: Optional[ApprovalRecord] = None) -> str:
    """Format a plan as a GitHub markdown comment with the full report collapsed."""
    comment_parts = [
        COMMENT_MARKER,
        "",
        "## plangate plan",
        "",
        f"**Plan:** `{handle.id}` ({handle.namespace})",
        f"**{format_change_summary(handle.change_set.summary())}**",
    ]
    if approval is not None:
        comment_parts.append(
            f"**Approval:** {OUTCOME_EMOJI.get(approval.outcome, '')} {approval.outcome.value}"
        )
        if approval.outcome == ApprovalOutcome.PENDING:
            comment_parts.append("")
            comment_parts.append(f"Approve with `plangate approve {handle.id} --actor <you>`")

    comment_parts.extend([
        "",
        "<details>",
        "<summary>Plan details</summary>",
        "",
        format_markdown(handle, approval),
        "",
        "</details>"
    ])
    return "\n".join(comment_parts)


def post_pr_comment(
    repo: str,
    pr_number: int,
    comment: str,
    token: str,
    update: bool = False
) -> None:
    """
    Post comment to GitHub PR via REST API.

    Args:
        repo: Repository in format "owner/repo"
        pr_number: Pull request number
        comment: Comment body (markdown)
        token: GitHub personal access token
        update: If True, update existing comment instead of creating new one

    Raises:
        PlanGateError: If API call fails
    """
    if "/" not in repo:
        raise PlanGateError(f"Invalid repository format: {repo}. Expected 'owner/repo'")

    owner, repo_name = repo.split("/", 1)
    api_url = f"{GITHUB_API}/repos/{owner}/{repo_name}/issues/{pr_number}/comments"

    headers = {
        "Authorization": f"token {token}",
        "Accept": "application/vnd.github.v3+json",
        "Content-Type": "application/json"
    }

    if update:
        try:
            response = requests.get(api_url, headers=headers)
            response.raise_for_status()

            existing_id = None
            for comment_obj in response.json():
                if COMMENT_MARKER in comment_obj.get("body", ""):
                    existing_id = comment_obj["id"]
                    break

            if existing_id:
                update_url = f"{GITHUB_API}/repos/{owner}/{repo_name}/issues/comments/{existing_id}"
                update_response = requests.patch(update_url, headers=headers, json={"body": comment})
                update_response.raise_for_status()
                logger.info(f"Updated existing plangate comment on PR #{pr_number}")
                return

        except requests.exceptions.RequestException as e:
            logger.warning(f"Failed to check for existing comments: {e}")

    try:
        response = requests.post(api_url, headers=headers, json={"body": comment})
        response.raise_for_status()
        logger.info(f"Posted plangate comment to PR #{pr_number}")

    except requests.exceptions.HTTPError as e:
        if e.response.status_code == 401:
            raise PlanGateError("GitHub authentication failed. Check your GITHUB_TOKEN.")
        elif e.response.status_code == 404:
            raise PlanGateError(f"Repository or PR not found: {repo}#{pr_number}")
        else:
            raise PlanGateError(f"GitHub API error: {e.response.text}")

    except requests.exceptions.RequestException as e:
        raise PlanGateError(f"Failed to post GitHub comment: {e}")
