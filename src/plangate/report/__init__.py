"""Report generation module - read-only output surfaces for plans."""

from .github import format_github_comment, post_pr_comment
from .markdown import format_markdown, generate_markdown

__all__ = [
    "format_github_comment",
    "post_pr_comment",
    "format_markdown",
    "generate_markdown",
]
