"""Presentation layer - human-friendly formatting."""

from .human_formatter import (
    format_apply_result,
    format_change_summary,
    format_plan,
    format_state,
    format_status,
)

__all__ = ["format_plan", "format_apply_result", "format_status", "format_state", "format_change_summary"]
