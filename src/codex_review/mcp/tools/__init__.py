"""MCP Tools for Codex Review.

This module contains the MCP tool implementations:
- changes: review_changes, get_diff and get_changed_files
"""

__all__ = [
    "changes",
]
