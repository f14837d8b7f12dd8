"""
Review Module

Diff resolution, plain-directory enumeration and Codex review invocation.
"""

from .models import (
    PLAIN_DIRECTORY,
    ChangeScope,
    DiffRequest,
    PlainDirectory,
    RepoStatus,
    ResolvedCommand,
)
from .git_diff import GitCommandError, GitDiffResolver
from .reviewer import CodexReviewError, CodexReviewer, ReviewTimeoutError, create_reviewer

__all__ = [
    "PLAIN_DIRECTORY",
    "ChangeScope",
    "DiffRequest",
    "PlainDirectory",
    "RepoStatus",
    "ResolvedCommand",
    "GitCommandError",
    "GitDiffResolver",
    "CodexReviewError",
    "CodexReviewer",
    "ReviewTimeoutError",
    "create_reviewer",
]
