"""
Data models for the review tools.

Defines the value types passed between the diff resolver, the file
enumerator and the Codex review invoker.
"""

import os
from dataclasses import dataclass, field
from enum import Enum


class ChangeScope(str, Enum):
    """Which comparison window a request targets."""

    UNSTAGED = "unstaged"  # git diff
    STAGED = "staged"  # git diff --cached
    LAST_COMMIT = "last_commit"  # git diff HEAD~1 HEAD

    @property
    def label(self) -> str:
        """Human-readable name used in messages."""
        return "last commit" if self is ChangeScope.LAST_COMMIT else self.value


class RepoStatus(str, Enum):
    """Result of probing a directory for a git work tree."""

    YES = "yes"
    NO = "no"
    INDETERMINATE = "indeterminate"  # git missing, permission error, ...

    @property
    def is_repo(self) -> bool:
        return self is RepoStatus.YES


@dataclass(frozen=True)
class DiffRequest:
    """Arguments of a single tool call."""

    cwd: str = field(default_factory=os.getcwd)
    scope: ChangeScope = ChangeScope.UNSTAGED
    path: str | None = None
    model: str | None = None
    instructions: str | None = None


@dataclass(frozen=True)
class ResolvedCommand:
    """Exactly one git invocation selected by the resolver."""

    program: str
    args: list[str]
    scope: ChangeScope
    root_diff: bool = False  # diffing against the empty tree

    @property
    def display(self) -> str:
        """The command as typed inside the repository."""
        return " ".join(["git", *self.args])


class PlainDirectory:
    """Sentinel: no version-control context, enumerate files instead."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "PLAIN_DIRECTORY"

    def __bool__(self) -> bool:
        return False


PLAIN_DIRECTORY = PlainDirectory()
