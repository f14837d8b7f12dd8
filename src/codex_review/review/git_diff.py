"""
Git Diff Resolver

Decides which git comparison answers a request and runs it. Directories
outside a git work tree resolve to PLAIN_DIRECTORY so callers can fall
back to enumerating files.
"""

import asyncio
from pathlib import Path

import structlog

from .models import PLAIN_DIRECTORY, ChangeScope, PlainDirectory, RepoStatus, ResolvedCommand

logger = structlog.get_logger(__name__)

NOT_A_REPO_MARKERS = ("not a git repository", "not a work tree")


class GitCommandError(RuntimeError):
    """A git invocation failed or produced unusable output."""


def build_diff_args(
    scope: ChangeScope,
    name_status: bool = False,
    base_revision: str | None = None,
    path: str | None = None,
) -> list[str]:
    """Build git diff arguments for a scope.

    ``base_revision`` is only used for LAST_COMMIT, where it is either
    ``HEAD~1`` or the empty tree hash.
    """
    args = ["diff"]
    if name_status:
        args.append("--name-status")

    if scope == ChangeScope.STAGED:
        args.append("--cached")
    elif scope == ChangeScope.LAST_COMMIT:
        args.extend([base_revision or "HEAD~1", "HEAD"])

    if path:
        args.extend(["--", path])
    return args


class GitDiffResolver:
    """Resolve and run git diff commands for one directory."""

    def __init__(self, repo_path: str | Path | None = None, git_bin: str = "git"):
        """Initialize resolver with optional repo path."""
        self.repo_path = Path(repo_path) if repo_path else Path.cwd()
        self.git_bin = git_bin

    async def check_repository(self) -> RepoStatus:
        """Check whether the directory is inside a git work tree.

        Never raises: anything other than a clear answer from git is
        INDETERMINATE.
        """
        try:
            returncode, stdout, stderr = await self._exec(
                ["rev-parse", "--is-inside-work-tree"]
            )
        except OSError as e:
            logger.warning(
                "Repository check could not run git",
                path=str(self.repo_path),
                error=str(e),
            )
            return RepoStatus.INDETERMINATE

        if returncode == 0:
            return RepoStatus.YES if stdout.strip() == "true" else RepoStatus.NO

        message = stderr.strip()
        if any(marker in message.lower() for marker in NOT_A_REPO_MARKERS):
            return RepoStatus.NO

        logger.warning(
            "Repository check failed",
            path=str(self.repo_path),
            returncode=returncode,
            error=message,
        )
        return RepoStatus.INDETERMINATE

    async def has_parent_commit(self) -> bool:
        """Check whether HEAD~1 resolves (False on the root commit)."""
        try:
            returncode, _, _ = await self._exec(["rev-parse", "HEAD~1"])
        except OSError:
            return False
        return returncode == 0

    async def empty_tree_hash(self) -> str:
        """Hash an empty tree with the repository's object format."""
        output = await self._run_git(["hash-object", "-t", "tree", "/dev/null"])
        return output.strip()

    async def resolve(
        self,
        scope: ChangeScope,
        name_status: bool = False,
        path: str | None = None,
    ) -> ResolvedCommand | PlainDirectory:
        """Pick the git diff invocation for a scope.

        Returns PLAIN_DIRECTORY when the directory is not a git work tree,
        regardless of scope.
        """
        status = await self.check_repository()
        if not status.is_repo:
            logger.debug("Resolved to plain directory", path=str(self.repo_path), status=status.value)
            return PLAIN_DIRECTORY

        base_revision = None
        root_diff = False
        if scope == ChangeScope.LAST_COMMIT:
            if await self.has_parent_commit():
                base_revision = "HEAD~1"
            else:
                # Initial commit: HEAD~1 is undefined
                base_revision = await self.empty_tree_hash()
                root_diff = True

        command = ResolvedCommand(
            program=self.git_bin,
            args=build_diff_args(scope, name_status, base_revision, path),
            scope=scope,
            root_diff=root_diff,
        )
        logger.debug("Resolved diff command", path=str(self.repo_path), command=command.display)
        return command

    async def run(self, command: ResolvedCommand, max_bytes: int | None = None) -> str:
        """Run a resolved command and return its stdout verbatim."""
        return await self._run_git(command.args, max_bytes=max_bytes)

    async def _run_git(self, args: list[str], max_bytes: int | None = None) -> str:
        """Run git command and return output."""
        try:
            returncode, stdout, stderr = await self._exec(args)
        except OSError as e:
            raise GitCommandError(f"Could not run {self.git_bin}: {e}") from e

        if returncode != 0:
            raise GitCommandError(
                f"Command failed: git {' '.join(args)}\n{stderr.strip()}"
            )

        if max_bytes is not None and len(stdout.encode()) > max_bytes:
            raise GitCommandError(
                f"Output of git {' '.join(args)} exceeded {max_bytes} bytes"
            )

        return stdout

    async def _exec(self, args: list[str]) -> tuple[int, str, str]:
        cmd = [self.git_bin, "-C", str(self.repo_path)] + args

        proc = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )

        stdout, stderr = await proc.communicate()
        return (
            proc.returncode,
            stdout.decode(errors="replace"),
            stderr.decode(errors="replace"),
        )
