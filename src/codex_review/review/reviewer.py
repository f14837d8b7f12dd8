"""
Codex Review Invoker

Builds the review prompt and runs `codex exec` non-interactively in a
read-only sandbox, capturing its final message through a temp file.
"""

import asyncio
import contextlib
import os
import secrets
import tempfile
import time
from pathlib import Path

import anyio
import structlog

from codex_review.mcp.config import config

from .models import PLAIN_DIRECTORY, PlainDirectory, ResolvedCommand

logger = structlog.get_logger(__name__)

REVIEW_CRITERIA = """\
- Correctness and potential bugs
- Code style and readability
- Performance considerations
- Security concerns
- Suggestions for improvement"""

DEFAULT_TIMEOUT_SECONDS = 300.0


class CodexReviewError(RuntimeError):
    """The codex executable failed or could not be started."""


class ReviewTimeoutError(CodexReviewError):
    """The review did not finish within the timeout."""


def build_prompt(command: ResolvedCommand | PlainDirectory, instructions: str | None = None) -> str:
    """Build the review prompt for a resolved command or a plain directory."""
    if command is PLAIN_DIRECTORY:
        prompt = (
            "Review all source code files in this directory. Read the files and "
            f"provide a thorough code review covering:\n{REVIEW_CRITERIA}"
        )
    else:
        prompt = (
            f"Review the current {command.scope.label} changes in this git repository. "
            f"Run `{command.display}` to see the changes, then provide a thorough "
            f"code review covering:\n{REVIEW_CRITERIA}"
        )

    if instructions:
        prompt += f"\n\nAdditional instructions: {instructions}"
    return prompt


def _output_path() -> Path:
    """Unique temp file for the final review message."""
    millis = int(time.time() * 1000)
    return Path(tempfile.gettempdir()) / f"codex-review-{millis}-{secrets.token_hex(6)}.md"


class CodexReviewer:
    """Run code reviews with the Codex CLI."""

    def __init__(
        self,
        codex_bin: str = "codex",
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ):
        """
        Initialize the reviewer.

        Args:
            codex_bin: Codex executable name or path
            timeout: Seconds before the codex process is killed
        """
        self.codex_bin = codex_bin
        self.timeout = timeout

    def build_args(
        self,
        prompt: str,
        cwd: str,
        output_file: Path,
        model: str | None = None,
        skip_git_repo_check: bool = False,
    ) -> list[str]:
        """Build `codex exec` arguments."""
        args = [
            "exec", prompt,
            "-C", cwd,
            "-s", "read-only",
            "--output-last-message", str(output_file),
            "--color", "never",
        ]
        if model:
            args.extend(["-m", model])
        if skip_git_repo_check:
            args.append("--skip-git-repo-check")
        return args

    async def review(
        self,
        prompt: str,
        cwd: str,
        model: str | None = None,
        skip_git_repo_check: bool = False,
    ) -> str:
        """Run a review and return Codex's final message.

        The temp file is removed on every exit path.

        Raises:
            ReviewTimeoutError: The process outlived the timeout
            CodexReviewError: The process could not start or exited non-zero
        """
        output_file = _output_path()
        args = self.build_args(prompt, cwd, output_file, model, skip_git_repo_check)
        logger.debug("Starting codex review", cwd=cwd, model=model, output_file=str(output_file))

        try:
            await self._run(args)
            return await anyio.Path(output_file).read_text(encoding="utf-8", errors="replace")
        finally:
            with contextlib.suppress(OSError):
                os.unlink(output_file)

    async def _run(self, args: list[str]) -> None:
        try:
            proc = await asyncio.create_subprocess_exec(
                self.codex_bin,
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=dict(os.environ),
            )
        except OSError as e:
            raise CodexReviewError(f"Could not run {self.codex_bin}: {e}") from e

        try:
            _, stderr = await asyncio.wait_for(proc.communicate(), timeout=self.timeout)
        except asyncio.TimeoutError:
            with contextlib.suppress(ProcessLookupError):
                proc.kill()
            await proc.wait()
            raise ReviewTimeoutError(
                f"{self.codex_bin} timed out after {self.timeout:g} seconds"
            ) from None

        if proc.returncode != 0:
            message = stderr.decode(errors="replace").strip()
            raise CodexReviewError(
                f"{self.codex_bin} exited with code {proc.returncode}"
                + (f": {message}" if message else "")
            )


def create_reviewer() -> CodexReviewer:
    """Create a reviewer wired from server configuration."""
    return CodexReviewer(codex_bin=config.codex_bin, timeout=config.review_timeout)
