"""Change review tools: review_changes, get_diff, get_changed_files."""

import os
import time
import uuid
from contextlib import contextmanager
from typing import Annotated, Any, Iterator

import structlog
from fastmcp.exceptions import ToolError
from mcp.shared.exceptions import McpError
from mcp.types import INVALID_PARAMS, ErrorData
from pydantic import Field

from codex_review.mcp.config import config
from codex_review.review import (
    PLAIN_DIRECTORY,
    ChangeScope,
    CodexReviewError,
    DiffRequest,
    GitCommandError,
    GitDiffResolver,
    create_reviewer,
)
from codex_review.review.file_enumerator import (
    filter_paths,
    list_source_files,
    render_name_status,
    synthesize_diff,
)
from codex_review.review.reviewer import build_prompt

logger = structlog.get_logger(__name__)

VALID_SCOPES = ", ".join(scope.value for scope in ChangeScope)

# The enum is advertised only; validate_scope does the rejecting
ScopeArg = Annotated[
    str | None,
    Field(
        description=f"Which changes to use ({VALID_SCOPES}). Only used for git repos.",
        json_schema_extra={"enum": [scope.value for scope in ChangeScope]},
    ),
]
CwdArg = Annotated[
    str | None,
    Field(description="Path to the directory or git repository (defaults to server working directory)"),
]


def validate_scope(value: str | None) -> ChangeScope:
    """Parse the `type` argument, defaulting to unstaged when absent.

    Raises:
        McpError: INVALID_PARAMS for any unknown value
    """
    if value is None:
        return ChangeScope.UNSTAGED
    try:
        return ChangeScope(value)
    except ValueError:
        raise McpError(
            ErrorData(
                code=INVALID_PARAMS,
                message=f'Invalid type "{value}". Must be one of: {VALID_SCOPES}',
            )
        ) from None


@contextmanager
def _traced(tool: str, **fields) -> Iterator[Any]:
    """Bind a request id to the logger and log call duration."""
    log = logger.bind(tool=tool, request_id=str(uuid.uuid4())[:8])
    start_time = time.time()
    log.info("Tool called", **fields)
    try:
        yield log
    except ToolError as e:
        log.error("Tool failed", error=str(e), duration_ms=(time.time() - start_time) * 1000)
        raise
    log.info("Tool completed", duration_ms=(time.time() - start_time) * 1000)


async def review_changes(
    type: ScopeArg = None,
    cwd: CwdArg = None,
    model: Annotated[
        str | None, Field(description='Override the Codex model (e.g. "o3", "gpt-4.1")')
    ] = None,
    instructions: Annotated[
        str | None,
        Field(description="Additional review focus or instructions to append to the review prompt"),
    ] = None,
) -> str:
    """Review code using OpenAI Codex.

    Works with git repos (reviews the diff for the requested scope) or
    plain directories (reviews all source files).
    """
    request = DiffRequest(
        cwd=cwd or os.getcwd(),
        scope=validate_scope(type),
        model=model or config.default_model,
        instructions=instructions,
    )

    with _traced("review_changes", scope=request.scope.value, cwd=request.cwd, model=request.model):
        resolver = GitDiffResolver(request.cwd, git_bin=config.git_bin)
        try:
            command = await resolver.resolve(request.scope)
            prompt = build_prompt(command, request.instructions)
            return await create_reviewer().review(
                prompt,
                request.cwd,
                model=request.model,
                skip_git_repo_check=command is PLAIN_DIRECTORY,
            )
        except (CodexReviewError, GitCommandError, OSError) as e:
            raise ToolError(f"Codex review failed: {e}") from e


async def get_diff(
    type: ScopeArg = None,
    path: Annotated[
        str | None, Field(description="Filter diff to a specific file or directory")
    ] = None,
    cwd: CwdArg = None,
) -> str:
    """Get diff output.

    For git repos returns git diff; for plain directories returns file
    contents in unified diff format.
    """
    request = DiffRequest(cwd=cwd or os.getcwd(), scope=validate_scope(type), path=path)

    with _traced("get_diff", scope=request.scope.value, cwd=request.cwd, path=path):
        resolver = GitDiffResolver(request.cwd, git_bin=config.git_bin)
        try:
            command = await resolver.resolve(request.scope, path=path)

            if command is PLAIN_DIRECTORY:
                files = filter_paths(await list_source_files(request.cwd), path)
                if not files:
                    return f"No source files found{f' matching {path}' if path else ''}."
                return await synthesize_diff(request.cwd, files)

            output = await resolver.run(command, max_bytes=config.diff_max_bytes)
        except (GitCommandError, OSError) as e:
            raise ToolError(f"Failed to get diff: {e}") from e

        if not output.strip():
            return f"No {request.scope.label} changes found{f' for {path}' if path else ''}."
        return output


async def get_changed_files(
    type: ScopeArg = None,
    cwd: CwdArg = None,
) -> str:
    """List files.

    For git repos lists changed files; for plain directories lists all
    source files as added.
    """
    request = DiffRequest(cwd=cwd or os.getcwd(), scope=validate_scope(type))

    with _traced("get_changed_files", scope=request.scope.value, cwd=request.cwd):
        resolver = GitDiffResolver(request.cwd, git_bin=config.git_bin)
        try:
            command = await resolver.resolve(request.scope, name_status=True)

            if command is PLAIN_DIRECTORY:
                files = await list_source_files(request.cwd)
                if not files:
                    return "No source files found."
                return render_name_status(files)

            output = await resolver.run(command, max_bytes=config.name_status_max_bytes)
        except (GitCommandError, OSError) as e:
            raise ToolError(f"Failed to list changed files: {e}") from e

        if not output.strip():
            return f"No {request.scope.label} changes found."
        return output
