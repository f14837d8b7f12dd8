"""Codex Review MCP Server.

FastMCP server exposing git diff inspection and Codex code review as
tools. Plain directories are handled too: their files are reported as
if newly added.

Usage:
    python -m codex_review.mcp.server
"""

import asyncio
import contextlib
import logging
import signal
import sys

import structlog
from fastmcp import FastMCP
from mcp.types import CallToolRequest

from codex_review.mcp.config import config
from codex_review.mcp.tools.changes import (
    get_changed_files,
    get_diff,
    review_changes,
    validate_scope,
)

logger = structlog.get_logger(__name__)

# Initialize FastMCP server
mcp = FastMCP("codex-review")

mcp.tool(
    review_changes,
    description=(
        "Review code using OpenAI Codex. Works with git repos (reviews diff) "
        "or plain directories (reviews all source files)."
    ),
)
mcp.tool(
    get_diff,
    description=(
        "Get diff output. For git repos returns git diff; for plain directories "
        "returns file contents in unified diff format."
    ),
)
mcp.tool(
    get_changed_files,
    description=(
        "List files. For git repos lists changed files; for plain directories "
        "lists all source files as added."
    ),
)

SCOPED_TOOLS = frozenset({"review_changes", "get_diff", "get_changed_files"})


def install_scope_validation(server: FastMCP) -> None:
    """Reject an invalid `type` argument with a JSON-RPC INVALID_PARAMS error.

    Exceptions raised inside a tool reach the client as error-flagged
    results, so the check runs before the SDK's call-tool handler.
    """
    handlers = server._mcp_server.request_handlers
    call_tool = handlers[CallToolRequest]

    async def validated_call_tool(req: CallToolRequest):
        arguments = req.params.arguments or {}
        if req.params.name in SCOPED_TOOLS:
            validate_scope(arguments.get("type"))
        return await call_tool(req)

    handlers[CallToolRequest] = validated_call_tool


install_scope_validation(mcp)


def configure_logging(level: str = "INFO") -> None:
    """Configure structured logging on stderr (stdout carries the protocol)."""
    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, level.upper(), logging.INFO)),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )


class ShutdownHook:
    """Close the transport on the first interrupt; later signals are ignored."""

    def __init__(self, server_task: asyncio.Task):
        self.server_task = server_task
        self.fired = False

    def __call__(self) -> None:
        if self.fired:
            return
        self.fired = True
        logger.info("Shutting down Codex Review MCP server")
        self.server_task.cancel()


# =============================================================================
# Server Entry Point
# =============================================================================


async def serve() -> None:
    """Run the stdio transport until it ends or a shutdown signal arrives."""
    loop = asyncio.get_running_loop()
    server_task = asyncio.create_task(mcp.run_async(transport="stdio"))

    hook = ShutdownHook(server_task)
    for sig in (signal.SIGINT, signal.SIGTERM):
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(sig, hook)

    logger.info("Codex Review MCP server running on stdio")
    try:
        await server_task
    except asyncio.CancelledError:
        if not hook.fired:
            raise
    finally:
        for sig in (signal.SIGINT, signal.SIGTERM):
            with contextlib.suppress(NotImplementedError):
                loop.remove_signal_handler(sig)


def main() -> None:
    """Start the MCP server."""
    configure_logging(config.log_level)
    logger.info("Starting Codex Review MCP Server...")
    logger.info(
        "Configuration",
        git_bin=config.git_bin,
        codex_bin=config.codex_bin,
        review_timeout=config.review_timeout,
        default_model=config.default_model,
    )

    try:
        asyncio.run(serve())
    except Exception as e:
        logger.error("Failed to start Codex Review MCP server", error=str(e))
        sys.exit(1)


if __name__ == "__main__":
    main()
