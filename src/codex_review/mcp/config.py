"""Configuration management for the Codex Review MCP server."""

import os
from dataclasses import dataclass

MIB = 1024 * 1024


@dataclass
class MCPConfig:
    """MCP server configuration."""

    # External executables
    git_bin: str = "git"
    codex_bin: str = "codex"

    # Review invocation
    review_timeout: float = 300.0  # seconds
    default_model: str | None = None

    # Output limits for git commands
    diff_max_bytes: int = 50 * MIB
    name_status_max_bytes: int = 10 * MIB

    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "MCPConfig":
        """Create configuration from environment variables."""
        return cls(
            git_bin=os.getenv("CODEX_REVIEW_GIT_BIN", "git"),
            codex_bin=os.getenv("CODEX_REVIEW_CODEX_BIN", "codex"),
            review_timeout=float(os.getenv("CODEX_REVIEW_TIMEOUT", "300")),
            default_model=os.getenv("CODEX_REVIEW_MODEL") or None,
            diff_max_bytes=int(os.getenv("CODEX_REVIEW_DIFF_MAX_BYTES", str(50 * MIB))),
            name_status_max_bytes=int(
                os.getenv("CODEX_REVIEW_NAME_STATUS_MAX_BYTES", str(10 * MIB))
            ),
            log_level=os.getenv("CODEX_REVIEW_LOG_LEVEL", "INFO").upper(),
        )


# Global configuration instance
config = MCPConfig.from_env()
