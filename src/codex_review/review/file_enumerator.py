"""
File Enumerator

Lists reviewable source files in directories that are not git work trees
and renders them as if every file were newly added.
"""

import os
from pathlib import Path

import anyio

# Matched against every entry name, files included
SKIP_DIRS = frozenset({
    "node_modules",
    ".git",
    "build",
    "dist",
    ".target",
    "coverage",
    "__pycache__",
    ".next",
    "vendor",
})

BINARY_EXTS = frozenset({
    # Images
    ".png", ".jpg", ".jpeg", ".gif", ".bmp", ".ico", ".webp", ".svg",
    # Archives
    ".zip", ".tar", ".gz", ".bz2", ".xz", ".7z", ".rar",
    # Native binaries
    ".exe", ".dll", ".so", ".dylib", ".o", ".a", ".lib",
    # Fonts
    ".woff", ".woff2", ".ttf", ".eot", ".otf",
    # Documents
    ".pdf", ".doc", ".docx", ".xls", ".xlsx",
    # Media
    ".mp3", ".mp4", ".wav", ".avi", ".mov", ".mkv",
    # Compiled
    ".pyc", ".pyo", ".class", ".jar", ".war",
})


def is_reviewable(name: str) -> bool:
    """Check a file name against the binary and dotfile rules."""
    ext = os.path.splitext(name)[1].lower()
    if ext in BINARY_EXTS:
        return False
    # Extensionless dotfiles like .DS_Store
    if name.startswith(".") and ext == "":
        return False
    return True


def collect_files(directory: str | Path, base: str | Path | None = None) -> list[str]:
    """Recursively list reviewable files under a directory.

    Args:
        directory: Directory to walk
        base: Root the returned paths are relative to. Only set on
            recursive calls; the top-level call sorts its result.

    Returns:
        Relative POSIX paths
    """
    root = Path(base) if base is not None else Path(directory)
    files: list[str] = []

    with os.scandir(directory) as entries:
        for entry in entries:
            if entry.name in SKIP_DIRS:
                continue

            if entry.is_dir(follow_symlinks=False):
                files.extend(collect_files(entry.path, root))
            elif entry.is_file(follow_symlinks=False):
                if not is_reviewable(entry.name):
                    continue
                files.append(Path(entry.path).relative_to(root).as_posix())

    return sorted(files) if base is None else files


def filter_paths(files: list[str], path: str | None) -> list[str]:
    """Keep files equal to ``path`` or nested below it."""
    if not path:
        return files
    prefix = path.rstrip("/") + "/"
    return [f for f in files if f == path or f.startswith(prefix)]


def render_addition(path: str, content: str) -> str:
    """Render file content as a unified diff hunk adding every line."""
    lines = content.split("\n")
    # Drop the empty element left by a final newline
    if lines and lines[-1] == "":
        lines.pop()

    header = f"--- /dev/null\n+++ b/{path}\n@@ -0,0 +1,{len(lines)} @@\n"
    return header + "\n".join(f"+{line}" for line in lines)


def render_name_status(files: list[str]) -> str:
    """Render files as `git diff --name-status` additions."""
    return "".join(f"A\t{f}\n" for f in files)


async def list_source_files(root: str | Path) -> list[str]:
    """Collect files without blocking the event loop."""
    return await anyio.to_thread.run_sync(collect_files, root)


async def synthesize_diff(root: str | Path, files: list[str]) -> str:
    """Render every file under ``root`` as an addition hunk."""
    chunks = []
    for file in files:
        content = await anyio.Path(root, file).read_text(encoding="utf-8", errors="replace")
        chunks.append(render_addition(file, content))
    return "\n".join(chunks)
