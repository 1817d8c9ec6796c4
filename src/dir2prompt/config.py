from __future__ import annotations

from pathlib import Path  # noqa: TC003
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_MAX_BYTES = 200_000

# Only this many leading bytes are inspected for NULs.
BINARY_SNIFF_BYTES = 8 * 1024

LOSSY_NOTE = "note: contained invalid UTF-8; printed with lossy replacement"

BUILTIN_EXCLUDE_DIRS = (
    # version control
    ".git",
    ".hg",
    ".svn",
    # virtualenvs and tool caches
    ".venv",
    "venv",
    "__pycache__",
    ".mypy_cache",
    ".pytest_cache",
    ".ruff_cache",
    ".tox",
    # dependency and build output
    "node_modules",
    "target",
    "dist",
    "build",
    ".next",
    ".nuxt",
    ".svelte-kit",
)

BUILTIN_EXCLUDE_FILES = (
    ".DS_Store",
    "Thumbs.db",
)

LOCKFILE_NAMES = (
    "Cargo.lock",
    "package-lock.json",
    "yarn.lock",
    "pnpm-lock.yaml",
    "composer.lock",
    "Gemfile.lock",
    "poetry.lock",
    "Pipfile.lock",
)

IGNORE_FILE_NAMES = (".gitignore", ".ignore")

DEFAULT_LANGUAGE = "text"

EXT2LANG: dict[str, str] = {
    ".c": "c",
    ".cc": "cpp",
    ".cpp": "cpp",
    ".cs": "csharp",
    ".css": "css",
    ".cxx": "cpp",
    ".env": "bash",
    ".fish": "fish",
    ".go": "go",
    ".h": "c",
    ".hh": "cpp",
    ".hpp": "cpp",
    ".html": "html",
    ".hxx": "cpp",
    ".ini": "ini",
    ".java": "java",
    ".js": "javascript",
    ".json": "json",
    ".jsx": "jsx",
    ".kt": "kotlin",
    ".kts": "kotlin",
    ".md": "markdown",
    ".php": "php",
    ".proto": "proto",
    ".py": "python",
    ".rb": "ruby",
    ".rs": "rust",
    ".scss": "scss",
    ".sh": "bash",
    ".sql": "sql",
    ".swift": "swift",
    ".toml": "toml",
    ".ts": "ts",
    ".tsx": "tsx",
    ".txt": "text",
    ".yaml": "yaml",
    ".yml": "yaml",
    ".zsh": "zsh",
}


class LoadedContent(BaseModel):
    """A bounded prefix of a file's bytes.

    Attributes:
        data: At most ``max_bytes`` bytes read from the start of the file.
        truncated: Whether the file held more bytes than were kept.
    """

    model_config = ConfigDict(frozen=True)

    data: bytes = Field(..., description="Bytes read from the file")
    truncated: bool = Field(default=False, description="More bytes were available than kept")


class Binary(BaseModel):
    """The content looks like a binary file."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["binary"] = "binary"


class Text(BaseModel):
    """Decoded text, with a note when the decoding was lossy."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["text"] = "text"
    content: str = Field(..., description="Decoded file content")
    note: str | None = Field(default=None, description="Set when invalid UTF-8 was replaced")


class UnreadableUtf8(BaseModel):
    """The content is not valid UTF-8 and strict decoding was requested."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["unreadable_utf8"] = "unreadable_utf8"


class ReadFailure(BaseModel):
    """The file could not be read at all."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["read_failure"] = "read_failure"
    cause: str = Field(..., description="Human readable reason of the failure")


Classification = Binary | Text | UnreadableUtf8
FileOutcome = Binary | Text | UnreadableUtf8 | ReadFailure


class FileRecord(BaseModel):
    """Everything the renderer needs to know about one file.

    Attributes:
        path: Absolute path to the file on disk.
        rel: Path relative to the walk root, with POSIX separators.
        outcome: Result of loading and classifying the file.
        truncated: Whether the content was cut at the byte cap.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    path: Path = Field(..., description="Absolute file path")
    rel: str = Field(..., description="File path relative to the walk root")
    outcome: FileOutcome = Field(..., discriminator="kind")
    truncated: bool = Field(default=False, description="Content was cut at the byte cap")
