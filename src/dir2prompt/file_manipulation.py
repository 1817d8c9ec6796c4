from __future__ import annotations

import stat
from pathlib import Path
from typing import TYPE_CHECKING

from dir2prompt.config import (
    BINARY_SNIFF_BYTES,
    LOSSY_NOTE,
    Binary,
    Classification,
    FileRecord,
    LoadedContent,
    ReadFailure,
    Text,
    UnreadableUtf8,
)
from dir2prompt.exceptions import ReadError, RootResolutionError
from dir2prompt.logging import logger

if TYPE_CHECKING:
    from collections.abc import Sequence


def relpath(path: Path, root: Path) -> str:
    """Send the relative path of path from root.

    Args:
        path (Path): the path to "relativise"
        root (Path): the root to relativise from

    Returns:
        str: the relative path from root to path, with POSIX separators.
            If path is not under root, returns the original path as a string.
    """
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return str(path)


def normalize_globs(globs: Sequence[str]) -> list[str]:
    """Normalize a sequence of path glob patterns.

    Surrounding whitespace is stripped and blank patterns are dropped.
    Backslashes are kept: they escape glob metacharacters.

    Args:
        globs (Sequence[str]): the glob patterns to normalize

    Returns:
        list[str]: the normalized glob patterns
    """
    out: list[str] = []
    for g in globs:
        g2 = (g or "").strip()
        if not g2:
            continue
        out.append(g2)
    return out


def resolve_root(root: Path | str) -> Path:
    """Turn the user supplied root into the directory to walk.

    An empty root means the current directory. The path is canonicalized when
    possible; when that fails the literal path is kept.

    Args:
        root (Path | str): the root as given on the command line

    Raises:
        RootResolutionError: if the result is not an existing directory

    Returns:
        Path: the directory to walk, absolute when it could be resolved
    """
    literal = Path(root)  # Path("") is Path(".")
    try:
        resolved = literal.resolve(strict=True)
    except (OSError, RuntimeError) as e:
        logger.info("root not canonicalized, using it as given", root=str(literal), error=str(e))
        resolved = literal
    if not resolved.is_dir():
        raise RootResolutionError(root=resolved)
    return resolved


def is_regular_file(path: Path) -> bool:
    """Check if a file is regular, without following symlinks.

    Args:
        path (Path): path to test.

    Raises:
        OSError: if the path cannot be inspected.

    Returns:
        bool: True if the file is regular, False otherwise.
    """
    return stat.S_ISREG(path.lstat().st_mode)


def read_limited(path: Path, max_bytes: int) -> LoadedContent:
    """Read at most `max_bytes` bytes from the start of a file.

    One extra byte is requested so that truncation can be detected without
    reading the rest of the file; it is dropped before returning.

    Args:
        path (Path): the file to read
        max_bytes (int): the number of bytes to keep at most

    Raises:
        ReadError: if the file cannot be opened or read

    Returns:
        LoadedContent: the kept bytes and whether more were available
    """
    try:
        with path.open("rb") as f:
            data = f.read(max_bytes + 1)
    except OSError as e:
        raise ReadError(path=path, cause=e) from e
    truncated = len(data) > max_bytes
    if truncated:
        data = data[:max_bytes]
    return LoadedContent(data=data, truncated=truncated)


def looks_binary(data: bytes) -> bool:
    """Heuristic: a NUL byte within the first 8 KiB means binary."""
    return b"\x00" in data[:BINARY_SNIFF_BYTES]


def classify(data: bytes, *, strict_utf8: bool) -> Classification:
    """Decide how a file's bytes can be shown.

    The binary check runs first and only looks at the first
    ``BINARY_SNIFF_BYTES`` bytes. Remaining content is decoded as UTF-8:
    invalid sequences either make the file unreadable (strict mode) or are
    replaced with U+FFFD and flagged with a note.

    Args:
        data (bytes): the (possibly truncated) file content
        strict_utf8 (bool): skip invalid UTF-8 instead of decoding it lossily

    Returns:
        Classification: Binary, Text or UnreadableUtf8
    """
    if looks_binary(data):
        return Binary()
    try:
        return Text(content=data.decode("utf-8"))
    except UnicodeDecodeError:
        if strict_utf8:
            return UnreadableUtf8()
        return Text(content=data.decode("utf-8", errors="replace"), note=LOSSY_NOTE)


def load_record(path: Path, root: Path, *, max_bytes: int, strict_utf8: bool) -> FileRecord:
    """Load and classify one file.

    Read failures do not propagate: they become a ``ReadFailure`` outcome so
    the renderer can report them in place.

    Args:
        path (Path): the file to load
        root (Path): the walk root, used for the relative path
        max_bytes (int): the per-file byte cap
        strict_utf8 (bool): skip invalid UTF-8 instead of decoding it lossily

    Returns:
        FileRecord: the record to render
    """
    rel = relpath(path, root)
    try:
        loaded = read_limited(path, max_bytes)
    except ReadError as e:
        logger.warning("failed to read file", path=rel, error=str(e))
        return FileRecord(path=path, rel=rel, outcome=ReadFailure(cause=str(e)))
    return FileRecord(
        path=path,
        rel=rel,
        outcome=classify(loaded.data, strict_utf8=strict_utf8),
        truncated=loaded.truncated,
    )
