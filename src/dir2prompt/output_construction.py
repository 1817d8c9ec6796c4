from __future__ import annotations

import io
from pathlib import PurePath
from typing import TYPE_CHECKING, TextIO

from pydantic import BaseModel, ConfigDict, Field

from dir2prompt.config import (
    DEFAULT_LANGUAGE,
    EXT2LANG,
    Binary,
    FileRecord,
    ReadFailure,
    Text,
    UnreadableUtf8,
)
from dir2prompt.file_manipulation import load_record, relpath

if TYPE_CHECKING:
    from collections.abc import Sequence
    from pathlib import Path

    from dir2prompt.settings import Settings


class RunSummary(BaseModel):
    """Counters accumulated over a run.

    Instances are immutable: :meth:`add` returns a new summary, so the
    counters are folded over the records instead of being updated in place.
    """

    model_config = ConfigDict(frozen=True)

    printed: int = Field(default=0, ge=0, description="Files printed as text")
    skipped_binary: int = Field(default=0, ge=0, description="Files skipped as binary")
    skipped_utf8: int = Field(default=0, ge=0, description="Files skipped as invalid UTF-8")

    def add(self, rec: FileRecord) -> RunSummary:
        """Return the summary updated with one rendered file.

        Read failures count in none of the counters.
        """
        outcome = rec.outcome
        if isinstance(outcome, Text):
            return self.model_copy(update={"printed": self.printed + 1})
        if isinstance(outcome, Binary):
            return self.model_copy(update={"skipped_binary": self.skipped_binary + 1})
        if isinstance(outcome, UnreadableUtf8):
            return self.model_copy(update={"skipped_utf8": self.skipped_utf8 + 1})
        return self

    def __str__(self) -> str:
        return (
            f"printed {self.printed} files, skipped binary {self.skipped_binary}, skipped utf8 {self.skipped_utf8}"
        )


def language_tag(path: PurePath | str) -> str:
    """Get the code fence language for a file, from its extension only.

    Args:
        path (PurePath | str): the file path

    Returns:
        str: the fence language, ``text`` when the extension is unknown
    """
    return EXT2LANG.get(PurePath(path).suffix.lower(), DEFAULT_LANGUAGE)


def _yes_no(flag: bool) -> str:  # noqa: FBT001
    return "yes" if flag else "no"


def render_header(root: Path, rels: Sequence[str], settings: Settings) -> str:
    """Build the title, run metadata and the listing of included files.

    Args:
        root (Path): the resolved walk root
        rels (Sequence[str]): the root-relative paths of the files, in output order
        settings (Settings): the run settings

    Returns:
        str: the document head, ending with the separator before the first segment
    """
    out = io.StringIO()
    out.write("# dir2prompt dump\n\n")
    out.write(f"- Root: `{root}`\n")
    out.write(f"- Respect .gitignore: `{_yes_no(not settings.no_gitignore)}`\n")
    out.write(f"- Hidden files included: `{_yes_no(not settings.no_hidden)}`\n")
    out.write(f"- Per-file max bytes: `{settings.max_bytes}`\n\n")
    out.write("## Included files\n")
    for rel in rels:
        out.write(f"- `{rel}`\n")
    out.write("\n---\n\n")
    return out.getvalue()


def render_segment(rec: FileRecord, *, max_bytes: int) -> str:
    """Render one file as a Markdown section.

    Every segment starts with the file's relative path as a heading. Skipped
    files get a one-line reason; text files get optional truncation and
    decoding notes followed by the fenced content. The content always ends
    with a newline before the closing fence.

    Args:
        rec (FileRecord): the loaded and classified file
        max_bytes (int): the per-file byte cap, quoted in the truncation note

    Returns:
        str: the Markdown segment, ending with a blank line
    """
    out = io.StringIO()
    out.write(f"## `{rec.rel}`\n\n")
    outcome = rec.outcome
    if isinstance(outcome, Binary):
        out.write("(skipped: binary)\n\n")
    elif isinstance(outcome, UnreadableUtf8):
        out.write("(skipped: not valid UTF-8)\n\n")
    elif isinstance(outcome, ReadFailure):
        out.write(f"(skipped: failed to read file: {outcome.cause})\n\n")
    else:
        if rec.truncated:
            out.write(f"(truncated to {max_bytes} bytes)\n\n")
        if outcome.note:
            out.write(f"({outcome.note})\n\n")
        out.write(f"```{language_tag(rec.rel)}\n")
        out.write(outcome.content)
        if not outcome.content.endswith("\n"):
            out.write("\n")
        out.write("```\n\n")
    return out.getvalue()


def write_document(out: TextIO, root: Path, files: Sequence[Path], settings: Settings) -> RunSummary:
    """Stream the whole dump to `out`, one file at a time.

    Args:
        out (TextIO): the stream to write to
        root (Path): the resolved walk root
        files (Sequence[Path]): the selected files, already sorted
        settings (Settings): the run settings

    Returns:
        RunSummary: the counters for the run
    """
    out.write(render_header(root, [relpath(f, root) for f in files], settings))
    summary = RunSummary()
    for f in files:
        rec = load_record(f, root, max_bytes=settings.max_bytes, strict_utf8=settings.strict_utf8)
        out.write(render_segment(rec, max_bytes=settings.max_bytes))
        summary = summary.add(rec)
    return summary


def build_document(root: Path, files: Sequence[Path], settings: Settings) -> tuple[str, RunSummary]:
    """Render the dump into a string.

    Args:
        root (Path): the resolved walk root
        files (Sequence[Path]): the selected files, already sorted
        settings (Settings): the run settings

    Returns:
        tuple[str, RunSummary]: the document and the run counters
    """
    buf = io.StringIO()
    summary = write_document(buf, root, files, settings)
    return buf.getvalue(), summary
