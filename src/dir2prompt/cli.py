"""
dir2prompt — Dump a directory as Markdown for LLM prompting.

Overview
--------
Walks a root directory and writes a single Markdown document to stdout:

- a header with the run options,
- the list of included files,
- one section per file with its content in a fenced code block.

Files are selected by layered rules: ignore files (``.gitignore``,
``.ignore``, git excludes, global ignores), built-in excludes (VCS metadata,
virtualenvs, caches, build output, lockfiles), then user ``--exclude`` and
``--include`` globs, the last matching glob deciding. Content is capped per
file, binary files are skipped, and invalid UTF-8 is either replaced or
skipped.

Usage
-----
Run `python -m dir2prompt --help` for full options. Common examples:
    - Dump the current directory:
        dir2prompt > prompt.md

    - Keep lockfiles, drop snapshots, force one ignored file back in:
        dir2prompt src --include-lockfiles --exclude '**/*.snap' --include 'build/keep.txt'

    - Log to a file:
        dir2prompt . --log-file dump.log > prompt.md
"""

from __future__ import annotations

import argparse
import sys
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from dir2prompt import __version__
from dir2prompt.config import DEFAULT_MAX_BYTES
from dir2prompt.exceptions import ConfigError, Dir2PromptError
from dir2prompt.file_manipulation import resolve_root
from dir2prompt.logging import logger, setup_logging
from dir2prompt.output_construction import write_document
from dir2prompt.policy import Policy
from dir2prompt.settings import Settings, env_defaults, load_config_file
from dir2prompt.walker import walk_files

if TYPE_CHECKING:
    from collections.abc import Sequence


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="dir2prompt",
        description="Dump a directory as Markdown for LLM prompting (respects .gitignore).",
    )
    p.add_argument("root", nargs="?", default=".", help="Root directory to dump.")
    p.add_argument(
        "--max-bytes",
        type=int,
        default=DEFAULT_MAX_BYTES,
        help="Max bytes to include per file (files are truncated beyond this).",
    )
    p.add_argument(
        "--no-gitignore",
        action="store_true",
        help="Do NOT respect .gitignore / git excludes / global ignores.",
    )
    p.add_argument("--no-hidden", action="store_true", help="Exclude hidden files/dirs (dotfiles).")
    p.add_argument(
        "--include-lockfiles",
        action="store_true",
        help="Include common lockfiles (Cargo.lock, package-lock.json, etc.).",
    )
    p.add_argument(
        "--exclude",
        action="append",
        default=[],
        help="Additional exclude glob, gitignore-style (repeatable).",
    )
    p.add_argument(
        "--include",
        action="append",
        default=[],
        help="Force-include glob, overrides earlier excludes (repeatable).",
    )
    p.add_argument(
        "--strict-utf8",
        action="store_true",
        help="Skip files that are not valid UTF-8 instead of lossy output.",
    )
    p.add_argument("--config", type=str, default="", help="YAML file with default settings.")
    p.add_argument("--log-file", type=str, default="", help="Log file path.")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return p


def collect_defaults(argv: Sequence[str] | None) -> dict[str, Any]:
    """Merge environment and config file defaults, the config file winning.

    Raises:
        ConfigError: if the config file is unusable
    """
    pre = argparse.ArgumentParser(add_help=False)
    pre.add_argument("--config", type=str, default="")
    known, _ = pre.parse_known_args(argv)
    defaults = _validated(env_defaults(), source="environment")
    if known.config:
        defaults.update(_validated(load_config_file(known.config), source=known.config))
    return defaults


def _validated(values: dict[str, Any], source: str) -> dict[str, Any]:
    """Convert raw default values to their setting types.

    Raises:
        ConfigError: if a value does not fit its setting
    """
    try:
        settings = Settings(**values)
    except ValidationError as e:
        raise ConfigError(source=source, reason=str(e)) from e
    return {key: getattr(settings, key) for key in values}


def parse_args(argv: Sequence[str] | None = None) -> Settings:
    """Parse the command line into settings.

    Raises:
        ConfigError: if a default source or the resulting values are invalid
    """
    p = build_parser()
    p.set_defaults(**collect_defaults(argv))
    args = p.parse_args(argv)
    try:
        return Settings(**vars(args))
    except ValidationError as e:
        raise ConfigError(source="command line", reason=str(e)) from e


def main(argv: Sequence[str] | None = None) -> int:
    try:
        settings = parse_args(argv)
        if settings.log_file:
            try:
                setup_logging(settings.log_file)
            except OSError as e:
                raise ConfigError(source="--log-file", reason=str(e)) from e
        root = resolve_root(settings.root)
        policy = Policy.compile(
            root,
            include_lockfiles=settings.include_lockfiles,
            user_excludes=settings.exclude,
            user_includes=settings.include,
        )
    except Dir2PromptError as e:
        logger.error("startup failed", error=str(e))
        print(f"dir2prompt: {e}", file=sys.stderr)
        return 1

    walk = walk_files(
        root,
        policy,
        respect_ignore_files=not settings.no_gitignore,
        include_hidden=not settings.no_hidden,
    )
    summary = write_document(sys.stdout, root, walk.files, settings)
    sys.stdout.flush()
    print(f"dir2prompt: {summary}", file=sys.stderr)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
