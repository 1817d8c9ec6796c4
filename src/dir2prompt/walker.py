"""Directory enumeration honoring the policy and ignore files.

Ignore files follow git conventions: ``.gitignore`` files (inside a git work
tree only), ``.git/info/exclude``, the global excludes file, and ``.ignore``
files anywhere. Ignore files of the root's parent directories apply too.
All of them are skipped when ignore files are not respected; the policy
always applies.
"""

from __future__ import annotations

import os
import subprocess  # noqa: S404
from pathlib import Path
from typing import TYPE_CHECKING

from pathspec.patterns import GitWildMatchPattern
from pydantic import BaseModel, ConfigDict, Field

from dir2prompt.config import IGNORE_FILE_NAMES
from dir2prompt.file_manipulation import is_regular_file, relpath
from dir2prompt.logging import logger
from dir2prompt.policy import Polarity

if TYPE_CHECKING:
    from collections.abc import Sequence

    from dir2prompt.policy import Policy


class IgnoreFile(BaseModel):
    """Patterns of one ignore file, anchored at its base directory.

    Attributes:
        source: The file the patterns were read from.
        base: The directory patterns are relative to.
        patterns: Compiled patterns, in file order.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    source: Path
    base: Path
    patterns: tuple[GitWildMatchPattern, ...] = ()

    @classmethod
    def load(cls, source: Path, base: Path) -> IgnoreFile:
        """Read and compile an ignore file.

        Lines git would reject are skipped with a warning.

        Args:
            source (Path): the ignore file
            base (Path): the directory its patterns are relative to

        Raises:
            OSError: if the file cannot be read

        Returns:
            IgnoreFile: the compiled patterns
        """
        patterns: list[GitWildMatchPattern] = []
        for lineno, line in enumerate(source.read_text(encoding="utf-8", errors="replace").splitlines(), start=1):
            try:
                pattern = GitWildMatchPattern(line)
            except ValueError as e:
                logger.warning("skipping bad ignore pattern", source=str(source), line=lineno, error=str(e))
                continue
            if pattern.include is not None:
                patterns.append(pattern)
        return cls(source=source, base=base, patterns=tuple(patterns))

    def verdict(self, path: Path, *, is_dir: bool) -> bool | None:
        """Say whether this file ignores `path`.

        Args:
            path (Path): an absolute path
            is_dir (bool): whether `path` is a directory

        Returns:
            bool | None: True if ignored, False if re-included by a negated
                pattern, None if no pattern matches
        """
        try:
            rel = path.relative_to(self.base).as_posix()
        except ValueError:
            return None
        if is_dir:
            rel += "/"
        decision: bool | None = None
        for pattern in self.patterns:
            if pattern.match_file(rel):
                decision = pattern.include
        return decision


class WalkResult(BaseModel):
    """Files selected by a walk, plus the errors met on the way."""

    files: list[Path] = Field(default_factory=list, description="Selected files, sorted by relative path")
    errors: list[str] = Field(default_factory=list, description="One message per skipped entry")


def is_ignored(chain: Sequence[IgnoreFile], path: Path, *, is_dir: bool) -> bool:
    """Fold the ignore files in precedence order; the last verdict wins."""
    ignored = False
    for ignore_file in chain:
        verdict = ignore_file.verdict(path, is_dir=is_dir)
        if verdict is not None:
            ignored = verdict
    return ignored


def find_git_root(start: Path) -> Path | None:
    """Return the closest directory at or above `start` holding a `.git` entry."""
    for directory in (start, *start.parents):
        if (directory / ".git").exists():
            return directory
    return None


def git_dir(work_tree: Path) -> Path:
    """Return the directory holding a work tree's shared git metadata.

    Follows the ``gitdir:`` pointer a worktree or submodule keeps in its
    ``.git`` file, then the ``commondir`` link of linked worktrees, so that
    ``info/exclude`` is looked up where git reads it.

    Args:
        work_tree (Path): the directory holding the `.git` entry

    Raises:
        OSError: if a pointer file cannot be read

    Returns:
        Path: the git directory, which may not exist for a malformed pointer
    """
    directory = work_tree / ".git"
    if directory.is_file():
        text = directory.read_text(encoding="utf-8").strip()
        if text.startswith("gitdir:"):
            directory = work_tree / text.removeprefix("gitdir:").strip()
    commondir = directory / "commondir"
    if commondir.is_file():
        directory = directory / commondir.read_text(encoding="utf-8").strip()
    return directory


def global_excludes_file(cwd: Path) -> Path:
    """Locate git's global excludes file.

    Uses ``core.excludesFile`` when git knows it, and git's default location
    otherwise.

    Args:
        cwd (Path): the directory to query git from

    Returns:
        Path: the path of the global excludes file, which may not exist
    """
    try:
        out = subprocess.run(
            ["git", "config", "--path", "--get", "core.excludesFile"],  # noqa: S607
            cwd=str(cwd),
            text=True,
            capture_output=True,
            check=True,
        )
    except (OSError, subprocess.CalledProcessError) as e:
        # git exits 1 when the key is unset, the usual case
        logger.debug("core.excludesFile not available, using default location", error=str(e))
    else:
        value = out.stdout.strip()
        if value:
            return Path(value).expanduser()
    config_home = os.environ.get("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    return Path(config_home) / "git" / "ignore"


class _Walk:
    """State of a single enumeration."""

    def __init__(self, root: Path, policy: Policy, *, respect_ignore_files: bool, include_hidden: bool) -> None:
        self.root = root
        self.policy = policy
        self.respect_ignore_files = respect_ignore_files
        self.include_hidden = include_hidden
        self.git_root = find_git_root(root) if respect_ignore_files else None
        self.errors: list[str] = []

    def report(self, err: OSError) -> None:
        logger.warning("walk error", path=str(err.filename or ""), error=str(err))
        self.errors.append(str(err))

    def load_ignore_files(self, directory: Path) -> list[IgnoreFile]:
        in_git = self.git_root is not None and (directory == self.git_root or self.git_root in directory.parents)
        names = IGNORE_FILE_NAMES if in_git else (".ignore",)
        loaded: list[IgnoreFile] = []
        for name in names:
            source = directory / name
            if not source.is_file():
                continue
            try:
                loaded.append(IgnoreFile.load(source, base=directory))
            except OSError as e:
                self.report(e)
        return loaded

    def base_chain(self) -> tuple[IgnoreFile, ...]:
        """Ignore files that apply before the root's own, lowest precedence first."""
        if not self.respect_ignore_files:
            return ()
        chain: list[IgnoreFile] = []
        if self.git_root is not None:
            sources = [global_excludes_file(self.root)]
            try:
                sources.append(git_dir(self.git_root) / "info" / "exclude")
            except OSError as e:
                self.report(e)
            for source in sources:
                if not source.is_file():
                    continue
                try:
                    chain.append(IgnoreFile.load(source, base=self.git_root))
                except OSError as e:
                    self.report(e)
        for parent in reversed(self.root.parents):
            chain.extend(self.load_ignore_files(parent))
        return tuple(chain)

    def admits(self, path: Path, chain: Sequence[IgnoreFile], *, is_dir: bool) -> bool:
        """Combine policy, hidden-file and ignore-file rules for one entry.

        A policy exclude always drops a file; a policy force-include admits
        the entry over hidden-file and ignore-file rules. An excluded
        directory is only entered while force-includes may re-admit files
        below it.
        """
        rel = relpath(path, self.root)
        rule = self.policy.last_match(rel + "/" if is_dir else rel)
        if rule is not None and rule.polarity is Polarity.FORCE_INCLUDE:
            return True
        if rule is not None and (not is_dir or self.policy.prunes_directory(rel)):
            return False
        if not self.include_hidden and path.name.startswith("."):
            return False
        return not (self.respect_ignore_files and is_ignored(chain, path, is_dir=is_dir))

    def run(self) -> WalkResult:
        chains: dict[Path, tuple[IgnoreFile, ...]] = {self.root: self.base_chain()}
        files: list[Path] = []
        for dirpath, dirnames, filenames in os.walk(self.root, topdown=True, onerror=self.report, followlinks=False):
            current = Path(dirpath)
            chain = chains.pop(current, ())
            if self.respect_ignore_files:
                chain = (*chain, *self.load_ignore_files(current))

            kept: list[str] = []
            for name in dirnames:
                sub = current / name
                if sub.is_symlink() or not self.admits(sub, chain, is_dir=True):
                    continue
                kept.append(name)
                chains[sub] = chain
            dirnames[:] = kept

            for name in filenames:
                path = current / name
                try:
                    if not is_regular_file(path):
                        continue
                except OSError as e:
                    self.report(e)
                    continue
                if self.admits(path, chain, is_dir=False):
                    files.append(path)

        files.sort(key=lambda p: relpath(p, self.root))
        return WalkResult(files=files, errors=self.errors)


def walk_files(
    root: Path,
    policy: Policy,
    *,
    respect_ignore_files: bool = True,
    include_hidden: bool = True,
) -> WalkResult:
    """Enumerate the regular files below `root` that should be dumped.

    Symlinks are never followed nor yielded. Per-entry errors are logged and
    recorded in the result; the walk goes on.

    Args:
        root (Path): the resolved walk root
        policy (Policy): the compiled inclusion policy
        respect_ignore_files (bool): honor .gitignore, .ignore, git excludes and global ignores
        include_hidden (bool): keep dot-prefixed files and directories

    Returns:
        WalkResult: the selected files in sorted order, and the walk errors
    """
    return _Walk(
        root,
        policy,
        respect_ignore_files=respect_ignore_files,
        include_hidden=include_hidden,
    ).run()
