"""Ordered glob rules deciding which paths below the root are dumped.

The policy is an ordered tuple of :class:`Rule` values. Every rule is a
gitignore-style glob anchored at the walk root plus a polarity. A path is
decided by the *last* rule matching it; a path matching no rule is included.

Rules are compiled from four sources, in this order:

1. built-in excludes (VCS metadata, virtualenvs, caches, build output, OS noise),
2. lockfile excludes, unless lockfiles were requested,
3. user excludes,
4. user force-includes.
"""

from __future__ import annotations

from enum import StrEnum, auto
from pathlib import Path
from typing import TYPE_CHECKING

from pathspec.patterns import GitWildMatchPattern
from pydantic import BaseModel, ConfigDict, Field

from dir2prompt.config import BUILTIN_EXCLUDE_DIRS, BUILTIN_EXCLUDE_FILES, LOCKFILE_NAMES
from dir2prompt.exceptions import PatternError
from dir2prompt.file_manipulation import normalize_globs, relpath

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence


class Polarity(StrEnum):
    """What a matching rule does to a path."""

    EXCLUDE = auto()
    FORCE_INCLUDE = auto()


class Decision(StrEnum):
    """Final verdict of the policy for a path."""

    INCLUDED = auto()
    EXCLUDED = auto()


class Rule(BaseModel):
    """A compiled glob with its polarity.

    Attributes:
        pattern: The normalized glob, without any leading ``!``.
        polarity: Whether a match excludes or force-includes the path.
        matcher: The compiled gitwildmatch pattern.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    pattern: str = Field(..., description="Normalized glob")
    polarity: Polarity = Field(..., description="Effect of a match")
    matcher: GitWildMatchPattern = Field(..., exclude=True, repr=False)

    @classmethod
    def compile(cls, pattern: str, polarity: Polarity) -> Rule:
        """Compile a glob into a rule.

        Args:
            pattern (str): a normalized gitignore-style glob
            polarity (Polarity): effect of the rule when it matches

        Raises:
            PatternError: if the glob is malformed or can never match

        Returns:
            Rule: the compiled rule
        """
        try:
            matcher = GitWildMatchPattern(pattern)
        except ValueError as e:
            raise PatternError(pattern=pattern, reason=str(e)) from e
        if matcher.include is None:
            raise PatternError(pattern=pattern, reason="pattern is a comment or blank and matches nothing")
        return cls(pattern=pattern, polarity=polarity, matcher=matcher)

    def matches(self, rel: str) -> bool:
        """Check a root-relative POSIX path against the rule's glob."""
        return bool(self.matcher.match_file(rel))


def _strip_negation(pattern: str) -> str:
    return pattern[1:] if pattern.startswith("!") else pattern


def builtin_patterns(*, include_lockfiles: bool) -> list[str]:
    """List the fixed exclude globs, lockfiles last.

    Args:
        include_lockfiles (bool): if True, lockfiles are not excluded

    Returns:
        list[str]: the globs, each matching at any depth
    """
    patterns = [f"**/{name}/**" for name in BUILTIN_EXCLUDE_DIRS]
    patterns.extend(f"**/{name}" for name in BUILTIN_EXCLUDE_FILES)
    if not include_lockfiles:
        patterns.extend(f"**/{name}" for name in LOCKFILE_NAMES)
    return patterns


class Policy(BaseModel):
    """Compiled, immutable inclusion policy rooted at a directory."""

    model_config = ConfigDict(frozen=True)

    root: Path
    rules: tuple[Rule, ...] = ()

    @classmethod
    def compile(
        cls,
        root: Path,
        *,
        include_lockfiles: bool = False,
        user_excludes: Sequence[str] = (),
        user_includes: Sequence[str] = (),
    ) -> Policy:
        """Build the ordered rule list.

        User globs are normalized (see :func:`normalize_globs`) and a single
        leading ``!`` is dropped: the polarity comes from the list a glob was
        given in, never from the marker.

        Args:
            root (Path): the walk root the globs are anchored at
            include_lockfiles (bool): do not exclude well-known lockfiles
            user_excludes (Sequence[str]): extra exclude globs, in order
            user_includes (Sequence[str]): force-include globs, in order

        Raises:
            PatternError: on the first glob that fails to compile

        Returns:
            Policy: the compiled policy
        """
        rules: list[Rule] = [
            Rule.compile(p, Polarity.EXCLUDE) for p in builtin_patterns(include_lockfiles=include_lockfiles)
        ]
        rules.extend(_compile_user(user_excludes, Polarity.EXCLUDE))
        rules.extend(_compile_user(user_includes, Polarity.FORCE_INCLUDE))
        return cls(root=root, rules=tuple(rules))

    @property
    def has_force_includes(self) -> bool:
        return any(r.polarity is Polarity.FORCE_INCLUDE for r in self.rules)

    def _rel(self, path: Path | str) -> str:
        if not isinstance(path, Path):
            return path
        return relpath(path, self.root) if path.is_absolute() else path.as_posix()

    def last_match(self, path: Path | str) -> Rule | None:
        """Return the rule deciding `path`, if any.

        Args:
            path (Path | str): an absolute path below the root, or a root-relative path

        Returns:
            Rule | None: the last rule matching the path, or None when no rule matches
        """
        rel = self._rel(path)
        winner: Rule | None = None
        for rule in self.rules:
            if rule.matches(rel):
                winner = rule
        return winner

    def matches(self, path: Path | str) -> Decision:
        rule = self.last_match(path)
        if rule is not None and rule.polarity is Polarity.EXCLUDE:
            return Decision.EXCLUDED
        return Decision.INCLUDED

    def is_included(self, path: Path | str) -> bool:
        return self.matches(path) is Decision.INCLUDED

    def prunes_directory(self, rel: str) -> bool:
        """Tell whether the walk may skip a directory without visiting it.

        A directory is pruned when its path (with a trailing ``/``) is
        excluded. Any force-include rule disables pruning, since it may
        re-admit a file inside an excluded directory.

        Args:
            rel (str): the root-relative POSIX path of the directory

        Returns:
            bool: True if nothing below `rel` can be included
        """
        if self.has_force_includes:
            return False
        return self.matches(rel.rstrip("/") + "/") is Decision.EXCLUDED


def _compile_user(patterns: Iterable[str], polarity: Polarity) -> list[Rule]:
    return [Rule.compile(_strip_negation(p), polarity) for p in normalize_globs(list(patterns))]
