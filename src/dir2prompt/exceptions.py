from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class Dir2PromptError(Exception):
    """Base exception for errors in the dir2prompt package."""


@dataclass(frozen=True)
class PatternError(Dir2PromptError):
    """Raised when an override glob cannot be compiled."""

    pattern: str
    reason: str

    def __str__(self) -> str:
        return f"bad override {self.pattern!r}: {self.reason}"


@dataclass(frozen=True)
class ConfigError(Dir2PromptError):
    """Raised when a configuration source holds unusable values."""

    source: str
    reason: str

    def __str__(self) -> str:
        return f"invalid configuration in {self.source}: {self.reason}"


@dataclass(frozen=True)
class RootResolutionError(Dir2PromptError):
    """Raised when the root to dump is not an existing directory."""

    root: Path
    reason: str = "not an existing directory"

    def __str__(self) -> str:
        return f"cannot use root {str(self.root)!r}: {self.reason}"


@dataclass(frozen=True)
class ReadError(Dir2PromptError):
    """Raised when a file's content cannot be read."""

    path: Path
    cause: OSError

    def __str__(self) -> str:
        return str(self.cause)
