"""File-name include/exclude patterns.

The same rule applies to patterns from the command line and from the config
file: a pattern with glob metacharacters is a case-sensitive glob over the
file name, anything else is a regular-expression search, so plain text acts
as a substring match.
"""

from __future__ import annotations

import fnmatch
import re
from collections.abc import Iterable
from dataclasses import dataclass

_GLOB_CHARS = frozenset("*?[")


@dataclass(frozen=True)
class NamePattern:
    """A file-name pattern: glob when it has glob metacharacters, else regex."""

    text: str

    def __post_init__(self) -> None:
        if not self.is_glob:
            re.compile(self.text)

    @property
    def is_glob(self) -> bool:
        return any(ch in _GLOB_CHARS for ch in self.text)

    def matches(self, name: str) -> bool:
        if self.is_glob:
            return fnmatch.fnmatchcase(name, self.text)
        return re.search(self.text, name) is not None


def compile_patterns(patterns: Iterable[str] | None) -> tuple[NamePattern, ...]:
    """Build NamePatterns, raising ``re.error`` on an invalid expression."""
    return tuple(NamePattern(p) for p in patterns or () if p)


def pattern_errors(patterns: Iterable[str] | None) -> list[str]:
    """Describe every pattern that cannot be used, one message each."""
    errors = []
    for text in patterns or ():
        try:
            NamePattern(text)
        except re.error as e:
            errors.append(f"Invalid pattern '{text}': {e}")
    return errors
