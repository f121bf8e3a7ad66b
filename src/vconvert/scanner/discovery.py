"""Directory walking for video discovery.

``discover_videos`` is a lazy generator; directories are listed one at a
time in lexicographic order, so the output order is stable and a large tree
starts yielding immediately.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable, Iterator
from pathlib import Path

from vconvert.core.codecs import DEFAULT_EXTENSIONS, is_converted_output
from vconvert.core.patterns import NamePattern, compile_patterns
from vconvert.exceptions import ScanRootError

logger = logging.getLogger(__name__)


def should_include_file(
    name: str,
    extensions: frozenset[str],
    include: tuple[NamePattern, ...] = (),
    exclude: tuple[NamePattern, ...] = (),
) -> bool:
    """Decide whether a file name is a scan candidate.

    Args:
        name: File name without directory.
        extensions: Allowed lowercase extensions without dots.
        include: If non-empty, the name must match at least one.
        exclude: The name must match none.

    Returns:
        True if the file should be yielded.
    """
    if name.startswith("."):
        return False
    suffix = os.path.splitext(name)[1].lower().lstrip(".")
    if suffix not in extensions:
        return False
    if is_converted_output(Path(name)):
        return False
    if include and not any(p.matches(name) for p in include):
        return False
    if any(p.matches(name) for p in exclude):
        return False
    return True


def discover_videos(
    root: Path,
    *,
    recursive: bool = False,
    extensions: Iterable[str] = DEFAULT_EXTENSIONS,
    include: Iterable[str] | None = None,
    exclude: Iterable[str] | None = None,
    follow_symlinks: bool = False,
) -> Iterator[Path]:
    """Yield candidate video files under ``root`` in lexicographic order.

    Hidden entries are skipped. Permission errors and symlink loops below
    the root are logged as warnings and skipped.

    Args:
        root: Directory to walk, or a single file.
        recursive: Descend into subdirectories.
        extensions: Allowed extensions (case-insensitive, no dots).
        include: Name patterns; a file must match one if any are given.
        exclude: Name patterns; a file matching any is dropped.
        follow_symlinks: Descend into symlinked directories.

    Yields:
        Absolute paths of matching files.

    Raises:
        ScanRootError: If ``root`` is missing or cannot be listed.
    """
    allowed = frozenset(ext.lower().lstrip(".") for ext in extensions)
    include_patterns = compile_patterns(include)
    exclude_patterns = compile_patterns(exclude)

    root = root.expanduser().absolute()
    if not root.exists():
        raise ScanRootError(root, "path does not exist")

    if root.is_file():
        if should_include_file(root.name, allowed, include_patterns, exclude_patterns):
            yield root
        return

    try:
        root_entries = _list_dir(root)
    except PermissionError as e:
        raise ScanRootError(root, f"permission denied ({e.strerror})") from e
    except OSError as e:
        raise ScanRootError(root, str(e)) from e

    visited: set[Path] = {root.resolve()}
    yield from _walk(
        root,
        root_entries,
        recursive=recursive,
        allowed=allowed,
        include=include_patterns,
        exclude=exclude_patterns,
        follow_symlinks=follow_symlinks,
        visited=visited,
    )


def _list_dir(directory: Path) -> list[os.DirEntry[str]]:
    with os.scandir(directory) as it:
        return sorted(it, key=lambda entry: entry.name)


def _walk(
    directory: Path,
    entries: list[os.DirEntry[str]],
    *,
    recursive: bool,
    allowed: frozenset[str],
    include: tuple[NamePattern, ...],
    exclude: tuple[NamePattern, ...],
    follow_symlinks: bool,
    visited: set[Path],
) -> Iterator[Path]:
    for entry in entries:
        if entry.name.startswith("."):
            continue
        entry_path = directory / entry.name
        try:
            is_dir = entry.is_dir(follow_symlinks=follow_symlinks)
            is_file = not is_dir and entry.is_file(follow_symlinks=True)
        except OSError as e:
            logger.warning("Skipping %s: %s", entry_path, e)
            continue

        if is_file:
            if should_include_file(entry.name, allowed, include, exclude):
                yield entry_path
            continue

        if not is_dir or not recursive:
            continue

        real = entry_path.resolve()
        if real in visited:
            logger.warning("Skipping %s: symlink loop to %s", entry_path, real)
            continue
        visited.add(real)

        try:
            children = _list_dir(entry_path)
        except OSError as e:
            logger.warning("Skipping directory %s: %s", entry_path, e)
            continue

        yield from _walk(
            entry_path,
            children,
            recursive=recursive,
            allowed=allowed,
            include=include,
            exclude=exclude,
            follow_symlinks=follow_symlinks,
            visited=visited,
        )
