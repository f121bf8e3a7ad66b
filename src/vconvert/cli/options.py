"""Merge command-line options over the ``[video_convert]`` config section.

CLI values win when given; ``None`` (or an unset flag) falls back to the
config file, which in turn falls back to the built-in defaults.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from vconvert.config import ConvertConfig, merge_patterns
from vconvert.converter import ConversionSettings
from vconvert.core.codecs import (
    ALL_EXTENSIONS,
    DEFAULT_EXTENSIONS,
    OTHER_EXTENSIONS,
    normalize_extensions,
)
from vconvert.core.patterns import pattern_errors
from vconvert.domain import DisposalMode, FilterSpec, SortKey
from vconvert.exceptions import ConfigError


@dataclass(frozen=True)
class RunOptions:
    """Everything one invocation needs after merging CLI and config."""

    extensions: tuple[str, ...]
    filter_spec: FilterSpec
    sort_key: SortKey
    settings: ConversionSettings
    display_limit: int = 0
    recurse: bool = False
    include: list[str] = field(default_factory=list)
    exclude: list[str] = field(default_factory=list)


def resolve_extensions(
    cli_extensions: tuple[str, ...] | list[str],
    all_types: bool,
    other_types: bool,
    config: ConvertConfig,
) -> tuple[str, ...]:
    """Pick the extension set: explicit list, then -a/-o, then config."""
    if cli_extensions:
        return tuple(normalize_extensions(list(cli_extensions)))
    if all_types:
        return ALL_EXTENSIONS
    if other_types:
        return OTHER_EXTENSIONS
    if config.extensions:
        return tuple(normalize_extensions(config.extensions))
    if config.convert_all_types:
        return ALL_EXTENSIONS
    if config.convert_other_types:
        return OTHER_EXTENSIONS
    return DEFAULT_EXTENSIONS


def _pick(cli_value, config_value):
    return cli_value if cli_value is not None else config_value


def resolve_options(
    config: ConvertConfig,
    *,
    extensions: tuple[str, ...] | list[str] = (),
    all_types: bool = False,
    other_types: bool = False,
    bitrate: int | None = None,
    max_bitrate: int | None = None,
    min_duration: float | None = None,
    max_duration: float | None = None,
    count: int | None = None,
    sort: str | None = None,
    display_limit: int | None = None,
    delete: bool = False,
    dry_run: bool = False,
    force: bool = False,
    include: tuple[str, ...] | list[str] = (),
    exclude: tuple[str, ...] | list[str] = (),
    recurse: bool = False,
    skip_convert: bool = False,
    skip_remux: bool = False,
    retry_failed: bool = False,
) -> RunOptions:
    """Build RunOptions from CLI values layered over ``config``.

    A minimum bitrate of 0 disables the bitrate floor.

    Raises:
        ConfigError: If a value is out of range, the sort name is unknown or
            a name pattern is not a valid glob or regular expression.
    """
    sort_name = _pick(sort, config.sort)
    try:
        sort_key = SortKey.parse(sort_name)
    except ValueError as e:
        raise ConfigError(str(e)) from e

    min_bitrate = _pick(bitrate, config.bitrate)
    spec_values = {
        "min_bitrate": min_bitrate or None,
        "max_bitrate": _pick(max_bitrate, config.max_bitrate),
        "min_duration": _pick(min_duration, config.min_duration),
        "max_duration": _pick(max_duration, config.max_duration),
        "max_count": _pick(count, config.count),
    }
    for name, value in spec_values.items():
        if value is not None and value < 0:
            raise ConfigError(f"{name.replace('_', '-')} must not be negative")

    include_patterns = merge_patterns(list(include), config.include)
    exclude_patterns = merge_patterns(list(exclude), config.exclude)
    errors = pattern_errors(include_patterns + exclude_patterns)
    if errors:
        raise ConfigError("; ".join(errors))

    resolved_extensions = resolve_extensions(
        extensions, all_types, other_types, config
    )
    filter_spec = FilterSpec(extensions=frozenset(resolved_extensions), **spec_values)

    settings = ConversionSettings(
        force=force or config.overwrite,
        dry_run=dry_run,
        disposal=(
            DisposalMode.DELETE if delete or config.delete else DisposalMode.TRASH
        ),
        skip_convert=skip_convert,
        skip_remux=skip_remux,
        retry_failed=retry_failed or config.retry_failed,
        hardware_accel=config.hardware_accel,
        encoder_timeout=config.encoder_timeout,
    )

    return RunOptions(
        extensions=resolved_extensions,
        filter_spec=filter_spec,
        sort_key=sort_key,
        settings=settings,
        display_limit=_pick(display_limit, config.display_limit),
        recurse=recurse or config.recurse,
        include=include_patterns,
        exclude=exclude_patterns,
    )
