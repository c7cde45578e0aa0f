"""
Option models for tree traversal and polling watches.

``WatchOptions`` extends ``WalkOptions`` so a single options object drives
both the traversal and the polling cadence of a watcher.
"""

from collections.abc import Mapping
from re import Pattern
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from tree_watcher.models.exceptions import ConfigurationError

DEFAULT_INTERVAL_MS = 500

OptionsT = TypeVar("OptionsT", bound="WalkOptions")


class WalkOptions(BaseModel):
    """Options controlling how a directory tree is traversed."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    max_depth: int | None = Field(default=None, description="Maximum recursion depth (None for unbounded)")
    include_files: bool = Field(default=True, description="Yield regular files")
    include_dirs: bool = Field(default=True, description="Yield directories, including the root")
    follow_symlinks: bool = Field(default=False, description="Resolve symbolic links before classifying entries")
    exts: list[str] | None = Field(default=None, description="Only yield paths ending with one of these extensions")
    match: list[Pattern[str]] | None = Field(default=None, description="Only yield paths matched by a pattern")
    skip: list[Pattern[str]] | None = Field(default=None, description="Never yield or descend into matching paths")

    @field_validator('exts')
    @classmethod
    def validate_exts(cls, v):
        """Ensure extensions start with a dot."""
        if v is None:
            return v
        return [ext if ext.startswith('.') else f'.{ext}' for ext in v]


class WatchOptions(WalkOptions):
    """
    Options for a polling watcher.

    Every instance gets its own ``files`` dictionary, so watchers built with
    default options never share an initial snapshot.
    """

    interval: int = Field(
        default=DEFAULT_INTERVAL_MS, ge=0, description="Minimum spacing between cycle starts in milliseconds"
    )
    files: dict[str, int] = Field(default_factory=dict, description="Initial snapshot to diff the first scan against")

    def walk_options(self) -> WalkOptions:
        """Return the traversal part of these options."""
        return WalkOptions.model_validate({name: getattr(self, name) for name in WalkOptions.model_fields})


def coerce_options(options_cls: type[OptionsT], value: Any) -> OptionsT:
    """
    Build an options model from None, a mapping or an existing instance.

    Args:
        options_cls: Options model to produce
        value: Caller-supplied options

    Returns:
        A validated options instance

    Raises:
        ConfigurationError: If the options are of the wrong type or fail validation
    """
    if value is None:
        return options_cls()

    if isinstance(value, options_cls):
        return value

    if isinstance(value, BaseModel):
        value = value.model_dump()

    if not isinstance(value, Mapping):
        raise ConfigurationError(
            f"Options must be a mapping or {options_cls.__name__}",
            config_key="options",
            expected_type=options_cls.__name__,
            actual_value=type(value).__name__,
        )

    try:
        return options_cls.model_validate(dict(value))
    except ValidationError as e:
        first = e.errors()[0] if e.errors() else {}
        key = ".".join(str(part) for part in first.get("loc", ())) or "options"
        raise ConfigurationError(
            f"Invalid {options_cls.__name__}: {first.get('msg', e)}",
            config_key=key,
            expected_type=options_cls.__name__,
            actual_value=first.get("input"),
            underlying_error=e,
        ) from e
