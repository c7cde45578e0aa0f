"""
Data models for snapshots, traversal entries and change events.

A snapshot maps every regular file under a root to its last-modified time;
comparing two snapshots yields ``Change`` values grouped into batches.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator

Snapshot = dict[str, int]
"""Mapping from file path to last-modified timestamp in epoch milliseconds."""


class ChangeEvent(str, Enum):
    """Kind of change detected between two snapshots."""

    CREATED = "created"
    REMOVED = "removed"
    CHANGED = "changed"


class Change(BaseModel):
    """
    A single file change reported by a polling cycle.

    Changes are value objects: two changes with the same path and event
    compare equal and hash alike.
    """

    model_config = ConfigDict(frozen=True)

    path: str = Field(..., min_length=1, description="Path of the affected file")
    event: ChangeEvent = Field(..., description="Kind of change")

    def __str__(self) -> str:
        return f"Change({self.event.value}: {self.path})"


ChangeBatch = list[Change]
"""Ordered changes from one cycle: created, then removed, then changed."""


class WalkEntry(BaseModel):
    """An entry produced by a tree walker."""

    model_config = ConfigDict(frozen=True)

    path: str = Field(..., description="Entry path, joined onto the walked root")
    is_file: bool = Field(default=False, description="Entry is a regular file")
    is_dir: bool = Field(default=False, description="Entry is a directory")
    is_symlink: bool = Field(default=False, description="Entry is a symbolic link")
    modified: int | None = Field(default=None, description="Last-modified time in epoch milliseconds")

    @model_validator(mode="after")
    def require_file_timestamp(self) -> "WalkEntry":
        """Files feed snapshots, so they must carry a timestamp."""
        if self.is_file and self.modified is None:
            raise ValueError(f"File entry {self.path!r} has no modified time")
        return self
