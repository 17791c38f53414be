"""Data model for editor variants, recent entries and index snapshots."""

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from types import MappingProxyType


class StoreFormat(Enum):
    """On-disk format of a recent workspaces store."""

    STORAGE_JSON = "storage.json"  # openedPathsList in storage.json, up to 1.63
    STATE_DB = "state.vscdb"  # history.recentlyOpenedPathsList in sqlite, from 1.64


@dataclass(frozen=True)
class StoreLocation:
    relative_path: str  # relative to the variant's config directory
    format: StoreFormat


@dataclass(frozen=True)
class EditorVariant:
    """A distribution of the editor with its own config directory and executable."""

    key: str  # Short name: "code-insiders"
    name: str  # Human readable: "Code - Insiders"
    desktop_id: str  # Desktop file ID, doubles as the icon key
    config_dirname: str  # Directory below the user config root
    executables: tuple[str, ...]  # Candidate executable names, in probing order
    stores: tuple[StoreLocation, ...]  # Newest format first
    alt_desktop_ids: tuple[str, ...] = ()  # Names some distributions package it under
    launch_args: tuple[str, ...] = ("--new-window", "{path}")
    executable: str | None = None  # Resolved executable path, set by probing

    def config_dir(self, config_root: Path) -> Path:
        return config_root / self.config_dirname

    def store_paths(self, config_root: Path) -> list[tuple[Path, StoreFormat]]:
        config_dir = self.config_dir(config_root)
        return [(config_dir / store.relative_path, store.format) for store in self.stores]

    def with_executable(self, executable: str) -> "EditorVariant":
        return replace(self, executable=executable)

    @property
    def desktop_ids(self) -> tuple[str, ...]:
        return (self.desktop_id, *self.alt_desktop_ids)

    def with_desktop_id(self, desktop_id: str) -> "EditorVariant":
        return replace(self, desktop_id=desktop_id)


@dataclass(frozen=True)
class RawRecentEntry:
    """A single item decoded from a store, before normalization."""

    uri: str  # file:// URI or plain path, as recorded by the editor
    position: int  # index within its store, 0 is the most recent
    store_modified: float  # mtime of the store the entry came from
    label: str | None = None
    last_opened: float | None = None
    is_workspace_file: bool = False  # a .code-workspace file rather than a folder


@dataclass(frozen=True)
class WorkspaceEntry:
    identifier: str
    name: str
    path: Path
    variant: EditorVariant
    generation: int
    last_seen: float  # explicit last-opened time, else the store mtime
    position: int


@dataclass(frozen=True)
class IndexSnapshot:
    """An immutable view of all known workspaces across all variants."""

    generation: int
    built_at: float
    entries: Mapping[str, WorkspaceEntry] = field(default_factory=dict)
    failed: bool = False  # every variant failed to parse
    failed_variants: tuple[str, ...] = ()

    def __post_init__(self):
        # Freeze the mapping so readers can never observe a mutation
        object.__setattr__(self, "entries", MappingProxyType(dict(self.entries)))

    def get(self, identifier: str) -> WorkspaceEntry | None:
        return self.entries.get(identifier)

    def identifiers(self) -> frozenset[str]:
        return frozenset(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[WorkspaceEntry]:
        return iter(self.entries.values())


@dataclass(frozen=True)
class MatchSpan:
    field: str  # "name" or "path"
    start: int
    end: int


@dataclass(frozen=True)
class MatchResult:
    identifier: str
    score: float
    spans: tuple[MatchSpan, ...] = ()


@dataclass(frozen=True)
class LaunchSpec:
    executable: str
    args: tuple[str, ...]

    @property
    def argv(self) -> list[str]:
        return [self.executable, *self.args]
