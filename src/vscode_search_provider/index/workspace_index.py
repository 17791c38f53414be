"""In-memory index of recent workspaces across all installed variants.

The index holds one immutable IndexSnapshot at a time. A rebuild parses every
variant's stores into a brand new snapshot and publishes it with a single
reference assignment, so a reader sees either the old or the new snapshot and
never a partially built one. Rebuilds never hold anything a reader needs: while
one runs, readers keep getting the previously published snapshot.
"""

import hashlib
import threading
import time
from collections.abc import Callable, Sequence
from enum import Enum
from pathlib import Path

from vscode_search_provider.config import DEFAULT_STALENESS
from vscode_search_provider.index.errors import AllVariantsFailedError, ParseError
from vscode_search_provider.index.models import (
    EditorVariant,
    IndexSnapshot,
    RawRecentEntry,
    WorkspaceEntry,
)
from vscode_search_provider.index.storage import WORKSPACE_FILE_SUFFIX, parse, uri_to_path
from vscode_search_provider.logger import logging

logger = logging.getLogger(__name__)


class IndexState(Enum):
    EMPTY = "empty"
    BUILDING = "building"
    READY = "ready"


def workspace_id(variant: EditorVariant, path: Path) -> str:
    """A stable identifier for a workspace of a variant."""
    digest = hashlib.sha256(f"{variant.key}\0{path}".encode("utf-8")).hexdigest()
    return f"{variant.key}-{digest[:16]}"


def display_name(raw: RawRecentEntry, path: Path) -> str:
    if raw.label:
        return raw.label
    name = path.name
    if raw.is_workspace_file and name.endswith(WORKSPACE_FILE_SUFFIX):
        name = name[: -len(WORKSPACE_FILE_SUFFIX)]
    return name or str(path)


def normalize_entries(
    variant: EditorVariant,
    raw_entries: Sequence[RawRecentEntry],
    generation: int,
) -> list[WorkspaceEntry]:
    """
    Turn raw store entries of one variant into index entries.

    Drops entries that are not local paths or no longer exist on disk, and
    collapses entries with the same path into one, keeping the most recently
    seen (the first seen on ties).
    """
    entries: dict[str, WorkspaceEntry] = {}
    for raw in raw_entries:
        path = uri_to_path(raw.uri)
        if path is None:
            logger.debug("Skipping non-local workspace %s", raw.uri)
            continue
        if not path.exists():
            logger.debug("Skipping workspace which no longer exists: %s", path)
            continue

        identifier = workspace_id(variant, path)
        last_seen = raw.last_opened if raw.last_opened is not None else raw.store_modified
        existing = entries.get(identifier)
        if existing is not None and existing.last_seen >= last_seen:
            continue

        entries[identifier] = WorkspaceEntry(
            identifier=identifier,
            name=display_name(raw, path),
            path=path,
            variant=variant,
            generation=generation,
            last_seen=last_seen,
            position=raw.position,
        )
    return list(entries.values())


class WorkspaceIndex:
    variants: Sequence[EditorVariant]
    config_root: Path
    staleness: float

    def __init__(
        self,
        variants: Sequence[EditorVariant],
        config_root: Path,
        staleness: float = DEFAULT_STALENESS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.variants = tuple(variants)
        self.config_root = config_root
        self.staleness = staleness
        self._clock = clock
        self._snapshot: IndexSnapshot | None = None
        self._generation = 0
        self._build_started = 0.0
        self._invalidations = 0
        self._built_invalidations = 0
        self._invalidate_lock = threading.Lock()
        self._build_lock = threading.Lock()

    @property
    def state(self) -> IndexState:
        if self._build_lock.locked():
            return IndexState.BUILDING
        if self._snapshot is None:
            return IndexState.EMPTY
        return IndexState.READY

    def invalidate(self):
        """Mark the current snapshot stale; the next current() rebuilds."""
        with self._invalidate_lock:
            self._invalidations += 1

    def is_stale(self) -> bool:
        if self._snapshot is None:
            return True
        if self._invalidations != self._built_invalidations:
            return True
        return self._clock() - self._build_started >= self.staleness

    def current(self) -> IndexSnapshot:
        """
        Get a snapshot that is fresh enough to answer a query.

        Never raises; if every variant failed the snapshot is empty and flagged
        as failed.
        """
        snapshot = self._snapshot
        if snapshot is not None and not self.is_stale():
            return snapshot

        if snapshot is None:
            # Nothing to serve yet, so wait for whoever is building the first snapshot
            with self._build_lock:
                if self._snapshot is not None and not self.is_stale():
                    return self._snapshot
                return self._build_quietly()

        if not self._build_lock.acquire(blocking=False):
            logger.debug("Rebuild in progress, serving generation %d", snapshot.generation)
            return snapshot
        try:
            # Another reader may have published a fresh snapshot meanwhile
            if not self.is_stale():
                return self._snapshot
            return self._build_quietly()
        finally:
            self._build_lock.release()

    def rebuild(self) -> IndexSnapshot:
        """
        Rebuild and publish a new snapshot.

        Raises AllVariantsFailedError if no variant could be parsed; the empty
        snapshot it carries has been published nonetheless.
        """
        with self._build_lock:
            return self._build()

    def _build_quietly(self) -> IndexSnapshot:
        try:
            return self._build()
        except AllVariantsFailedError as e:
            logger.error("%s", e)
            return e.snapshot

    def _build(self) -> IndexSnapshot:
        started = self._clock()
        invalidations = self._invalidations
        generation = self._generation + 1
        time_start = time.perf_counter()

        entries: dict[str, WorkspaceEntry] = {}
        failed: list[str] = []
        for variant in self.variants:
            try:
                raw_entries = parse(variant, self.config_root)
            except ParseError as e:
                logger.warning("%s", e)
                failed.append(variant.name)
                continue

            variant_entries = normalize_entries(variant, raw_entries, generation)
            logger.info("Found %d workspace(s) for %s", len(variant_entries), variant.name)
            for entry in variant_entries:
                entries[entry.identifier] = entry

        all_failed = bool(self.variants) and len(failed) == len(self.variants)
        snapshot = IndexSnapshot(
            generation=generation,
            built_at=time.time(),
            entries={} if all_failed else entries,
            failed=all_failed,
            failed_variants=tuple(failed),
        )

        self._generation = generation
        self._build_started = started
        self._built_invalidations = invalidations
        self._snapshot = snapshot
        logger.info(
            "Published index generation %d with %d workspace(s) in %.3fs",
            generation,
            len(snapshot),
            time.perf_counter() - time_start,
        )

        if all_failed:
            raise AllVariantsFailedError(snapshot)
        return snapshot
