import os
from collections.abc import Sequence
from pathlib import Path

from watchdog.events import (
    FileCreatedEvent,
    FileDeletedEvent,
    FileModifiedEvent,
    FileMovedEvent,
    FileSystemEventHandler,
)

if os.environ.get("VSCODE_SEARCH_PROVIDER_POLLING", "").lower() in ("1", "true"):
    from watchdog.observers.polling import PollingObserver as Observer
else:
    from watchdog.observers import Observer

from vscode_search_provider.index.models import EditorVariant
from vscode_search_provider.index.workspace_index import WorkspaceIndex
from vscode_search_provider.logger import logging

logger = logging.getLogger(__name__)


class StoreWatcher:
    """
    Invalidates the index whenever an editor writes one of its stores.
    """

    index: WorkspaceIndex
    store_paths: frozenset[Path]

    def __init__(self, index: WorkspaceIndex, variants: Sequence[EditorVariant], config_root: Path):
        self.index = index
        self.store_paths = frozenset(
            path for variant in variants for path, _ in variant.store_paths(config_root)
        )
        self.observer = Observer()

    def watched_directories(self) -> list[Path]:
        """Directories holding store files; ones that do not exist yet are not watched."""
        return sorted({path.parent for path in self.store_paths if path.parent.is_dir()})

    def start(self) -> None:
        event_handler = _StoreEventHandler(self.index, self.store_paths)
        for directory in self.watched_directories():
            logger.info("Watching %s for store changes", directory)
            self.observer.schedule(
                event_handler,
                str(directory),
                recursive=False,
                event_filter=[
                    FileCreatedEvent,
                    FileModifiedEvent,
                    FileDeletedEvent,
                    FileMovedEvent,
                ],
            )
        self.observer.start()

    def stop(self) -> None:
        logger.info("Stopping store watcher")
        self.observer.stop()
        self.observer.join()


class _StoreEventHandler(FileSystemEventHandler):
    """
    Internal event handler class to process filesystem events.
    """

    index: WorkspaceIndex
    store_paths: frozenset[Path]

    def __init__(self, index: WorkspaceIndex, store_paths: frozenset[Path]):
        self.index = index
        self.store_paths = store_paths
        super().__init__()

    def _is_store(self, path: str | bytes) -> bool:
        return Path(os.fsdecode(path)) in self.store_paths

    def _invalidate(self, reason: str, path: str | bytes):
        logger.debug("Store %s: %s", reason, os.fsdecode(path))
        self.index.invalidate()

    def on_created(self, event):
        if not event.is_directory and self._is_store(event.src_path):
            self._invalidate("created", event.src_path)

    def on_modified(self, event):
        if not event.is_directory and self._is_store(event.src_path):
            self._invalidate("modified", event.src_path)

    def on_deleted(self, event):
        if not event.is_directory and self._is_store(event.src_path):
            self._invalidate("deleted", event.src_path)

    def on_moved(self, event):
        # Editors write stores atomically by renaming a temporary file over them
        if event.is_directory:
            return
        if self._is_store(event.src_path) or self._is_store(event.dest_path):
            self._invalidate("replaced", event.dest_path)
