from __future__ import annotations

from pathlib import Path

from watchdog.events import FileDeletedEvent, FileModifiedEvent, FileMovedEvent

from conftest import STATE_DB, STORAGE_JSON, installed
from vscode_search_provider.index.watcher import StoreWatcher, _StoreEventHandler


class RecordingIndex:
    def __init__(self):
        self.invalidations = 0

    def invalidate(self):
        self.invalidations += 1


def handler_for(config_root: Path) -> tuple[RecordingIndex, _StoreEventHandler]:
    index = RecordingIndex()
    watcher = StoreWatcher(index, [installed("code")], config_root)  # type: ignore[arg-type]
    return index, _StoreEventHandler(index, watcher.store_paths)  # type: ignore[arg-type]


def test_store_changes_invalidate_index(config_root: Path) -> None:
    store = installed("code").config_dir(config_root) / STATE_DB
    index, handler = handler_for(config_root)

    handler.dispatch(FileModifiedEvent(str(store)))
    handler.dispatch(FileDeletedEvent(str(store)))

    assert index.invalidations == 2


def test_atomic_replace_of_store_invalidates_index(config_root: Path) -> None:
    store = installed("code").config_dir(config_root) / STORAGE_JSON
    index, handler = handler_for(config_root)

    handler.dispatch(FileMovedEvent(str(store) + ".vsctmp", str(store)))

    assert index.invalidations == 1


def test_unrelated_files_are_ignored(config_root: Path) -> None:
    config_dir = installed("code").config_dir(config_root)
    index, handler = handler_for(config_root)

    handler.dispatch(FileModifiedEvent(str(config_dir / "User" / "settings.json")))
    handler.dispatch(FileModifiedEvent(str(config_dir / "User" / "globalStorage" / "state.vscdb-journal")))

    assert index.invalidations == 0


def test_only_existing_directories_are_watched(config_root: Path) -> None:
    config_dir = installed("code").config_dir(config_root)
    (config_dir / "User" / "globalStorage").mkdir(parents=True)

    watcher = StoreWatcher(RecordingIndex(), [installed("code")], config_root)  # type: ignore[arg-type]

    assert watcher.watched_directories() == [config_dir, config_dir / "User" / "globalStorage"]
