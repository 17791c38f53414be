"""Readers for the recent workspaces stores of VSCode variants.

VSCode has kept its list of recently opened folders and workspaces in three
places over the years:

- ``storage.json`` in the config directory, as ``openedPathsList.workspaces3``
  (up to 1.54) or ``openedPathsList.entries`` (1.55 onwards),
- ``User/globalStorage/storage.json`` with the same layout,
- ``User/globalStorage/state.vscdb``, a SQLite database whose ``ItemTable``
  holds the list as JSON under ``history.recentlyOpenedPathsList`` (1.64
  onwards).

All of them list the most recently opened item first.
"""

import json
import os
import sqlite3
from collections.abc import Callable
from pathlib import Path
from urllib.parse import quote, unquote, urlparse

from vscode_search_provider.index.errors import CorruptStoreError
from vscode_search_provider.index.models import EditorVariant, RawRecentEntry, StoreFormat
from vscode_search_provider.logger import logging

logger = logging.getLogger(__name__)

RECENTLY_OPENED_KEY = "history.recentlyOpenedPathsList"

WORKSPACE_FILE_SUFFIX = ".code-workspace"


class _MalformedStore(Exception):
    """Raised by the format readers; turned into CorruptStoreError by parse."""


# (uri, label, is_workspace_file)
_Item = tuple[str, str | None, bool]


def uri_to_path(uri: str) -> Path | None:
    """
    Decode a file URI or plain absolute path into a normalized filesystem path.

    Percent escapes are decoded fully. URIs with any other scheme (remote
    workspaces, virtual file systems) return None.
    """
    if uri.startswith("/"):
        return Path(os.path.normpath(uri))

    parsed = urlparse(uri)
    if parsed.scheme != "file" or parsed.netloc not in ("", "localhost"):
        return None

    path = unquote(parsed.path)
    if not path.startswith("/"):
        return None
    return Path(os.path.normpath(path))


def _entry_items(entries: object) -> list[_Item]:
    if not isinstance(entries, list):
        raise _MalformedStore("entries is not a list")

    items: list[_Item] = []
    for entry in entries:
        if not isinstance(entry, dict):
            logger.debug("Skipping malformed entry: %r", entry)
            continue
        label = entry.get("label") if isinstance(entry.get("label"), str) else None
        folder_uri = entry.get("folderUri")
        workspace = entry.get("workspace")
        if isinstance(folder_uri, str):
            items.append((folder_uri, label, False))
        elif isinstance(workspace, dict) and isinstance(workspace.get("configPath"), str):
            items.append((workspace["configPath"], label, True))
        # fileUri entries are single files, not workspaces
    return items


def _workspaces3_items(workspaces: object) -> list[_Item]:
    if not isinstance(workspaces, list):
        raise _MalformedStore("workspaces3 is not a list")

    items: list[_Item] = []
    for workspace in workspaces:
        if isinstance(workspace, str):
            items.append((workspace, None, False))
        elif isinstance(workspace, dict) and isinstance(workspace.get("configURIPath"), str):
            items.append((workspace["configURIPath"], None, True))
        else:
            logger.debug("Skipping malformed workspace: %r", workspace)
    return items


def _opened_paths_items(opened_paths: object) -> list[_Item]:
    if not isinstance(opened_paths, dict):
        raise _MalformedStore("recently opened list is not an object")

    items: list[_Item] = []
    if "entries" in opened_paths:
        items.extend(_entry_items(opened_paths["entries"]))
    if "workspaces3" in opened_paths:
        items.extend(_workspaces3_items(opened_paths["workspaces3"]))
    return items


def read_storage_json(path: Path) -> list[_Item]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        raise _MalformedStore(str(e)) from e

    if not isinstance(data, dict):
        raise _MalformedStore("top level is not an object")

    opened_paths = data.get("openedPathsList")
    if opened_paths is None:
        return []
    return _opened_paths_items(opened_paths)


def _connect_sqlite_ro(path: Path) -> sqlite3.Connection:
    return sqlite3.connect(f"file:{quote(str(path))}?mode=ro", uri=True)


def read_state_db(path: Path) -> list[_Item]:
    try:
        connection = _connect_sqlite_ro(path)
        try:
            row = connection.execute(
                "SELECT value FROM ItemTable WHERE key = ?", (RECENTLY_OPENED_KEY,)
            ).fetchone()
        finally:
            connection.close()
    except sqlite3.Error as e:
        raise _MalformedStore(str(e)) from e

    if row is None or row[0] is None:
        return []

    try:
        value = json.loads(row[0])
    except ValueError as e:
        raise _MalformedStore(str(e)) from e
    return _opened_paths_items(value)


_READERS: dict[StoreFormat, Callable[[Path], list[_Item]]] = {
    StoreFormat.STORAGE_JSON: read_storage_json,
    StoreFormat.STATE_DB: read_state_db,
}


def parse_store(variant: EditorVariant, path: Path, store_format: StoreFormat) -> list[RawRecentEntry]:
    """
    Parse a single store file.

    A missing file yields no entries. Raises CorruptStoreError if the file
    exists but cannot be read or decoded.
    """
    try:
        store_modified = path.stat().st_mtime
    except FileNotFoundError:
        return []
    except OSError as e:
        raise CorruptStoreError(variant.name, path, str(e)) from e

    try:
        items = _READERS[store_format](path)
    except _MalformedStore as e:
        raise CorruptStoreError(variant.name, path, str(e)) from e

    return [
        RawRecentEntry(
            uri=uri,
            position=position,
            store_modified=store_modified,
            label=label,
            is_workspace_file=is_workspace_file,
        )
        for position, (uri, label, is_workspace_file) in enumerate(items)
    ]


def parse(variant: EditorVariant, config_root: Path) -> list[RawRecentEntry]:
    """
    Read all recent entries of a variant, across every store it has on disk.

    Raises CorruptStoreError if any existing store is malformed.
    """
    entries: list[RawRecentEntry] = []
    for path, store_format in variant.store_paths(config_root):
        if not path.exists():
            logger.debug("No %s store at %s", variant.name, path)
            continue
        entries.extend(parse_store(variant, path, store_format))
    return entries
