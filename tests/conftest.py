from __future__ import annotations

import json
import os
import sqlite3
from pathlib import Path

import pytest

from vscode_search_provider.index.models import EditorVariant
from vscode_search_provider.index.storage import RECENTLY_OPENED_KEY
from vscode_search_provider.index.variants import KNOWN_VARIANTS

STATE_DB = "User/globalStorage/state.vscdb"
STORAGE_JSON = "storage.json"


def installed(key: str) -> EditorVariant:
    """A known variant as if probing had found it in /usr/bin."""
    variant = KNOWN_VARIANTS[key]
    return variant.with_executable(f"/usr/bin/{variant.executables[0]}")


def write_storage_json(
    path: Path,
    entries: list | None = None,
    workspaces3: list | None = None,
    mtime: float | None = None,
) -> Path:
    opened: dict = {}
    if entries is not None:
        opened["entries"] = entries
    if workspaces3 is not None:
        opened["workspaces3"] = workspaces3
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps({"openedPathsList": opened, "theme": "vs-dark"}), encoding="utf-8")
    if mtime is not None:
        os.utime(path, (mtime, mtime))
    return path


def write_state_db(path: Path, entries: list | None, mtime: float | None = None) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    connection = sqlite3.connect(path)
    connection.execute("CREATE TABLE ItemTable (key TEXT UNIQUE ON CONFLICT REPLACE, value BLOB)")
    if entries is not None:
        connection.execute(
            "INSERT INTO ItemTable VALUES (?, ?)",
            (RECENTLY_OPENED_KEY, json.dumps({"entries": entries})),
        )
    connection.commit()
    connection.close()
    if mtime is not None:
        os.utime(path, (mtime, mtime))
    return path


def folders(*paths: Path) -> list[dict]:
    return [{"folderUri": path.as_uri()} for path in paths]


@pytest.fixture
def config_root(tmp_path: Path) -> Path:
    root = tmp_path / "config"
    root.mkdir()
    return root


@pytest.fixture
def home(tmp_path: Path) -> Path:
    home = tmp_path / "home" / "u"
    home.mkdir(parents=True)
    return home


@pytest.fixture
def make_project(home: Path):
    def make(name: str) -> Path:
        path = home / name
        path.mkdir(parents=True, exist_ok=True)
        return path

    return make
