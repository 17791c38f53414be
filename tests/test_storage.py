from __future__ import annotations

from pathlib import Path

import pytest

from conftest import STATE_DB, STORAGE_JSON, installed, write_state_db, write_storage_json
from vscode_search_provider.index.errors import CorruptStoreError, ParseError
from vscode_search_provider.index.storage import parse, uri_to_path

CODE_1_54_WORKSPACES = [
    "file:///home/foo//mdcat",
    "file:///home/foo//gnome-jetbrains-search-provider",
    "file:///home/foo//gnome-shell",
    "file:///home/foo//sbctl",
]


def test_uri_to_path_decodes_percent_escapes() -> None:
    assert uri_to_path("file:///home/u/my%20project%23two") == Path("/home/u/my project#two")


def test_uri_to_path_normalizes_duplicate_and_trailing_slashes() -> None:
    assert uri_to_path("file:///home/foo//mdcat/") == Path("/home/foo/mdcat")


def test_uri_to_path_accepts_plain_paths_and_localhost() -> None:
    assert uri_to_path("/home/u/alpha") == Path("/home/u/alpha")
    assert uri_to_path("file://localhost/home/u/alpha") == Path("/home/u/alpha")


@pytest.mark.parametrize(
    "uri",
    [
        "vscode-remote://ssh-remote%2Bbox/home/u/alpha",
        "vscode-vfs://github/owner/repo",
        "file://otherhost/home/u/alpha",
        "relative/path",
    ],
)
def test_uri_to_path_rejects_non_local_uris(uri: str) -> None:
    assert uri_to_path(uri) is None


def test_parse_workspaces3_up_to_code_1_54(config_root: Path) -> None:
    variant = installed("code")
    write_storage_json(variant.config_dir(config_root) / STORAGE_JSON, workspaces3=CODE_1_54_WORKSPACES)

    entries = parse(variant, config_root)

    assert [entry.uri for entry in entries] == CODE_1_54_WORKSPACES
    assert [entry.position for entry in entries] == [0, 1, 2, 3]


def test_parse_entries_from_code_1_55(config_root: Path) -> None:
    variant = installed("code")
    write_storage_json(
        variant.config_dir(config_root) / STORAGE_JSON,
        entries=[
            {"folderUri": "file:///home/foo//mdcat"},
            {"fileUri": "file:///home/foo/notes.md"},
            {"folderUri": "file:///home/foo//sbctl", "label": "Secure boot"},
            {"workspace": {"id": "abc", "configPath": "file:///home/foo/dev.code-workspace"}},
        ],
    )

    entries = parse(variant, config_root)

    assert [entry.uri for entry in entries] == [
        "file:///home/foo//mdcat",
        "file:///home/foo//sbctl",
        "file:///home/foo/dev.code-workspace",
    ]
    assert entries[1].label == "Secure boot"
    assert entries[2].is_workspace_file


def test_parse_state_db(config_root: Path) -> None:
    variant = installed("code-oss")
    write_state_db(
        variant.config_dir(config_root) / STATE_DB,
        [{"folderUri": "file:///home/u/alpha"}, {"folderUri": "file:///home/u/beta"}],
        mtime=1_700_000_000,
    )

    entries = parse(variant, config_root)

    assert [entry.uri for entry in entries] == ["file:///home/u/alpha", "file:///home/u/beta"]
    assert all(entry.store_modified == 1_700_000_000 for entry in entries)


def test_state_db_without_recent_list_is_empty(config_root: Path) -> None:
    variant = installed("code")
    write_state_db(variant.config_dir(config_root) / STATE_DB, None)

    assert parse(variant, config_root) == []


def test_parse_reads_every_store_present(config_root: Path) -> None:
    variant = installed("code")
    config_dir = variant.config_dir(config_root)
    write_state_db(config_dir / STATE_DB, [{"folderUri": "file:///home/u/new"}])
    write_storage_json(config_dir / STORAGE_JSON, workspaces3=["file:///home/u/old"])

    assert [entry.uri for entry in parse(variant, config_root)] == [
        "file:///home/u/new",
        "file:///home/u/old",
    ]


def test_missing_stores_are_not_an_error(config_root: Path) -> None:
    assert parse(installed("vscodium"), config_root) == []


def test_storage_without_recent_list_is_empty(config_root: Path) -> None:
    variant = installed("code")
    path = variant.config_dir(config_root) / STORAGE_JSON
    path.parent.mkdir(parents=True)
    path.write_text('{"theme": "vs-dark"}', encoding="utf-8")

    assert parse(variant, config_root) == []


@pytest.mark.parametrize(
    "content",
    [
        '{"openedPathsList": {"entries": [{"folderUri": "file:///home/u',
        "[]",
        '{"openedPathsList": []}',
        '{"openedPathsList": {"entries": "nope"}}',
    ],
)
def test_malformed_storage_json_is_corrupt(config_root: Path, content: str) -> None:
    variant = installed("code")
    path = variant.config_dir(config_root) / STORAGE_JSON
    path.parent.mkdir(parents=True)
    path.write_text(content, encoding="utf-8")

    with pytest.raises(CorruptStoreError) as excinfo:
        parse(variant, config_root)

    assert excinfo.value.path == path
    assert excinfo.value.variant == "Code"
    assert isinstance(excinfo.value, ParseError)


def test_state_db_that_is_not_a_database_is_corrupt(config_root: Path) -> None:
    variant = installed("code")
    path = variant.config_dir(config_root) / STATE_DB
    path.parent.mkdir(parents=True)
    path.write_bytes(b"definitely not sqlite, but long enough to have a header" * 4)

    with pytest.raises(CorruptStoreError):
        parse(variant, config_root)


def test_malformed_items_are_skipped(config_root: Path) -> None:
    variant = installed("code")
    write_storage_json(
        variant.config_dir(config_root) / STORAGE_JSON,
        entries=["file:///home/u/loose", {"folderUri": 42}, {"folderUri": "file:///home/u/alpha"}],
        workspaces3=[17, {"configURIPath": "file:///home/u/dev.code-workspace"}],
    )

    entries = parse(variant, config_root)

    assert [entry.uri for entry in entries] == [
        "file:///home/u/alpha",
        "file:///home/u/dev.code-workspace",
    ]
