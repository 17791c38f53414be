"""Registry of known VSCode variants."""

import os
import shutil
from collections.abc import Callable
from pathlib import Path

from vscode_search_provider.index.models import EditorVariant, StoreFormat, StoreLocation
from vscode_search_provider.logger import logging

logger = logging.getLogger(__name__)

# Every variant keeps the same store layout below its own config directory.
DEFAULT_STORES = (
    StoreLocation("User/globalStorage/state.vscdb", StoreFormat.STATE_DB),
    StoreLocation("User/globalStorage/storage.json", StoreFormat.STORAGE_JSON),
    StoreLocation("storage.json", StoreFormat.STORAGE_JSON),
)

KNOWN_VARIANTS: dict[str, EditorVariant] = {
    "code": EditorVariant(
        key="code",
        name="Code",
        desktop_id="code.desktop",
        config_dirname="Code",
        executables=("code",),
        stores=DEFAULT_STORES,
        alt_desktop_ids=("visual-studio-code.desktop", "code_code.desktop"),
    ),
    "code-oss": EditorVariant(
        key="code-oss",
        name="Code - OSS",
        desktop_id="code-oss.desktop",
        config_dirname="Code - OSS",
        executables=("code-oss",),
        stores=DEFAULT_STORES,
        alt_desktop_ids=("com.visualstudio.code.oss.desktop",),
    ),
    "code-insiders": EditorVariant(
        key="code-insiders",
        name="Code - Insiders",
        desktop_id="code-insiders.desktop",
        config_dirname="Code - Insiders",
        executables=("code-insiders",),
        stores=DEFAULT_STORES,
        alt_desktop_ids=("code-insiders_code-insiders.desktop",),
    ),
    "vscodium": EditorVariant(
        key="vscodium",
        name="VSCodium",
        desktop_id="codium.desktop",
        config_dirname="VSCodium",
        executables=("codium", "vscodium"),
        stores=DEFAULT_STORES,
        alt_desktop_ids=("vscodium.desktop", "com.vscodium.codium.desktop"),
    ),
}


def get_variant(name: str) -> EditorVariant:
    """
    Look up a known variant by key or human readable name, ignoring case.

    Raises:
        ValueError: If no such variant is known.
    """
    name_lower = name.lower()
    for variant in KNOWN_VARIANTS.values():
        if name_lower in (variant.key, variant.name.lower()):
            return variant
    supported = ", ".join(KNOWN_VARIANTS.keys())
    raise ValueError(f"Unknown variant: {name}. Known variants: {supported}")


def probe_executable(
    variant: EditorVariant, which: Callable[[str], str | None] = shutil.which
) -> str | None:
    for candidate in variant.executables:
        executable = which(candidate)
        if executable:
            return executable
    return None


def application_dirs() -> list[Path]:
    """`applications` directories searched for desktop files, most specific first."""
    data_home = os.environ.get("XDG_DATA_HOME") or str(Path.home() / ".local" / "share")
    data_dirs = os.environ.get("XDG_DATA_DIRS") or "/usr/local/share:/usr/share"
    dirs = [data_home, *data_dirs.split(os.pathsep)]
    return [Path(d) / "applications" for d in dirs if d]


def probe_desktop_id(variant: EditorVariant, search_dirs: list[Path] | None = None) -> str:
    """
    The first of the variant's desktop IDs with an installed desktop file.

    Falls back to the primary ID when none is found.
    """
    if search_dirs is None:
        search_dirs = application_dirs()
    for desktop_id in variant.desktop_ids:
        for directory in search_dirs:
            if (directory / desktop_id).is_file():
                return desktop_id
    return variant.desktop_id


def list_variants(
    variants: dict[str, EditorVariant] | None = None,
    which: Callable[[str], str | None] = shutil.which,
    search_dirs: list[Path] | None = None,
) -> list[EditorVariant]:
    """
    Probe which variants are installed.

    A variant whose executable cannot be found on PATH is left out; that is the
    common case, not an error. Installed variants carry the desktop ID their
    package actually installed.
    """
    if variants is None:
        variants = KNOWN_VARIANTS
    if search_dirs is None:
        search_dirs = application_dirs()

    installed = []
    for variant in variants.values():
        executable = probe_executable(variant, which)
        if executable is None:
            logger.debug("%s not installed, skipping", variant.name)
            continue
        logger.info("Found %s at %s", variant.name, executable)
        desktop_id = probe_desktop_id(variant, search_dirs)
        installed.append(variant.with_executable(executable).with_desktop_id(desktop_id))
    return installed


def describe_stores(variant: EditorVariant, config_root: Path) -> list[str]:
    """Human readable store paths, with a marker for the ones that exist."""
    lines = []
    for path, store_format in variant.store_paths(config_root):
        marker = "*" if path.is_file() else " "
        lines.append(f"{marker} {path} ({store_format.value})")
    return lines
