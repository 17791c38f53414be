#!/usr/bin/env python3
"""Benchmark index rebuilds and queries on a synthetic config root.

Usage:
    uv run python scripts/benchmark.py --workspaces 200 --queries 50
"""

import argparse
import json
import random
import sqlite3
import sys
import tempfile
import time
from pathlib import Path

# Add the src directory to the path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

WORDS = ["api", "web", "core", "cli", "docs", "infra", "mobile", "data", "auth", "shop"]


def format_time(seconds: float) -> str:
    """Format time in human readable format."""
    if seconds < 1:
        return f"{seconds * 1000:.2f}ms"
    return f"{seconds:.2f}s"


def build_config_root(root: Path, variants: list, workspaces: int) -> None:
    """Create project folders and a state.vscdb store per variant listing them."""
    projects = root / "projects"
    for variant in variants:
        entries = []
        for i in range(workspaces):
            name = f"{random.choice(WORDS)}-{random.choice(WORDS)}-{i}"
            folder = projects / variant.key / name
            folder.mkdir(parents=True)
            entries.append({"folderUri": folder.as_uri()})

        db_path = variant.config_dir(root / "config") / "User" / "globalStorage" / "state.vscdb"
        db_path.parent.mkdir(parents=True)
        connection = sqlite3.connect(db_path)
        connection.execute("CREATE TABLE ItemTable (key TEXT UNIQUE ON CONFLICT REPLACE, value BLOB)")
        connection.execute(
            "INSERT INTO ItemTable VALUES (?, ?)",
            ("history.recentlyOpenedPathsList", json.dumps({"entries": entries})),
        )
        connection.commit()
        connection.close()


def main():
    parser = argparse.ArgumentParser(description="Benchmark index rebuilds and queries")
    parser.add_argument(
        "--workspaces",
        "-w",
        type=int,
        default=200,
        help="Number of workspaces per variant (default: 200)",
    )
    parser.add_argument(
        "--queries",
        "-q",
        type=int,
        default=50,
        help="Number of queries to run (default: 50)",
    )
    parser.add_argument(
        "--rebuilds",
        "-r",
        type=int,
        default=10,
        help="Number of rebuilds to time (default: 10)",
    )
    args = parser.parse_args()

    # Import here to keep --help fast
    from vscode_search_provider.index.searcher import search
    from vscode_search_provider.index.variants import KNOWN_VARIANTS
    from vscode_search_provider.index.workspace_index import WorkspaceIndex

    variants = list(KNOWN_VARIANTS.values())

    with tempfile.TemporaryDirectory() as tmp:
        root = Path(tmp)
        print(f"Creating {args.workspaces} workspaces for each of {len(variants)} variants...")
        build_config_root(root, variants, args.workspaces)

        index = WorkspaceIndex(variants, root / "config")

        rebuild_times = []
        for _ in range(args.rebuilds):
            start = time.perf_counter()
            snapshot = index.rebuild()
            rebuild_times.append(time.perf_counter() - start)

        query_times = []
        for _ in range(args.queries):
            terms = random.sample(WORDS, random.randint(1, 2))
            start = time.perf_counter()
            search(snapshot, terms)
            query_times.append(time.perf_counter() - start)

    print("\n" + "=" * 50)
    print("BENCHMARK RESULTS")
    print("=" * 50)
    print(f"{'Indexed workspaces':<24} {len(snapshot):>10}")
    print(f"{'Rebuild (avg)':<24} {format_time(sum(rebuild_times) / len(rebuild_times)):>10}")
    print(f"{'Rebuild (max)':<24} {format_time(max(rebuild_times)):>10}")
    print(f"{'Query (avg)':<24} {format_time(sum(query_times) / len(query_times)):>10}")
    print(f"{'Query (max)':<24} {format_time(max(query_times)):>10}")
    print("=" * 50)


if __name__ == "__main__":
    main()
