"""The seam a search-provider runtime calls into: query, result metadata, activation."""

from collections.abc import Callable, Iterable, Sequence
from pathlib import Path

from vscode_search_provider.index.errors import LaunchError, WorkspaceNotFoundError
from vscode_search_provider.index.launcher import LaunchResolver, spawn
from vscode_search_provider.index.messages import (
    ResultMetadata,
    SearchRequestMessage,
    SearchResponseMessage,
)
from vscode_search_provider.index.models import LaunchSpec, MatchResult, WorkspaceEntry
from vscode_search_provider.index.searcher import search
from vscode_search_provider.index.variants import list_variants
from vscode_search_provider.index.workspace_index import WorkspaceIndex
from vscode_search_provider.logger import logging

logger = logging.getLogger(__name__)


def result_metadata(entry: WorkspaceEntry, match: MatchResult | None = None) -> ResultMetadata:
    return ResultMetadata(
        identifier=entry.identifier,
        name=entry.name,
        description=f"{entry.path} ({entry.variant.name})",
        path=entry.path,
        variant=entry.variant.name,
        icon=entry.variant.desktop_id,
        spans=[(span.field, span.start, span.end) for span in match.spans] if match else [],
    )


class SearchProvider:
    index: WorkspaceIndex
    resolver: LaunchResolver

    def __init__(
        self,
        index: WorkspaceIndex,
        launch: Callable[[LaunchSpec], int] = spawn,
    ):
        self.index = index
        self.resolver = LaunchResolver(index)
        self._launch = launch

    @classmethod
    def for_installed_variants(cls, config_root: Path, staleness: float) -> "SearchProvider":
        variants = list_variants()
        if not variants:
            logger.warning("No VSCode variant found on PATH")
        for variant in variants:
            logger.info("Registering provider for %s (%s)", variant.name, variant.desktop_id)
        return cls(WorkspaceIndex(variants, config_root, staleness=staleness))

    def handle_search(self, message: SearchRequestMessage) -> SearchResponseMessage:
        snapshot = self.index.current()
        matches = search(snapshot, message.terms)
        if message.limit is not None:
            matches = matches[: message.limit]

        results = []
        for match in matches:
            entry = snapshot.get(match.identifier)
            if entry is not None:
                results.append(result_metadata(entry, match))
        return SearchResponseMessage(results=results, generation=snapshot.generation, failed=snapshot.failed)

    def on_query(self, terms: Sequence[str]) -> list[str]:
        """Identifiers of the workspaces matching all terms, best first."""
        return [result.identifier for result in self.handle_search(SearchRequestMessage(terms)).results]

    def on_result_metadata(self, identifiers: Iterable[str]) -> list[ResultMetadata]:
        """Metadata for each identifier still in the index; unknown identifiers are skipped."""
        snapshot = self.index.current()
        metadata = []
        for identifier in identifiers:
            entry = snapshot.get(identifier)
            if entry is None:
                logger.debug("No metadata for unknown workspace %s", identifier)
                continue
            metadata.append(result_metadata(entry))
        return metadata

    def on_activate(self, identifier: str) -> LaunchSpec | None:
        """
        Reopen a workspace in its editor.

        Returns the launched command, or None if the workspace vanished from the
        index since it was found. Raises LaunchError if the editor fails to start.
        """
        try:
            spec = self.resolver.resolve(identifier)
        except WorkspaceNotFoundError as e:
            logger.warning("Ignoring activation: %s", e)
            return None
        try:
            self._launch(spec)
        except LaunchError as e:
            logger.error("%s", e)
            raise
        return spec

    def list_workspaces(self) -> list[ResultMetadata]:
        return [result_metadata(entry) for entry in self.index.current()]
