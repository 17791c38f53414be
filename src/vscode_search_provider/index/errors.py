from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from vscode_search_provider.index.models import IndexSnapshot


class ProviderError(Exception):
    pass


class ParseError(ProviderError):
    """A variant's store could not be parsed."""

    def __init__(self, variant: str, path: Path, reason: str):
        super().__init__(f"Failed to parse {variant} store {path}: {reason}")
        self.variant = variant
        self.path = path
        self.reason = reason


class CorruptStoreError(ParseError):
    """The store exists but is unreadable or malformed."""


class AllVariantsFailedError(ProviderError):
    """Every registered variant failed to parse.

    Carries the empty snapshot that was published in place of real results.
    """

    def __init__(self, snapshot: "IndexSnapshot"):
        super().__init__(
            f"All variants failed to parse: {', '.join(snapshot.failed_variants)}"
        )
        self.snapshot = snapshot


class WorkspaceNotFoundError(ProviderError):
    def __init__(self, identifier: str):
        super().__init__(f"Workspace not found: {identifier}")
        self.identifier = identifier


class LaunchError(ProviderError):
    pass
