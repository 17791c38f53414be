from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path


@dataclass
class SearchRequestMessage:
    terms: Sequence[str]
    limit: int | None = None


@dataclass
class ResultMetadata:
    identifier: str
    name: str
    description: str  # path of the workspace and the variant it belongs to
    path: Path
    variant: str
    icon: str  # desktop ID of the variant
    spans: list[tuple[str, int, int]] = field(default_factory=list)  # (field, start, end)


@dataclass
class SearchResponseMessage:
    results: Sequence[ResultMetadata]
    generation: int
    failed: bool = False  # no variant could be read
