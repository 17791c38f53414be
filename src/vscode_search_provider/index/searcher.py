from collections.abc import Callable, Sequence

from vscode_search_provider.index.models import IndexSnapshot, MatchResult, MatchSpan, WorkspaceEntry

# Score for entries matching every term within their display name, and for
# entries that need the path for at least one term.
NAME_MATCH_SCORE = 1.0
PATH_MATCH_SCORE = 0.5


def terms_from_query(query: str) -> list[str]:
    """Split free text into search terms."""
    return query.split()


def _normalize_terms(terms: Sequence[str]) -> list[str]:
    return [term.strip().lower() for term in terms if term.strip()]


def match_entry(entry: WorkspaceEntry, terms: Sequence[str]) -> tuple[float, tuple[MatchSpan, ...]] | None:
    """
    Match lowercased terms against an entry.

    Every term must occur in the display name or the path. Returns the score
    and the spans where each term matched, or None if some term does not match.
    """
    name = entry.name.lower()
    path = str(entry.path).lower()

    spans = []
    in_name = True
    for term in terms:
        start = name.find(term)
        if start != -1:
            spans.append(MatchSpan("name", start, start + len(term)))
            continue
        start = path.find(term)
        if start == -1:
            return None
        in_name = False
        spans.append(MatchSpan("path", start, start + len(term)))

    return (NAME_MATCH_SCORE if in_name else PATH_MATCH_SCORE), tuple(spans)


def search(
    snapshot: IndexSnapshot,
    terms: Sequence[str],
    weight: Callable[[WorkspaceEntry], float] | None = None,
) -> list[MatchResult]:
    """
    Search a snapshot for workspaces matching all terms.

    Name matches rank above path matches; within each group more recently seen
    workspaces come first, then those further up in their store, then by name.
    `weight` boosts entries within their group ahead of recency, e.g. by how
    often a workspace was picked before; by default ranking is by recency alone.

    Does not touch the snapshot, so it is safe to call while the index rebuilds.
    """
    normalized = _normalize_terms(terms)
    if not normalized:
        return []

    ranked: list[tuple[tuple, MatchResult]] = []
    for entry in snapshot:
        matched = match_entry(entry, normalized)
        if matched is None:
            continue
        score, spans = matched
        boost = weight(entry) if weight is not None else 0.0
        sort_key = (-score, -boost, -entry.last_seen, entry.position, entry.name.lower(), entry.identifier)
        ranked.append((sort_key, MatchResult(entry.identifier, score + boost, spans)))

    ranked.sort(key=lambda item: item[0])
    return [result for _, result in ranked]
