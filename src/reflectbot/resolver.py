"""Query resolver -- case-sensitive substring containment over FQNs."""

from __future__ import annotations

from enum import Enum

from .index import SymbolIndex
from .models import ClassMatch, MatchResult, MethodMatch, ViewKind

# One reaction marker per candidate; see session.NUMBER_MARKERS.
MAX_CANDIDATES = 9


class QueryOutcome(Enum):
    no_results = "no_results"
    single = "single"
    ambiguous = "ambiguous"
    too_many = "too_many"


def resolve(
    index: SymbolIndex,
    query: str | None,
    view: ViewKind = ViewKind.properties,
) -> list[MatchResult]:
    """Return every class and method whose FQN contains *query*.

    Method names are only searched when the query contains ``::``.  Class
    names are always searched, independently, so one query can produce both
    kinds.  Results follow index order: for each class, its matching methods
    first, then the class itself.  Nothing is deduplicated or normalised.
    """
    results: list[MatchResult] = []
    if not query:
        return results

    search_methods = "::" in query

    for cls in index.all_classes():
        if search_methods:
            for method in cls.methods:
                if query in method.fqn:
                    results.append(MethodMatch(descriptor=method))

        if query in cls.fqn:
            results.append(ClassMatch(descriptor=cls, view=view))

    return results


def classify(matches: list[MatchResult]) -> QueryOutcome:
    if not matches:
        return QueryOutcome.no_results
    if len(matches) == 1:
        return QueryOutcome.single
    if len(matches) > MAX_CANDIDATES:
        return QueryOutcome.too_many
    return QueryOutcome.ambiguous
