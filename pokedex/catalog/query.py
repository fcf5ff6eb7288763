"""
Derived view of the catalogue.

``derive_view()`` turns the full collection plus a ``FilterSpec`` into
the ordered list the presentation layer shows. Stages run in a fixed
order: search, type filter, generation filter, sort. The function is
pure and recomputes everything on each call.
"""

from __future__ import annotations

import unicodedata
from typing import Callable, Dict, List, Sequence

from .schemas import FilterSpec, Pokemon
from .search import (
    DEFAULT_LIMIT,
    DEFAULT_THRESHOLD,
    MIN_QUERY_LENGTH,
    fuzzy_search,
    parse_id_query,
)


def _name_key(pokemon: Pokemon) -> str:
    # Accents folded and case ignored, so "Flabébé" sorts next to "flabebe".
    decomposed = unicodedata.normalize("NFKD", pokemon.name)
    return "".join(c for c in decomposed if not unicodedata.combining(c)).casefold()


SORT_KEYS: Dict[str, Callable[[Pokemon], object]] = {
    "id": lambda p: p.id,
    "name": _name_key,
    "stats": lambda p: p.stats.total,
}


def search_stage(
    pokemon: Sequence[Pokemon],
    query: str,
    threshold: float = DEFAULT_THRESHOLD,
    limit: int = DEFAULT_LIMIT,
) -> List[Pokemon]:
    """Apply the search query.

    Blank queries and queries shorter than ``MIN_QUERY_LENGTH`` leave
    the collection untouched. ``"25"`` or ``"#025"`` select by id.
    Anything else goes through fuzzy matching.
    """
    q = (query or "").strip()
    if not q:
        return list(pokemon)
    wanted = parse_id_query(q)
    if wanted is not None:
        return [p for p in pokemon if p.id == wanted]
    if len(q) < MIN_QUERY_LENGTH:
        return list(pokemon)
    return fuzzy_search(pokemon, q, threshold=threshold, limit=limit)


def derive_view(
    pokemon: Sequence[Pokemon],
    filters: FilterSpec,
    threshold: float = DEFAULT_THRESHOLD,
    limit: int = DEFAULT_LIMIT,
) -> List[Pokemon]:
    results = search_stage(pokemon, filters.search_query, threshold, limit)

    # OR logic: any of the selected types
    if filters.categories:
        results = [p for p in results if any(t in filters.categories for t in p.categories)]

    if filters.generations:
        results = [p for p in results if p.generation in filters.generations]

    # list.sort is stable, and reverse=True keeps ties in input order.
    results.sort(key=SORT_KEYS[filters.sort_by], reverse=filters.sort_order == "desc")
    return results
