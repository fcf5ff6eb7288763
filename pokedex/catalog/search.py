"""
Fuzzy search over Pokémon records.

Each record is scored on three weighted fields: name (2), types (1)
and abilities (0.5). For a single value the dissimilarity is
``1 - similarity`` on a 0-1 scale, where 0 is an exact match. The
query may match anywhere inside a value (``partial_ratio``) unless it
is longer than the value, in which case the whole strings are compared.
A field scores its best value; a record matches when at least one
field is within ``threshold`` and its combined score is the weighted
geometric mean of the matching fields' scores.
"""

from __future__ import annotations

import math
import re
from typing import Callable, List, Optional, Sequence, Tuple

from rapidfuzz import fuzz

from .schemas import Pokemon


DEFAULT_THRESHOLD = 0.3
DEFAULT_LIMIT = 50
MIN_QUERY_LENGTH = 2

# Smallest score kept for an exact match so that weights still apply.
_EPSILON = 1e-3

_ID_QUERY = re.compile(r"^#?(\d+)$")

SEARCH_FIELDS: List[Tuple[str, float, Callable[[Pokemon], Sequence[str]]]] = [
    ("name", 2.0, lambda p: [p.name]),
    ("types", 1.0, lambda p: p.categories),
    ("abilities", 0.5, lambda p: p.abilities),
]


def parse_id_query(query: str) -> Optional[int]:
    """Return the id for queries such as ``"25"`` or ``"#025"``."""
    match = _ID_QUERY.match(query.strip())
    return int(match.group(1)) if match else None


def value_score(query: str, value: str) -> float:
    """Dissimilarity between a lowercased query and one field value."""
    value = value.lower()
    if not value:
        return 1.0
    if len(query) <= len(value):
        similarity = fuzz.partial_ratio(query, value)
    else:
        similarity = fuzz.ratio(query, value)
    return 1.0 - similarity / 100.0


def record_score(query: str, pokemon: Pokemon, threshold: float) -> Optional[float]:
    """Combined score of ``pokemon`` for ``query``, ``None`` when it does not match."""
    weighted = 0.0
    total_weight = 0.0
    for _name, weight, values in SEARCH_FIELDS:
        scores = [value_score(query, v) for v in values(pokemon)]
        if not scores:
            continue
        best = min(scores)
        if best <= threshold:
            total_weight += weight
            weighted += weight * math.log(max(best, _EPSILON))
    if not total_weight:
        return None
    return math.exp(weighted / total_weight)


def fuzzy_search(
    pokemon: Sequence[Pokemon],
    query: str,
    threshold: float = DEFAULT_THRESHOLD,
    limit: int = DEFAULT_LIMIT,
) -> List[Pokemon]:
    """Return the records matching ``query``, best match first.

    Ties keep the input order. At most ``limit`` records are returned.
    """
    needle = query.strip().lower()
    scored: List[Tuple[float, int, Pokemon]] = []
    for index, p in enumerate(pokemon):
        score = record_score(needle, p, threshold)
        if score is not None:
            scored.append((score, index, p))
    scored.sort(key=lambda item: (item[0], item[1]))
    return [p for _score, _index, p in scored[:limit]]

