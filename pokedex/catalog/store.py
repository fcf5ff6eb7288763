"""
Collection state for the catalogue.

``CollectionState`` holds everything the presentation layer reads: the
full set of loaded records, the active ``FilterSpec`` and the
loading/error flags. It is created once, empty, and handed to whoever
needs it; there is no module-level instance.

Every mutation replaces a whole snapshot (the records tuple or the
frozen filter spec) instead of editing it in place, so a reader never
sees a half-applied update. ``filtered()`` returns the derived view,
recomputed only when the snapshot or the filters changed.
"""

from __future__ import annotations

import random
from typing import Dict, Iterable, List, Optional, Tuple

from .generations import band_for_generation
from .query import derive_view
from .schemas import FilterSpec, Pokemon, PokemonType, Siblings, SortField
from .search import DEFAULT_LIMIT, DEFAULT_THRESHOLD


class CollectionState:
    def __init__(
        self,
        search_threshold: float = DEFAULT_THRESHOLD,
        search_limit: int = DEFAULT_LIMIT,
    ):
        self.search_threshold = search_threshold
        self.search_limit = search_limit
        self._records: Tuple[Pokemon, ...] = ()
        self._version = 0
        self.filters = FilterSpec()
        self.is_loading = False
        self.error: Optional[str] = None
        self._view_key: Optional[Tuple[int, FilterSpec]] = None
        self._view: List[Pokemon] = []

    # ------------------------------------------------------------------
    # Records

    @property
    def records(self) -> Tuple[Pokemon, ...]:
        """All loaded records, ascending id."""
        return self._records

    def _replace(self, by_id: Dict[int, Pokemon]) -> None:
        self._records = tuple(by_id[k] for k in sorted(by_id))
        self._version += 1

    def set_all(self, pokemon: Iterable[Pokemon]) -> None:
        self._replace({p.id: p for p in pokemon})

    def add(self, pokemon: Iterable[Pokemon]) -> None:
        """Merge records, replacing any already loaded with the same id."""
        by_id = {p.id: p for p in self._records}
        for p in pokemon:
            by_id[p.id] = p
        self._replace(by_id)

    def get_by_id(self, pokemon_id: int) -> Optional[Pokemon]:
        return next((p for p in self._records if p.id == pokemon_id), None)

    # ------------------------------------------------------------------
    # Filters

    def _update_filters(self, **changes) -> None:
        self.filters = self.filters.model_copy(update=changes)

    def set_search_query(self, query: str) -> None:
        self._update_filters(search_query=query)

    def toggle_category(self, category: PokemonType) -> None:
        self._update_filters(categories=self.filters.categories ^ {category})

    def toggle_generation(self, generation: int) -> None:
        band_for_generation(generation)
        self._update_filters(generations=self.filters.generations ^ {generation})

    def set_sort_by(self, sort_by: SortField) -> None:
        self._update_filters(sort_by=sort_by)

    def toggle_sort_order(self) -> None:
        self._update_filters(sort_order="desc" if self.filters.sort_order == "asc" else "asc")

    def clear_filters(self) -> None:
        """Reset search, type and generation filters; sorting is kept."""
        self._update_filters(categories=frozenset(), generations=frozenset(), search_query="")

    # ------------------------------------------------------------------
    # Flags

    def set_loading(self, loading: bool) -> None:
        self.is_loading = loading

    def set_error(self, error: Optional[str]) -> None:
        self.error = error

    # ------------------------------------------------------------------
    # Derived view

    def filtered(self) -> List[Pokemon]:
        key = (self._version, self.filters)
        if key != self._view_key:
            self._view = derive_view(
                self._records,
                self.filters,
                threshold=self.search_threshold,
                limit=self.search_limit,
            )
            self._view_key = key
        return list(self._view)

    def siblings(self, pokemon_id: int) -> Optional[Siblings]:
        """Previous and next records around ``pokemon_id`` in the view.

        Navigation wraps around at both ends. Returns ``None`` when the
        record is not part of the current view.
        """
        view = self.filtered()
        index = next((i for i, p in enumerate(view) if p.id == pokemon_id), None)
        if index is None:
            return None
        if len(view) == 1:
            return Siblings(current=view[0])
        return Siblings(
            previous=view[index - 1],
            current=view[index],
            next=view[(index + 1) % len(view)],
        )

    def random_record(self, rng: Optional[random.Random] = None) -> Optional[Pokemon]:
        view = self.filtered()
        if not view:
            return None
        return (rng or random).choice(view)
