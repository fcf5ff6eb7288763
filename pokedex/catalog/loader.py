"""
Bulk loading of Pokémon records.

``RangeLoader`` fetches a whole id range (or a generation's band)
concurrently and is all-or-nothing: the first failure propagates, the
remaining requests are cancelled and no partial list is returned.

``ProgressiveLoader`` sits on top of it and owns the resilience policy.
It walks generations band by band in narrower chunks, merges every
completed chunk into the ``CollectionState`` and turns failures into a
non-fatal error message so whatever was loaded so far stays usable.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Iterable, List

from .errors import CatalogError
from .generations import GENERATION_BANDS, band_for_generation
from .pokeapi_service import PokeAPIClient
from .schemas import Pokemon
from .store import CollectionState


logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 50


class RangeLoader:
    def __init__(self, client: PokeAPIClient):
        self.client = client

    async def fetch_range(self, start: int, end: int) -> List[Pokemon]:
        """Fetch ids ``start``..``end`` inclusive, ordered by id."""
        if start < 1:
            raise ValueError(f"Range must start at a positive id, got {start}")
        if start > end:
            return []

        tasks = [
            asyncio.ensure_future(self.client.fetch_one(pokemon_id))
            for pokemon_id in range(start, end + 1)
        ]
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            for task in tasks:
                task.cancel()
            # Let each cancelled caller release its shared request.
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    async def fetch_by_generation(self, generation: int) -> List[Pokemon]:
        band = band_for_generation(generation)
        return await self.fetch_range(band.start, band.end)


class ProgressiveLoader:
    """Populate a ``CollectionState`` generation by generation."""

    def __init__(
        self,
        loader: RangeLoader,
        state: CollectionState,
        batch_size: int = DEFAULT_BATCH_SIZE,
    ):
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self.loader = loader
        self.state = state
        self.batch_size = batch_size

    async def populate(self, generations: Iterable[int] = ()) -> int:
        """Load the given generations (all of them by default).

        Returns the number of records merged into the state. Batch
        failures are logged and reported through ``state.error``; the
        remaining batches are still attempted.
        """
        gens = list(generations) or [band.generation for band in GENERATION_BANDS]
        bands = [band_for_generation(g) for g in gens]
        loaded = 0
        failures = 0

        self.state.set_loading(True)
        self.state.set_error(None)
        try:
            for band in bands:
                for start in range(band.start, band.end + 1, self.batch_size):
                    end = min(start + self.batch_size - 1, band.end)
                    try:
                        batch = await self.loader.fetch_range(start, end)
                    except CatalogError as exc:
                        failures += 1
                        logger.warning(
                            "Failed to load Pokemon %s-%s (generation %s): %s",
                            start, end, band.generation, exc,
                        )
                        self.state.set_error(
                            f"Some Pokemon could not be loaded ({start}-{end}): {exc}"
                        )
                        continue
                    self.state.add(batch)
                    loaded += len(batch)
                    await self.loader.client.flush_cache()
                logger.info(
                    "Generation %s (%s) loaded, %s Pokemon in catalog",
                    band.generation, band.region, len(self.state.records),
                )
        finally:
            self.state.set_loading(False)

        if failures:
            logger.warning("Catalog population finished with %s failed batch(es)", failures)
        return loaded
