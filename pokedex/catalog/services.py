"""
Wiring of the catalogue components.

``CatalogServices`` bundles one instance of each component so the
FastAPI app (and the tests) can build an isolated set explicitly
instead of relying on module-level singletons.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import httpx

from ..storage import JsonFileStorage, KeyValueStorage, MemoryStorage
from .loader import ProgressiveLoader, RangeLoader
from .pokeapi_service import PokeAPIClient
from .record_store import RecordStore
from .store import CollectionState


@dataclass
class CatalogServices:
    record_store: RecordStore
    client: PokeAPIClient
    loader: RangeLoader
    progressive: ProgressiveLoader
    state: CollectionState

    async def aclose(self) -> None:
        await self.client.aclose()


def build_services(
    settings,
    storage: Optional[KeyValueStorage] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> CatalogServices:
    """Create every component from ``settings`` (a ``pokedex.config.Settings``)."""
    if storage is None:
        if settings.cache_file is not None:
            storage = JsonFileStorage(settings.cache_file, max_entries=settings.cache_max_entries)
        else:
            storage = MemoryStorage(max_entries=settings.cache_max_entries)

    record_store = RecordStore(
        storage,
        namespace=settings.cache_namespace,
        ttl=settings.cache_ttl_seconds,
    )
    client = PokeAPIClient(
        record_store,
        http_client=http_client,
        base_url=settings.api_base,
        timeout=settings.http_timeout,
    )
    loader = RangeLoader(client)
    state = CollectionState(
        search_threshold=settings.search_threshold,
        search_limit=settings.search_limit,
    )
    progressive = ProgressiveLoader(loader, state, batch_size=settings.load_batch_size)
    return CatalogServices(
        record_store=record_store,
        client=client,
        loader=loader,
        progressive=progressive,
        state=state,
    )
