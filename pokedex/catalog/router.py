"""
Route definitions for the catalogue API.

Endpoints under /api/catalog:
- GET    /pokemon                      : current derived view, paginated
- GET    /pokemon/{pokemon_id}          : one Pokémon (loaded state, then cache/PokeAPI)
- GET    /pokemon/{pokemon_id}/siblings : previous/next inside the derived view
- GET    /random                       : a random Pokémon from the derived view
- GET    /filters                      : active filter specification
- PUT    /filters/search               : set the search query
- POST   /filters/categories/{type}    : toggle a type filter
- POST   /filters/generations/{gen}    : toggle a generation filter
- PUT    /filters/sort                 : set the sort field
- POST   /filters/sort/toggle          : flip the sort direction
- DELETE /filters                      : clear search/type/generation filters
- GET    /status                       : loading flag, last error, counts
- GET    /cache                        : cache statistics
- DELETE /cache                        : empty the cache
- POST   /load/generations/{gen}       : load one generation into the catalog
"""

from __future__ import annotations

import logging
from typing import get_args

from fastapi import APIRouter, Body, Depends, HTTPException, Query, Request

from .errors import InvalidGeneration, NotFound, UpstreamError
from .schemas import (
    CacheStats,
    CatalogStatus,
    FilterSpec,
    PaginatedPokemon,
    Pokemon,
    PokemonType,
    Siblings,
    SortField,
)
from .services import CatalogServices


logger = logging.getLogger(__name__)

POKEMON_TYPES = frozenset(get_args(PokemonType))

router = APIRouter(prefix="/api/catalog", tags=["catalog"])


def get_services(request: Request) -> CatalogServices:
    return request.app.state.catalog


@router.get("/pokemon", response_model=PaginatedPokemon)
def list_pokemon(
    page: int = Query(default=1, ge=1, description="Current page (1-indexed)"),
    page_size: int = Query(default=20, ge=1, le=200, description="Page size"),
    services: CatalogServices = Depends(get_services),
) -> PaginatedPokemon:
    """Return one page of the derived view (search, filters and sort applied)."""
    items = services.state.filtered()

    total = len(items)
    total_pages = max(1, (total + page_size - 1) // page_size)
    page = min(page, total_pages)
    start = (page - 1) * page_size

    return PaginatedPokemon(
        page=page,
        page_size=page_size,
        total=total,
        total_pages=total_pages,
        items=items[start:start + page_size],
    )


@router.get("/pokemon/{pokemon_id}", response_model=Pokemon)
async def get_pokemon(
    pokemon_id: int,
    services: CatalogServices = Depends(get_services),
) -> Pokemon:
    if pokemon_id < 1:
        raise HTTPException(status_code=400, detail="Pokemon id must be positive")
    pokemon = services.state.get_by_id(pokemon_id)
    if pokemon is not None:
        return pokemon
    try:
        pokemon = await services.client.fetch_one(pokemon_id)
    except NotFound:
        raise HTTPException(status_code=404, detail="Pokemon not found")
    except UpstreamError as exc:
        logger.warning("Upstream failure for Pokemon %s: %s", pokemon_id, exc)
        raise HTTPException(status_code=502, detail=str(exc))
    services.state.add([pokemon])
    await services.client.flush_cache()
    return pokemon


@router.get("/pokemon/{pokemon_id}/siblings", response_model=Siblings)
def get_siblings(
    pokemon_id: int,
    services: CatalogServices = Depends(get_services),
) -> Siblings:
    siblings = services.state.siblings(pokemon_id)
    if siblings is None:
        raise HTTPException(status_code=404, detail="Pokemon not in the current view")
    return siblings


@router.get("/random", response_model=Pokemon)
def random_pokemon(services: CatalogServices = Depends(get_services)) -> Pokemon:
    pokemon = services.state.random_record()
    if pokemon is None:
        raise HTTPException(status_code=404, detail="No Pokemon in the current view")
    return pokemon


@router.get("/filters", response_model=FilterSpec)
def get_filters(services: CatalogServices = Depends(get_services)) -> FilterSpec:
    return services.state.filters


@router.put("/filters/search", response_model=FilterSpec)
def set_search(
    query: str = Body(..., embed=True),
    services: CatalogServices = Depends(get_services),
) -> FilterSpec:
    services.state.set_search_query(query)
    return services.state.filters


@router.post("/filters/categories/{category}", response_model=FilterSpec)
def toggle_category(
    category: str,
    services: CatalogServices = Depends(get_services),
) -> FilterSpec:
    category = category.lower()
    if category not in POKEMON_TYPES:
        raise HTTPException(status_code=400, detail=f"Unknown type: {category}")
    services.state.toggle_category(category)
    return services.state.filters


@router.post("/filters/generations/{generation}", response_model=FilterSpec)
def toggle_generation(
    generation: int,
    services: CatalogServices = Depends(get_services),
) -> FilterSpec:
    try:
        services.state.toggle_generation(generation)
    except InvalidGeneration as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    return services.state.filters


@router.put("/filters/sort", response_model=FilterSpec)
def set_sort(
    sort_by: SortField = Body(..., embed=True),
    services: CatalogServices = Depends(get_services),
) -> FilterSpec:
    services.state.set_sort_by(sort_by)
    return services.state.filters


@router.post("/filters/sort/toggle", response_model=FilterSpec)
def toggle_sort_order(services: CatalogServices = Depends(get_services)) -> FilterSpec:
    services.state.toggle_sort_order()
    return services.state.filters


@router.delete("/filters", response_model=FilterSpec)
def clear_filters(services: CatalogServices = Depends(get_services)) -> FilterSpec:
    services.state.clear_filters()
    return services.state.filters


@router.get("/status", response_model=CatalogStatus)
def get_status(services: CatalogServices = Depends(get_services)) -> CatalogStatus:
    state = services.state
    return CatalogStatus(
        is_loading=state.is_loading,
        error=state.error,
        loaded_count=len(state.records),
        visible_count=len(state.filtered()),
    )


@router.get("/cache", response_model=CacheStats)
def cache_stats(services: CatalogServices = Depends(get_services)) -> CacheStats:
    return services.client.cache_stats()


@router.delete("/cache", response_model=CacheStats)
def clear_cache(services: CatalogServices = Depends(get_services)) -> CacheStats:
    services.client.clear_cache()
    return services.client.cache_stats()


@router.post("/load/generations/{generation}", response_model=CatalogStatus)
async def load_generation(
    generation: int,
    services: CatalogServices = Depends(get_services),
) -> CatalogStatus:
    """Fetch a whole generation and merge it into the catalog.

    The batch is all-or-nothing: on failure nothing is merged and the
    error is reported without touching what was already loaded.
    """
    state = services.state
    try:
        batch = await services.loader.fetch_by_generation(generation)
    except InvalidGeneration as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    except NotFound as exc:
        logger.warning("Loading generation %s failed: %s", generation, exc)
        state.set_error(str(exc))
        raise HTTPException(status_code=404, detail=str(exc))
    except UpstreamError as exc:
        logger.warning("Loading generation %s failed: %s", generation, exc)
        state.set_error(str(exc))
        raise HTTPException(status_code=502, detail=str(exc))
    state.add(batch)
    await services.client.flush_cache()
    return CatalogStatus(
        is_loading=state.is_loading,
        error=state.error,
        loaded_count=len(state.records),
        visible_count=len(state.filtered()),
    )
