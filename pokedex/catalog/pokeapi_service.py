"""
PokeAPI integration for the catalogue.

``PokeAPIClient.fetch_one()`` resolves a national dex id to a fully
assembled ``Pokemon`` record. It consults the ``RecordStore`` first and
only goes to the network on a miss, in which case two dependent
requests are made:

* ``GET {base}/pokemon/{id}`` for the entity itself (types, stats,
  abilities, sprites), and
* ``GET <species url>`` taken from that response, for the descriptive
  metadata (flavour text, genus, legendary/mythical flags).

Both payloads are merged into one record which is cached before being
returned. A failure at any step raises ``NotFound`` or ``UpstreamError``
and nothing is cached.

Concurrent lookups of the same uncached id share one in-flight request.
"""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from .errors import NotFound, UpstreamError
from .record_store import RecordStore
from .schemas import (
    DEFAULT_CATEGORY,
    DEFAULT_DESCRIPTION,
    CacheStats,
    Pokemon,
    Sprites,
    StatBlock,
)


logger = logging.getLogger(__name__)

POKEAPI_BASE = "https://pokeapi.co/api/v2"
DEFAULT_TIMEOUT = 10.0

# PokeAPI stat names mapped to StatBlock fields
_STAT_FIELDS = {
    "hp": "hp",
    "attack": "attack",
    "defense": "defense",
    "special-attack": "special_attack",
    "special-defense": "special_defense",
    "speed": "speed",
}

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f-\x9f]+")


def _clean_text(text: str) -> str:
    """Collapse form feeds, newlines and other control characters to a space."""
    return _CONTROL_CHARS.sub(" ", text).strip()


def _first_english(entries: Any, field: str) -> Optional[str]:
    """Return ``field`` of the first entry whose language is English."""
    for entry in entries or []:
        if not isinstance(entry, dict):
            continue
        language = entry.get("language") or {}
        if language.get("name") == "en" and isinstance(entry.get(field), str):
            return entry[field]
    return None


def _generate_search_terms(name: str, types: List[str]) -> List[str]:
    """Name and type tags, lowercased, duplicates removed, order preserved."""
    terms: List[str] = []
    seen = set()
    for term in [name, name.lower(), *types]:
        if term not in seen:
            seen.add(term)
            terms.append(term)
    return terms


def build_pokemon(data: Dict[str, Any], species: Dict[str, Any]) -> Pokemon:
    """Merge the entity and species payloads into a ``Pokemon`` record.

    Raises ``UpstreamError`` when a payload lacks a required field or
    carries values the record model rejects.
    """
    try:
        pokemon_id = int(data["id"])
        name = str(data["name"]).lower()

        types: List[str] = []
        for entry in sorted(data["types"], key=lambda t: t.get("slot", 0)):
            type_name = entry["type"]["name"]
            if type_name not in types:
                types.append(type_name)

        stats: Dict[str, int] = {}
        for entry in data["stats"]:
            field = _STAT_FIELDS.get(entry["stat"]["name"])
            if field:
                stats[field] = int(entry["base_stat"])

        sprites_raw = data.get("sprites") or {}
        artwork = ((sprites_raw.get("other") or {}).get("official-artwork") or {}).get(
            "front_default"
        )

        description = _first_english(species.get("flavor_text_entries"), "flavor_text")
        genus = _first_english(species.get("genera"), "genus")

        if species.get("is_legendary"):
            legendary_status = "legendary"
        elif species.get("is_mythical"):
            legendary_status = "mythical"
        else:
            legendary_status = "normal"

        return Pokemon(
            id=pokemon_id,
            name=name,
            categories=types,
            height=int(data["height"]) / 10,
            weight=int(data["weight"]) / 10,
            abilities=[a["ability"]["name"] for a in data.get("abilities") or []],
            stats=StatBlock(**stats),
            sprites=Sprites(
                normal=sprites_raw.get("front_default"),
                shiny=sprites_raw.get("front_shiny"),
                artwork=artwork,
            ),
            legendary_status=legendary_status,
            description=_clean_text(description) if description else DEFAULT_DESCRIPTION,
            category=genus or DEFAULT_CATEGORY,
            search_terms=_generate_search_terms(name, types),
        )
    except (KeyError, TypeError, ValueError, ValidationError) as exc:
        raise UpstreamError(f"Malformed PokeAPI payload for {data.get('id')!r}: {exc}") from exc


class PokeAPIClient:
    """Fetch and assemble Pokémon records, backed by a ``RecordStore``.

    The client owns its ``httpx.AsyncClient`` unless one is supplied,
    in which case closing it is left to the caller.
    """

    def __init__(
        self,
        record_store: Optional[RecordStore] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        base_url: str = POKEAPI_BASE,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.record_store = record_store if record_store is not None else RecordStore()
        self.base_url = base_url.rstrip("/")
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=timeout,
            headers={"Accept": "application/json"},
        )
        self._in_flight: Dict[int, _InFlight] = {}

    async def __aenter__(self) -> "PokeAPIClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Cancel outstanding requests, flush the cache, close the HTTP client."""
        pending = [entry.task for entry in self._in_flight.values()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        await self.flush_cache()
        if self._owns_client:
            await self._client.aclose()

    async def fetch_one(self, pokemon_id: int) -> Pokemon:
        """Return the record for ``pokemon_id``, from cache when possible.

        Concurrent callers share one request. It is cancelled once every
        caller waiting on it has been cancelled.
        """
        if pokemon_id < 1:
            raise ValueError(f"Pokemon id must be positive, got {pokemon_id}")

        cached = self.record_store.get(pokemon_id)
        if cached is not None:
            return cached

        entry = self._in_flight.get(pokemon_id)
        if entry is None:
            task = asyncio.ensure_future(self._fetch_and_store(pokemon_id))
            task.add_done_callback(_consume_exception)
            task.add_done_callback(lambda _t: self._in_flight.pop(pokemon_id, None))
            entry = self._in_flight[pokemon_id] = _InFlight(task)

        entry.waiters += 1
        try:
            # A cancelled waiter must not cancel a request others still wait on.
            return await asyncio.shield(entry.task)
        finally:
            entry.waiters -= 1
            if entry.waiters == 0 and not entry.task.done():
                entry.task.cancel()

    async def _fetch_and_store(self, pokemon_id: int) -> Pokemon:
        logger.debug("Fetching Pokemon %s from PokeAPI", pokemon_id)
        data = await self._get_json(f"{self.base_url}/pokemon/{pokemon_id}", pokemon_id)
        try:
            species_url = data["species"]["url"]
        except (KeyError, TypeError) as exc:
            raise UpstreamError(f"No species link for Pokemon {pokemon_id}") from exc
        species = await self._get_json(species_url)
        pokemon = build_pokemon(data, species)
        self.record_store.put(pokemon.id, pokemon)
        return pokemon

    async def _get_json(self, url: str, pokemon_id: Optional[int] = None) -> Dict[str, Any]:
        """GET ``url`` and return its JSON object.

        A 404 raises ``NotFound`` only for the primary entity lookup
        (when ``pokemon_id`` is given); anything else unsuccessful is an
        ``UpstreamError``.
        """
        try:
            response = await self._client.get(url)
        except httpx.TimeoutException as exc:
            logger.warning("Timeout fetching %s", url)
            raise UpstreamError(f"Timeout fetching {url}") from exc
        except httpx.RequestError as exc:
            logger.warning("Error fetching %s: %s", url, exc)
            raise UpstreamError(f"Failed to connect to PokeAPI: {exc}") from exc

        if response.status_code == 404 and pokemon_id is not None:
            raise NotFound(pokemon_id)
        if not response.is_success:
            logger.warning("PokeAPI request to %s returned status %s", url, response.status_code)
            raise UpstreamError(
                f"PokeAPI returned HTTP {response.status_code} for {url}",
                status_code=response.status_code,
            )
        try:
            payload = response.json()
        except ValueError as exc:
            raise UpstreamError(f"Invalid JSON from {url}") from exc
        if not isinstance(payload, dict):
            raise UpstreamError(f"Unexpected response from {url}: expected JSON object")
        return payload

    async def flush_cache(self) -> None:
        """Write pending cache entries to durable storage off the event loop."""
        await asyncio.to_thread(self.record_store.flush)

    def clear_cache(self) -> None:
        self.record_store.clear()

    def cache_stats(self) -> CacheStats:
        return self.record_store.stats()


class _InFlight:
    """A shared request and the number of callers awaiting it."""

    def __init__(self, task: asyncio.Future):
        self.task = task
        self.waiters = 0


def _consume_exception(task: asyncio.Future) -> None:
    # Waiters of an abandoned batch may never read the exception.
    if not task.cancelled():
        task.exception()
