"""
Pytest configuration and fixtures for pokedex tests.
"""

import asyncio
import re
from typing import Dict, List, Optional

import httpx
import pytest

from pokedex.catalog.schemas import Pokemon, Sprites, StatBlock


API_BASE = "https://pokeapi.test/api/v2"

STAT_NAMES = ["hp", "attack", "defense", "special-attack", "special-defense", "speed"]


def pokemon_payload(
    pokemon_id: int,
    name: str,
    types: List[str],
    abilities: Optional[List[str]] = None,
    stats: Optional[List[int]] = None,
) -> dict:
    stats = stats or [45, 49, 49, 65, 65, 45]
    return {
        "id": pokemon_id,
        "name": name,
        "height": 7,
        "weight": 69,
        "types": [{"slot": i + 1, "type": {"name": t}} for i, t in enumerate(types)],
        "abilities": [{"ability": {"name": a}} for a in (abilities or ["overgrow"])],
        "stats": [
            {"base_stat": value, "stat": {"name": stat}}
            for stat, value in zip(STAT_NAMES, stats)
        ],
        "sprites": {
            "front_default": f"https://img.test/{pokemon_id}.png",
            "front_shiny": f"https://img.test/shiny/{pokemon_id}.png",
            "other": {"official-artwork": {"front_default": f"https://img.test/art/{pokemon_id}.png"}},
        },
        "species": {"url": f"{API_BASE}/pokemon-species/{pokemon_id}/"},
    }


def species_payload(legendary: bool = False, mythical: bool = False) -> dict:
    return {
        "is_legendary": legendary,
        "is_mythical": mythical,
        "flavor_text_entries": [
            {"flavor_text": "Une graine étrange.", "language": {"name": "fr"}},
            {"flavor_text": "A strange seed was\nplanted on its\fback at birth.",
             "language": {"name": "en"}},
        ],
        "genera": [
            {"genus": "Pokémon Graine", "language": {"name": "fr"}},
            {"genus": "Seed Pokémon", "language": {"name": "en"}},
        ],
    }


class FakePokeAPI:
    """In-process stand-in for PokeAPI, served through ``httpx.MockTransport``."""

    def __init__(self):
        self.pokemon: Dict[int, dict] = {}
        self.species: Dict[int, dict] = {}
        self.failures: Dict[str, int] = {}
        self.requests: List[str] = []
        # seconds slow_handler waits before answering
        self.delay = 0.1

    def add(self, pokemon_id: int, name: str, types: List[str], **kwargs) -> None:
        legendary = kwargs.pop("legendary", False)
        mythical = kwargs.pop("mythical", False)
        self.pokemon[pokemon_id] = pokemon_payload(pokemon_id, name, types, **kwargs)
        self.species[pokemon_id] = species_payload(legendary, mythical)

    def add_range(self, start: int, end: int) -> None:
        for i in range(start, end + 1):
            self.add(i, f"mon{i}", ["normal"])

    def fail(self, path: str, status: int) -> None:
        """Make requests whose path ends with ``path`` return ``status``."""
        self.failures[path] = status

    def count(self, path: str) -> int:
        return sum(1 for p in self.requests if p == path)

    def _failure_for(self, path: str) -> Optional[int]:
        for suffix, status in self.failures.items():
            if path.rstrip("/").endswith(suffix.rstrip("/")):
                return status
        return None

    def handler(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.requests.append(path)
        status = self._failure_for(path)
        if status is not None:
            return httpx.Response(status, json={"detail": "error"})

        match = re.fullmatch(r"/api/v2/pokemon/(\d+)", path)
        if match and int(match.group(1)) in self.pokemon:
            return httpx.Response(200, json=self.pokemon[int(match.group(1))])
        match = re.fullmatch(r"/api/v2/pokemon-species/(\d+)/?", path)
        if match and int(match.group(1)) in self.species:
            return httpx.Response(200, json=self.species[int(match.group(1))])
        return httpx.Response(404, text="Not Found")

    async def slow_handler(self, request: httpx.Request) -> httpx.Response:
        """``handler`` answering after ``delay``; failing paths answer at once.

        A request only shows up in ``requests`` once it is answered.
        """
        if self._failure_for(request.url.path) is None:
            await asyncio.sleep(self.delay)
        return self.handler(request)


@pytest.fixture
def fake_api():
    return FakePokeAPI()


@pytest.fixture
def http_client(fake_api):
    return httpx.AsyncClient(transport=httpx.MockTransport(fake_api.handler))


@pytest.fixture
def slow_http_client(fake_api):
    return httpx.AsyncClient(transport=httpx.MockTransport(fake_api.slow_handler))


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def make_pokemon():
    """Factory building ``Pokemon`` records without going through PokeAPI."""

    def _make(
        pokemon_id: int,
        name: str,
        types: List[str],
        abilities: Optional[List[str]] = None,
        stats: Optional[List[int]] = None,
    ) -> Pokemon:
        values = stats or [50, 50, 50, 50, 50, 50]
        return Pokemon(
            id=pokemon_id,
            name=name,
            categories=types,
            height=0.7,
            weight=6.9,
            abilities=abilities or [],
            stats=StatBlock(
                hp=values[0],
                attack=values[1],
                defense=values[2],
                special_attack=values[3],
                special_defense=values[4],
                speed=values[5],
            ),
            sprites=Sprites(normal=f"https://img.test/{pokemon_id}.png"),
            search_terms=[name, *types],
        )

    return _make


@pytest.fixture
def sample_pokemon(make_pokemon):
    return [
        make_pokemon(1, "bulbasaur", ["grass", "poison"], ["overgrow", "chlorophyll"],
                     [45, 49, 49, 65, 65, 45]),
        make_pokemon(4, "charmander", ["fire"], ["blaze", "solar-power"],
                     [39, 52, 43, 60, 50, 65]),
        make_pokemon(7, "squirtle", ["water"], ["torrent", "rain-dish"],
                     [44, 48, 65, 50, 64, 43]),
        make_pokemon(25, "pikachu", ["electric"], ["static", "lightning-rod"],
                     [35, 55, 40, 50, 50, 90]),
        make_pokemon(155, "cyndaquil", ["fire"], ["blaze", "flash-fire"],
                     [39, 52, 43, 60, 50, 65]),
        make_pokemon(158, "totodile", ["water"], ["torrent", "sheer-force"],
                     [50, 65, 64, 44, 48, 43]),
    ]
