# pokedex/config.py
"""
Runtime settings, read from the environment (and a ``.env`` file when
present). Every variable is optional; the defaults give an in-memory
cache and progressive loading of all nine generations.
"""

import logging
import os
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

from .catalog.generations import band_for_generation
from .catalog.pokeapi_service import DEFAULT_TIMEOUT, POKEAPI_BASE
from .catalog.record_store import CACHE_NAMESPACE, CACHE_TTL_SECONDS
from .catalog.loader import DEFAULT_BATCH_SIZE
from .catalog.search import DEFAULT_LIMIT, DEFAULT_THRESHOLD


logger = logging.getLogger(__name__)


class Settings(BaseModel):
    api_base: str = POKEAPI_BASE
    http_timeout: float = DEFAULT_TIMEOUT
    # None keeps the durable tier in memory (lost on restart)
    cache_file: Optional[Path] = None
    cache_namespace: str = CACHE_NAMESPACE
    cache_ttl_seconds: float = CACHE_TTL_SECONDS
    cache_max_entries: Optional[int] = None
    search_threshold: float = Field(default=DEFAULT_THRESHOLD, ge=0.0, le=1.0)
    search_limit: int = Field(default=DEFAULT_LIMIT, ge=1)
    autoload_generations: List[int] = Field(default_factory=lambda: list(range(1, 10)))
    load_batch_size: int = Field(default=DEFAULT_BATCH_SIZE, ge=1)
    log_level: str = "INFO"

    @field_validator("autoload_generations")
    @classmethod
    def _known_generations(cls, value: List[int]) -> List[int]:
        # InvalidGeneration is a ValueError, reported as a validation error
        for generation in value:
            band_for_generation(generation)
        return value

    @classmethod
    def from_env(cls) -> "Settings":
        if not load_dotenv():
            logger.debug(".env file not found, using process environment only")

        values = {}
        env_map = {
            "POKEDEX_API_BASE": "api_base",
            "POKEDEX_HTTP_TIMEOUT": "http_timeout",
            "POKEDEX_CACHE_FILE": "cache_file",
            "POKEDEX_CACHE_TTL_SECONDS": "cache_ttl_seconds",
            "POKEDEX_CACHE_MAX_ENTRIES": "cache_max_entries",
            "POKEDEX_SEARCH_THRESHOLD": "search_threshold",
            "POKEDEX_SEARCH_LIMIT": "search_limit",
            "POKEDEX_LOAD_BATCH_SIZE": "load_batch_size",
            "POKEDEX_LOG_LEVEL": "log_level",
        }
        for var, field in env_map.items():
            raw = os.getenv(var)
            if raw:
                values[field] = raw

        generations = os.getenv("POKEDEX_AUTOLOAD_GENERATIONS")
        if generations is not None:
            values["autoload_generations"] = [
                int(g) for g in generations.split(",") if g.strip()
            ]
        return cls(**values)
