"""
Exceptions raised by the catalogue core.

``NotFound`` and ``UpstreamError`` come out of the PokeAPI client and
travel through the range loader unchanged. ``InvalidGeneration`` is a
caller mistake. ``StorageWriteFailure`` is raised by the durable storage
backends but never leaves the record store, which recovers from it.
"""

from typing import Optional

from ..storage import StorageWriteFailure  # noqa: F401


class CatalogError(Exception):
    """Base class for every catalogue error."""


class NotFound(CatalogError):
    """The remote API has no Pokémon with the requested id."""

    def __init__(self, pokemon_id: int):
        super().__init__(f"Pokemon {pokemon_id} not found")
        self.pokemon_id = pokemon_id


class UpstreamError(CatalogError):
    """Any other failed request or unusable response from the remote API."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class InvalidGeneration(CatalogError, ValueError):
    """A generation index outside 1-9 was requested."""

    def __init__(self, generation: int):
        super().__init__(f"Invalid generation: {generation}")
        self.generation = generation
