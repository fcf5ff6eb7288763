"""
Generation bands.

Each generation owns a contiguous, non-overlapping range of national dex
ids and maps 1:1 to a region. Generation and region are always derived
from the id through this module, never stored on their own.
"""

from typing import List, NamedTuple, Tuple

from .errors import InvalidGeneration


class GenerationBand(NamedTuple):
    generation: int
    region: str
    start: int
    end: int


GENERATION_BANDS: List[GenerationBand] = [
    GenerationBand(1, "kanto", 1, 151),
    GenerationBand(2, "johto", 152, 251),
    GenerationBand(3, "hoenn", 252, 386),
    GenerationBand(4, "sinnoh", 387, 493),
    GenerationBand(5, "unova", 494, 649),
    GenerationBand(6, "kalos", 650, 721),
    GenerationBand(7, "alola", 722, 809),
    GenerationBand(8, "galar", 810, 905),
    GenerationBand(9, "paldea", 906, 1025),
]

REGIONS: Tuple[str, ...] = tuple(band.region for band in GENERATION_BANDS)

# Highest id known to the dataset.
MAX_POKEMON_ID = GENERATION_BANDS[-1].end


def generation_for_id(pokemon_id: int) -> int:
    """Return the generation (1-9) a Pokémon id belongs to.

    Ids past the end of the last band are still counted in the last
    generation so that every issued id resolves to exactly one band.
    """
    if pokemon_id < 1:
        raise ValueError(f"Pokemon id must be positive, got {pokemon_id}")
    for band in GENERATION_BANDS:
        if pokemon_id <= band.end:
            return band.generation
    return GENERATION_BANDS[-1].generation


def region_for_id(pokemon_id: int) -> str:
    return REGIONS[generation_for_id(pokemon_id) - 1]


def band_for_generation(generation: int) -> GenerationBand:
    """Return the band for ``generation`` or raise ``InvalidGeneration``."""
    if not isinstance(generation, int) or not 1 <= generation <= len(GENERATION_BANDS):
        raise InvalidGeneration(generation)
    return GENERATION_BANDS[generation - 1]
