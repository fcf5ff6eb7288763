"""Tests for generation bands."""

import pytest

from pokedex.catalog.errors import InvalidGeneration
from pokedex.catalog.generations import (
    GENERATION_BANDS,
    MAX_POKEMON_ID,
    band_for_generation,
    generation_for_id,
    region_for_id,
)


class TestGenerationForId:
    @pytest.mark.parametrize(
        "pokemon_id,generation,region",
        [
            (1, 1, "kanto"),
            (151, 1, "kanto"),
            (152, 2, "johto"),
            (251, 2, "johto"),
            (386, 3, "hoenn"),
            (493, 4, "sinnoh"),
            (649, 5, "unova"),
            (721, 6, "kalos"),
            (809, 7, "alola"),
            (905, 8, "galar"),
            (906, 9, "paldea"),
            (1025, 9, "paldea"),
        ],
    )
    def test_band_edges(self, pokemon_id, generation, region):
        assert generation_for_id(pokemon_id) == generation
        assert region_for_id(pokemon_id) == region

    def test_ids_past_last_band_stay_in_last_generation(self):
        assert generation_for_id(MAX_POKEMON_ID + 10) == 9

    def test_non_positive_id_rejected(self):
        with pytest.raises(ValueError):
            generation_for_id(0)


class TestBands:
    def test_bands_are_contiguous_and_cover_every_id(self):
        """Each band starts right after the previous one ends."""
        assert GENERATION_BANDS[0].start == 1
        for previous, band in zip(GENERATION_BANDS, GENERATION_BANDS[1:]):
            assert band.start == previous.end + 1
            assert band.generation == previous.generation + 1

    def test_every_id_maps_back_to_its_band(self):
        for band in GENERATION_BANDS:
            for pokemon_id in (band.start, band.end):
                assert generation_for_id(pokemon_id) == band.generation

    def test_band_for_generation(self):
        band = band_for_generation(2)
        assert (band.start, band.end, band.region) == (152, 251, "johto")

    @pytest.mark.parametrize("generation", [0, 10, -1])
    def test_invalid_generation(self, generation):
        with pytest.raises(InvalidGeneration):
            band_for_generation(generation)
