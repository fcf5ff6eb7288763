"""
Pydantic schema definitions for the catalog module.

The ``Pokemon`` model is the record handed to the presentation layer:
everything needed to render a card, already normalised from the two
PokeAPI payloads it is assembled from. Records are frozen once built.
Generation, region, primary type, display image and stat total are
computed from the stored fields so they can never disagree with them.

``FilterSpec`` is the user-controlled search/filter/sort tuple driving
the derived view, and ``PaginatedPokemon`` wraps one page of that view
for the HTTP API.
"""

from typing import FrozenSet, List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field
from typing_extensions import Literal

from .generations import generation_for_id, region_for_id


PokemonType = Literal[
    "normal", "fire", "water", "electric", "grass", "ice",
    "fighting", "poison", "ground", "flying", "psychic", "bug",
    "rock", "ghost", "dragon", "dark", "steel", "fairy",
]

LegendaryStatus = Literal["normal", "legendary", "mythical"]

SortField = Literal["id", "name", "stats"]
SortOrder = Literal["asc", "desc"]

DEFAULT_DESCRIPTION = "A mysterious Pokemon with unique characteristics."
DEFAULT_CATEGORY = "Unknown Pokemon"


class StatBlock(BaseModel):
    """The six base stats, each typically in 1-255."""

    model_config = ConfigDict(frozen=True)

    hp: int
    attack: int
    defense: int
    special_attack: int
    special_defense: int
    speed: int

    @computed_field
    @property
    def total(self) -> int:
        return (
            self.hp + self.attack + self.defense
            + self.special_attack + self.special_defense + self.speed
        )


class Sprites(BaseModel):
    model_config = ConfigDict(frozen=True)

    normal: Optional[str] = None
    shiny: Optional[str] = None
    artwork: Optional[str] = None


class Pokemon(BaseModel):
    """A single Pokémon entry.

    ``categories`` holds the type tags in source order without
    duplicates; the first one is the primary type. ``height`` is in
    metres and ``weight`` in kilograms. ``abilities`` keeps the source
    order, the first being the primary ability. ``search_terms`` is a
    hint only: fuzzy search works directly on name, types and abilities.
    """

    model_config = ConfigDict(frozen=True)

    id: int = Field(ge=1)
    name: str
    categories: List[PokemonType] = Field(min_length=1)
    height: float
    weight: float
    abilities: List[str] = Field(default_factory=list)
    stats: StatBlock
    sprites: Sprites = Field(default_factory=Sprites)
    legendary_status: LegendaryStatus = "normal"
    description: str = DEFAULT_DESCRIPTION
    category: str = DEFAULT_CATEGORY
    search_terms: List[str] = Field(default_factory=list)

    @computed_field
    @property
    def primary_category(self) -> str:
        return self.categories[0]

    @computed_field
    @property
    def generation(self) -> int:
        return generation_for_id(self.id)

    @computed_field
    @property
    def region(self) -> str:
        return region_for_id(self.id)

    @computed_field
    @property
    def image_url(self) -> Optional[str]:
        # Official artwork first, plain sprite as fallback.
        return self.sprites.artwork or self.sprites.normal


class FilterSpec(BaseModel):
    """Active search, filter and sort settings.

    Empty ``categories``/``generations`` sets mean "no filter"; a
    non-empty set keeps records matching any member.
    """

    model_config = ConfigDict(frozen=True)

    categories: FrozenSet[PokemonType] = frozenset()
    generations: FrozenSet[int] = frozenset()
    search_query: str = ""
    sort_by: SortField = "id"
    sort_order: SortOrder = "asc"


class PaginatedPokemon(BaseModel):
    """A wrapper for paginated results returned from ``/pokemon`` endpoint."""

    page: int
    page_size: int
    total: int
    total_pages: int
    items: List[Pokemon]


class Siblings(BaseModel):
    """Neighbours of a record inside the current derived view."""

    previous: Optional[Pokemon] = None
    current: Pokemon
    next: Optional[Pokemon] = None


class CacheStats(BaseModel):
    memory_count: int
    durable_count: int
    write_failures: int = 0


class CatalogStatus(BaseModel):
    is_loading: bool
    error: Optional[str] = None
    loaded_count: int
    visible_count: int
