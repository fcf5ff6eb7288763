"""
Catalog package for the Pokédex API.

This package turns the remote PokeAPI into a locally queryable
collection: a two-tier record cache with a seven-day expiry, a client
assembling records from two dependent requests, concurrent range and
generation loaders, and a query engine applying fuzzy/exact search,
type and generation filters and a stable sort. The router exposes the
resulting view and the filter setters to a front-end.
"""

from .router import router as catalog_router  # noqa: F401
