# pokedex/main.py
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from .catalog import catalog_router
from .catalog.services import CatalogServices, build_services
from .config import Settings


logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    services: Optional[CatalogServices] = None,
) -> FastAPI:
    """Build the API with its own catalogue services.

    On startup the configured generations are loaded progressively in
    the background; the catalog is usable (and grows) while that runs.
    """
    settings = settings or Settings.from_env()
    services = services or build_services(settings)

    def _report_population(task: asyncio.Task) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Catalog population failed", exc_info=exc)
            services.state.set_error(f"Catalog population failed: {exc}")

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        task = None
        if settings.autoload_generations:
            task = asyncio.create_task(
                services.progressive.populate(settings.autoload_generations)
            )
            task.add_done_callback(_report_population)
        try:
            yield
        finally:
            if task is not None and not task.done():
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
            await services.aclose()

    app = FastAPI(
        title="Pokédex catalog",
        description=(
            "Browse Pokémon one at a time with fuzzy search, type and "
            "generation filters and sorting, backed by a cached PokeAPI client."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.catalog = services
    app.include_router(catalog_router)

    @app.get("/")
    def health_check():
        state = services.state
        return {
            "status": "ok",
            "loaded": len(state.records),
            "loading": state.is_loading,
        }

    return app


def run() -> None:
    import uvicorn

    settings = Settings.from_env()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(create_app(settings), host="127.0.0.1", port=8000)


if __name__ == "__main__":
    run()
