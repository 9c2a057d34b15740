"""FastAPI application entry point."""

from contextlib import asynccontextmanager
import logging

from dotenv import load_dotenv

import aiohttp
from fastapi import FastAPI

# Load environment variables from .env file
load_dotenv()

from canteen_registry import models  # noqa: F401,E402
from canteen_registry.api.errors import setup_exception_handlers  # noqa: E402
from canteen_registry.api.routes import router  # noqa: E402
from canteen_registry.core.cache import TTLCache  # noqa: E402
from canteen_registry.core.config import LOG_FORMAT, settings  # noqa: E402
from canteen_registry.db.init_db import init_db  # noqa: E402
from canteen_registry.services.company_directory import CompanyDirectory  # noqa: E402
from canteen_registry.services.geocoding import Geocoder  # noqa: E402

logging.basicConfig(level=settings.log_level, format=LOG_FORMAT)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables and own the upstream clients and their caches."""
    await init_db()
    async with aiohttp.ClientSession() as http:
        app.state.company_directory = CompanyDirectory(
            http,
            TTLCache(settings.lookup_cache_size, settings.company_cache_ttl_seconds),
        )
        app.state.geocoder = Geocoder(
            http,
            TTLCache(settings.lookup_cache_size, settings.geocoder_cache_ttl_seconds),
        )
        yield


app = FastAPI(title=settings.project_name, lifespan=lifespan)
app.include_router(router, prefix=settings.api_v1_prefix)
setup_exception_handlers(app)


@app.get("/", tags=["root"])
async def root() -> dict[str, str]:
    """Basic sanity endpoint."""
    return {"message": "Canteen Registry API is running"}


@app.get("/health", tags=["health"])
async def health() -> dict[str, str]:
    """Health check endpoint for Docker."""
    return {"status": "healthy"}
