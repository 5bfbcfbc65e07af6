from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from app.api.errors import register_exception_handlers
from app.api.main import api_router
from app.services.ai.factory import ProviderFactory
from app.services.ai.generator import ProfileGenerator
from app.services.supabase.client import SupabaseClient
from app.services.supabase.profiles import SupabaseProfileStore
from app.services.supabase.storage import SupabasePhotoStorage

from .config import settings
from .version import __version__


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Build the provider registry and storage clients, and share them through app.state.
    """
    supabase = SupabaseClient(
        settings.SUPABASE_URL,
        settings.SUPABASE_SERVICE_ROLE_KEY,
        timeout=settings.SUPABASE_TIMEOUT_SECONDS,
        max_retries=settings.SUPABASE_MAX_RETRIES,
    )
    provider_factory = ProviderFactory.from_settings(settings)
    photo_storage = SupabasePhotoStorage(supabase, settings.SUPABASE_STORAGE_BUCKET)
    profile_store = SupabaseProfileStore(supabase, settings.SUPABASE_PROFILES_TABLE)

    app.state.provider_factory = provider_factory
    app.state.photo_storage = photo_storage
    app.state.profile_generator = ProfileGenerator(provider_factory, profile_store, photo_storage)
    logger.info(f"Double API ready with providers: {provider_factory.get_available_providers() or 'none'}")

    yield
    try:
        await supabase.close()
        logger.info("Supabase client closed")
    except Exception as exc:
        logger.warning(f"Failed to close Supabase client: {exc}")


app = FastAPI(
    title="Double",
    description="AI profile generation API for the Double student matching app",
    version=__version__,
    lifespan=lifespan,
    docs_url=None if settings.APP_ENV != "development" else "/docs",
    redoc_url=None if settings.APP_ENV != "development" else "/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)
app.include_router(api_router)
