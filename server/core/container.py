"""Dependency injection container for the application."""

from dependency_injector import containers, providers

from core.config import Settings
from core.database import Database
from core.cache import CacheService
from core.cleanup import CleanupService
from models.content import Brand, Category
from services.content import ContentRepository
from services.schema import SchemaCache, SchemaStore
from services.upload import UploadService
from services.user_auth import UserAuthService


class Container(containers.DeclarativeContainer):
    """Application dependency injection container."""

    # Settings
    settings = providers.Singleton(
        Settings,
    )

    database = providers.Singleton(
        Database,
        settings=settings
    )

    # Process-local cache shared by every request thread
    cache = providers.Singleton(
        CacheService,
        default_ttl=settings.provided.schema_cache_ttl
    )

    # Screen schemas
    schema_store = providers.Singleton(
        SchemaStore,
        base_path=settings.provided.schema_base_path
    )

    schema_cache = providers.Singleton(
        SchemaCache,
        store=schema_store,
        cache=cache
    )

    # Content
    category_repository = providers.Factory(
        ContentRepository,
        database=database,
        model=providers.Object(Category)
    )

    brand_repository = providers.Factory(
        ContentRepository,
        database=database,
        model=providers.Object(Brand)
    )

    upload_service = providers.Singleton(
        UploadService,
        upload_dir=settings.provided.upload_dir,
        base_url=settings.provided.base_url
    )

    # Auth
    user_auth_service = providers.Factory(
        UserAuthService,
        database=database,
        settings=settings
    )

    cleanup_service = providers.Singleton(
        CleanupService,
        cache=cache,
        user_auth=user_auth_service,
        interval=settings.provided.schema_cache_sweep_interval
    )


# Global container instance
container = Container()
