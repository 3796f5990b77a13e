"""
Dependency Injection container for the bundle service.

This container uses the `dependency-injector` library to wire together all
the components of the application, such as services and infrastructure adapters,
based on the application's configuration.
"""

from dependency_injector import containers, providers

from ..application.cache import RetrievalCache
from ..application.detector import ArchiveTypeDetector
from ..application.domain import *
from ..application.extractor import ArchiveExtractor
from ..application.health import HealthProbe
from ..application.registry import FileTypeRegistry
from ..application.service import IngestionService
from ..application.validator import StreamingValidator
from ..settings import load_settings

from .kv_cache import RedisKeyValueCache
from .object_store import MinioObjectStore
from .relational import SqlAlchemyProbe
from .unpackers import TarCommandUnpacker, TarfileUnpacker, ZipUnpacker


class Container(containers.DeclarativeContainer):
    """DI container for wiring the application components."""

    config = providers.Singleton(load_settings)

    # Shared, long-lived clients, safe for concurrent requests.

    object_store: providers.Singleton[ObjectStore] = providers.Singleton(
        MinioObjectStore,
        endpoint=config.provided.object_store.endpoint,
        access_key=config.provided.object_store.access_key,
        secret_key=config.provided.object_store.secret_key,
        bucket=config.provided.object_store.bucket,
        secure=config.provided.object_store.secure,
    )

    key_value_cache: providers.Singleton[KeyValueCache] = providers.Singleton(
        RedisKeyValueCache,
        url=config.provided.redis.url,
    )

    relational_probe: providers.Singleton[RelationalProbe] = providers.Singleton(
        SqlAlchemyProbe,
        url=config.provided.database.url,
        pool_size=config.provided.database.pool_size,
    )

    # Core components.

    registry = providers.Singleton(FileTypeRegistry.with_builtins)

    validator = providers.Singleton(StreamingValidator)

    retrieval_cache = providers.Singleton(RetrievalCache, backend=key_value_cache)

    detector = providers.Singleton(ArchiveTypeDetector, object_store=object_store)

    tar_unpacker: providers.Selector[Unpacker] = providers.Selector(
        config.provided.extraction.tar_backend,
        command=providers.Singleton(
            TarCommandUnpacker,
            tar_command=config.provided.extraction.tar_command,
        ),
        tarfile=providers.Singleton(TarfileUnpacker),
    )

    unpackers = providers.Dict({
        ArchiveFormat.ZIP: providers.Singleton(
            ZipUnpacker, chunk_size=config.provided.extraction.chunk_size
        ),
        ArchiveFormat.TAR_GZ: tar_unpacker,
    })

    extractor = providers.Singleton(
        ArchiveExtractor,
        object_store=object_store,
        unpackers=unpackers,
    )

    # One instance per process: the single-flight table must be shared.
    ingestion_service = providers.Singleton(
        IngestionService,
        registry=registry,
        validator=validator,
        object_store=object_store,
        detector=detector,
        extractor=extractor,
        cache=retrieval_cache,
        extract_root=config.provided.paths.extract_root,
        cache_ttl_seconds=config.provided.retrieval.cache_ttl_seconds,
        single_flight=config.provided.retrieval.single_flight,
    )

    health_probe = providers.Singleton(
        HealthProbe,
        object_store=object_store,
        relational_probe=relational_probe,
        key_value_cache=key_value_cache,
        cache=retrieval_cache,
        cache_ttl_seconds=config.provided.health.cache_ttl_seconds,
    )
