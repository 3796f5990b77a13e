"""Shared pytest fixtures for the bundle service tests."""

from pathlib import Path

import pytest

from bundle_service.application.cache import RetrievalCache
from bundle_service.application.detector import ArchiveTypeDetector
from bundle_service.application.domain import ArchiveFormat
from bundle_service.application.extractor import ArchiveExtractor
from bundle_service.application.health import HealthProbe
from bundle_service.application.registry import FileTypeRegistry
from bundle_service.application.service import IngestionService
from bundle_service.application.validator import StreamingValidator
from bundle_service.infrastructure.unpackers import TarfileUnpacker, ZipUnpacker

from fakes import FakeKeyValueCache, FakeObjectStore, FakeRelationalProbe


@pytest.fixture
def object_store() -> FakeObjectStore:
    return FakeObjectStore()


@pytest.fixture
def kv_cache() -> FakeKeyValueCache:
    return FakeKeyValueCache()


@pytest.fixture
def relational_probe() -> FakeRelationalProbe:
    return FakeRelationalProbe()


@pytest.fixture
def retrieval_cache(kv_cache) -> RetrievalCache:
    return RetrievalCache(kv_cache)


@pytest.fixture
def extract_root(tmp_path: Path) -> Path:
    return tmp_path / "extracted"


@pytest.fixture
def extractor(object_store) -> ArchiveExtractor:
    return ArchiveExtractor(
        object_store,
        {ArchiveFormat.ZIP: ZipUnpacker(), ArchiveFormat.TAR_GZ: TarfileUnpacker()},
    )


def build_service(object_store, retrieval_cache, extractor, extract_root, single_flight=True):
    return IngestionService(
        registry=FileTypeRegistry.with_builtins(),
        validator=StreamingValidator(),
        object_store=object_store,
        detector=ArchiveTypeDetector(object_store),
        extractor=extractor,
        cache=retrieval_cache,
        extract_root=str(extract_root),
        single_flight=single_flight,
    )


@pytest.fixture
def service(object_store, retrieval_cache, extractor, extract_root) -> IngestionService:
    return build_service(object_store, retrieval_cache, extractor, extract_root)


@pytest.fixture
def health_probe(object_store, relational_probe, kv_cache, retrieval_cache) -> HealthProbe:
    return HealthProbe(object_store, relational_probe, kv_cache, retrieval_cache)
