"""
The core application service, containing pure business logic.

This module defines the IngestionService, which validates and stores
uploaded bundles and serves their extracted contents through a
cache-backed retrieval flow.
"""

import asyncio
import logging
from pathlib import Path, PureWindowsPath
from typing import Awaitable, Callable, Dict, Optional

from .cache import RetrievalCache
from .detector import ArchiveTypeDetector
from .domain import *
from .exceptions import (
    CacheError,
    InvalidBundleNameError,
    MissingFileError,
    MissingFilenameError,
    UnsupportedExtensionError,
)
from .extractor import ArchiveExtractor
from .registry import FileTypeRegistry, extension_of
from .validator import StreamingValidator


def validate_bundle_name(name: Optional[str]) -> str:
    """
    Guards a caller-supplied name before it is used as a path component.

    Raises:
        InvalidBundleNameError: If the name is empty, a dot segment, or
                                contains a separator or NUL byte.
    """
    if not name or name in (".", ".."):
        raise InvalidBundleNameError(f"Invalid name: {name!r}")
    if any(c in name for c in ("/", "\\", "\x00")):
        raise InvalidBundleNameError(f"Invalid name: {name!r}")
    return name


class SingleFlight:
    """Coalesces concurrent calls for the same key into one running task."""

    def __init__(self):
        self._inflight: Dict[str, asyncio.Task] = {}

    def _forget(self, key: str, task: asyncio.Task):
        if self._inflight.get(key) is task:
            del self._inflight[key]

    def in_flight(self, key: str) -> bool:
        return key in self._inflight

    async def run(self, key: str, operation: Callable[[], Awaitable]):
        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(operation())
            self._inflight[key] = task
            task.add_done_callback(lambda t: self._forget(key, t))
        # A cancelled caller must not cancel the work other callers share.
        return await asyncio.shield(task)


class IngestionService:
    """Orchestrates uploads into, and retrievals out of, the object store."""

    def __init__(
        self,
        registry: FileTypeRegistry,
        validator: StreamingValidator,
        object_store: ObjectStore,
        detector: ArchiveTypeDetector,
        extractor: ArchiveExtractor,
        cache: RetrievalCache,
        extract_root: str,
        cache_ttl_seconds: int = 3600,
        single_flight: bool = True,
    ):
        self.logger = logging.getLogger(self.__class__.__name__)
        self.registry = registry
        self.validator = validator
        self.object_store = object_store
        self.detector = detector
        self.extractor = extractor
        self.cache = cache
        self.extract_root = Path(extract_root)
        self.cache_ttl_seconds = cache_ttl_seconds
        self.single_flight = SingleFlight() if single_flight else None

    async def upload(self, part: Optional[UploadPart]) -> UploadReceipt:
        """
        Validates the first file part of a request and stores it.

        The object is keyed by the original filename. Any directory part a
        client sends with it (`C:\\uploads\\demo.zip`, `../demo.zip`) is
        dropped first. Validation errors are raised unchanged so the caller
        can report them as-is.

        Args:
            part: The first multipart part, or None if the request had none.

        Returns:
            The stored filename and its size in bytes.

        Raises:
            InputError: If the part is missing or fails validation.
            StorageError: If the object store rejects the upload.
        """

        if part is None:
            self.logger.warning("No file provided in the request")
            raise MissingFileError("No file provided")
        if not part.filename:
            self.logger.warning(
                f"No filename provided. Content-Type: {part.content_type!r}"
            )
            raise MissingFilenameError("No filename provided")

        filename = validate_bundle_name(PureWindowsPath(part.filename).name)
        descriptor = self.registry.find_for_filename(filename)
        if descriptor is None:
            self.logger.warning(f"No file type registered for {filename!r}")
            raise UnsupportedExtensionError(
                f"Unsupported file type: {extension_of(filename) or filename}"
            )

        data = await self.validator.validate(
            descriptor, filename, part.content_type, part.chunks
        )

        await self.object_store.put(filename, data, part.content_type)
        self.logger.info(f"Uploaded {filename} ({len(data)} bytes)")

        return UploadReceipt(filename=filename, size=len(data))

    async def _detect_and_extract(
        self, name: str, local_dir: Path
    ) -> ExtractionResult:
        bundle = await self.detector.detect(name)
        result = await self.extractor.extract(
            bundle.archive_format, bundle.storage_key, local_dir
        )

        try:
            await self.cache.store_result(name, result, self.cache_ttl_seconds)
        except CacheError as e:
            self.logger.error(f"Extracted {name} but could not cache it: {e}")
            raise

        return result

    async def retrieve(self, name: str) -> ExtractionResult:
        """
        Returns the extracted contents of a bundle, extracting on demand.

        A bundle already on disk is served from the cache, and the cache is
        backfilled with the bundle directory on a miss. Otherwise the
        archive is detected, downloaded, extracted and cached. A failed
        extraction leaves its partial output in place, so a retry is served
        as an on-disk bundle.

        Args:
            name: The logical bundle name.

        Returns:
            The extracted paths.

        Raises:
            InvalidBundleNameError: If `name` is unsafe.
            BundleNotFoundError: If no archive exists for `name`.
            ExtractionError: If the archive cannot be unpacked.
            CacheError: If the result cannot be cached.
        """

        name = validate_bundle_name(name)
        local_dir = self.extract_root / name

        if await asyncio.to_thread(local_dir.is_dir):
            cached = await self.cache.get_result(name)
            if cached is not None:
                self.logger.info(f"Serving {name} from cache")
                return cached

            self.logger.info(f"Backfilling cache for on-disk bundle {name}")
            result = ExtractionResult.of(await asyncio.to_thread(local_dir.resolve))
            await self.cache.store_result(name, result, self.cache_ttl_seconds)
            return result

        self.logger.info(f"Bundle {name} is not on disk, extracting")
        if self.single_flight is None:
            return await self._detect_and_extract(name, local_dir)
        return await self.single_flight.run(
            name, lambda: self._detect_and_extract(name, local_dir)
        )
