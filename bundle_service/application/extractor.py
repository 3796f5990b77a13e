"""Materialization of stored archives into local directories."""

import asyncio
import contextlib
import logging
import uuid
from pathlib import Path, PurePosixPath
from typing import Generator, Mapping

from .domain import ArchiveFormat, ExtractionResult, ObjectStore, Unpacker
from .exceptions import ExtractionError


class ArchiveExtractor:
    """Downloads an archive and hands it to the unpacker for its format."""

    def __init__(
        self,
        object_store: ObjectStore,
        unpackers: Mapping[ArchiveFormat, Unpacker],
    ):
        self.logger = logging.getLogger(self.__class__.__name__)
        self.object_store = object_store
        self.unpackers = dict(unpackers)

    @contextlib.contextmanager
    def _temporary_archive(
        self, output_dir: Path, storage_key: str
    ) -> Generator[Path, None, None]:
        """Provides a unique '.part' path inside `output_dir` and removes it."""
        name = PurePosixPath(storage_key).name
        part_path = output_dir / f".{name}.{uuid.uuid4().hex}.part"
        try:
            yield part_path
        finally:
            try:
                part_path.unlink(missing_ok=True)
            except OSError as e:
                self.logger.warning(
                    f"Could not remove temporary file {part_path}: {e}"
                )

    async def extract(
        self, archive_format: ArchiveFormat, storage_key: str, output_dir: Path
    ) -> ExtractionResult:
        """
        Downloads `storage_key` and unpacks it into `output_dir`.

        The archive is held in memory, written to a temporary file inside
        `output_dir` and unpacked from there. The temporary file is removed
        on every exit path; failing to remove it is only logged.

        Args:
            archive_format: The detected container format.
            storage_key: The object store key of the archive.
            output_dir: Where the contents are materialized.

        Returns:
            The paths produced by the format's unpacker.

        Raises:
            ExtractionError: If the archive cannot be written or unpacked.
            StorageError: If the download fails.
        """

        unpacker = self.unpackers.get(archive_format)
        if unpacker is None:
            raise ExtractionError(f"No unpacker configured for {archive_format.name}")

        try:
            await asyncio.to_thread(output_dir.mkdir, parents=True, exist_ok=True)
        except OSError as e:
            raise ExtractionError(f"Cannot create {output_dir}: {e}") from e

        self.logger.info(f"Downloading {storage_key}...")
        data = await self.object_store.get(storage_key)

        with self._temporary_archive(output_dir, storage_key) as part_path:
            try:
                await asyncio.to_thread(part_path.write_bytes, data)
            except OSError as e:
                raise ExtractionError(
                    f"Cannot write temporary archive {part_path}: {e}"
                ) from e

            self.logger.info(
                f"Unpacking {storage_key} ({len(data)} bytes) into {output_dir}"
            )
            result = await unpacker.unpack(part_path, output_dir)

        self.logger.info(f"Extracted {len(result)} entries from {storage_key}")
        return result
