"""Resolution of logical bundle names to stored archive keys."""

import logging
from typing import Sequence

from .domain import ArchiveFormat, BundleKey, ObjectStore
from .exceptions import BundleNotFoundError

DETECTION_ORDER = (ArchiveFormat.ZIP, ArchiveFormat.TAR_GZ)


class ArchiveTypeDetector:
    """Finds which container format a bundle was stored in."""

    def __init__(
        self,
        object_store: ObjectStore,
        formats: Sequence[ArchiveFormat] = DETECTION_ORDER,
    ):
        self.logger = logging.getLogger(self.__class__.__name__)
        self.object_store = object_store
        self.formats = tuple(formats)

    async def detect(self, base_name: str) -> BundleKey:
        """
        Probes the object store for each candidate key in priority order.

        The key itself encodes the format, so this is an existence probe
        rather than a content sniff.

        Raises:
            BundleNotFoundError: If no candidate key exists.
        """

        for archive_format in self.formats:
            storage_key = base_name + archive_format.suffix
            if await self.object_store.exists(storage_key):
                self.logger.info(
                    f"Detected {storage_key} for bundle {base_name}"
                )
                return BundleKey(
                    name=base_name,
                    storage_key=storage_key,
                    archive_format=archive_format,
                )

        raise BundleNotFoundError(
            f"No archive found for bundle {base_name!r} "
            f"(tried {', '.join(f.suffix for f in self.formats)})"
        )
