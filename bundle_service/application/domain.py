"""
This module defines the core domain models for the application.

These classes represent the pure, technology-agnostic entities and data
structures that the application's business logic operates on, together
with the ports (interfaces) that infrastructure adapters implement.
"""

import dataclasses
import enum
from pathlib import Path

from abc import ABC, abstractmethod
from typing import AsyncIterable, FrozenSet, Optional, Tuple


# --- Domain Models ---

@dataclasses.dataclass(frozen=True)
class FileTypeDescriptor:
    """The validation rule-set for one recognized upload type."""

    name: str
    extensions: FrozenSet[str]
    content_types: FrozenSet[str]
    magic_numbers: Tuple[bytes, ...]
    max_size_bytes: int

    def accepts_extension(self, extension: str) -> bool:
        return extension.lower() in self.extensions

    def accepts_content_type(self, content_type: str) -> bool:
        return content_type.lower() in {ct.lower() for ct in self.content_types}

    def matches_signature(self, data: bytes) -> bool:
        """Any-match on byte prefix. No configured signature always passes."""
        if not self.magic_numbers:
            return True
        return any(data.startswith(magic) for magic in self.magic_numbers)

    @property
    def signature_length(self) -> int:
        return max((len(magic) for magic in self.magic_numbers), default=0)


class ArchiveFormat(enum.Enum):
    """Container formats a bundle may be stored in, in detection order."""

    ZIP = ".zip"
    TAR_GZ = ".tar.gz"

    @property
    def suffix(self) -> str:
        return self.value


@dataclasses.dataclass(frozen=True)
class BundleKey:
    """A logical bundle name resolved to its stored key and format."""

    name: str
    storage_key: str
    archive_format: ArchiveFormat


@dataclasses.dataclass(frozen=True)
class ExtractionResult:
    """Ordered output paths produced by one extraction."""

    paths: Tuple[str, ...]

    @classmethod
    def of(cls, *paths) -> "ExtractionResult":
        return cls(paths=tuple(str(p) for p in paths))

    def __len__(self) -> int:
        return len(self.paths)


@dataclasses.dataclass(frozen=True)
class UploadPart:
    """A single file part of an upload request, with its body unread."""

    filename: Optional[str]
    content_type: Optional[str]
    chunks: AsyncIterable[bytes]


@dataclasses.dataclass(frozen=True)
class UploadReceipt:
    """Outcome of a successful upload."""

    filename: str
    size: int


class HealthScope(enum.Enum):
    """Which dependencies a health check covers."""

    ALL = "all"
    OBJECT_STORE = "s3"
    RELATIONAL_STORE = "postgres"
    KEY_VALUE_STORE = "redis"


@dataclasses.dataclass(frozen=True)
class HealthStatus:
    """Result of a health check: an HTTP-style status code and a message."""

    status_code: int
    message: str

    @property
    def healthy(self) -> bool:
        return self.status_code == 200


# --- Ports (Interfaces) ---

class ObjectStore(ABC):
    """A port for durable, string-keyed object storage."""

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """Returns whether an object is stored under `key`."""
        pass

    @abstractmethod
    async def get(self, key: str) -> bytes:
        """
        Downloads the whole object.
        Raises ObjectNotFoundError if the key does not exist.
        """
        pass

    @abstractmethod
    async def put(self, key: str, data: bytes, content_type: Optional[str] = None):
        """Uploads `data` under `key`, replacing any previous object."""
        pass

    @abstractmethod
    async def ping(self):
        """Performs a cheap round trip. Raises StorageError on failure."""
        pass


class KeyValueCache(ABC):
    """A port for an expiring string key-value cache."""

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        pass

    @abstractmethod
    async def set_expiring(self, key: str, value: str, ttl_seconds: int):
        pass

    @abstractmethod
    async def ping(self):
        """Performs a set/get round trip. Raises CacheError on failure."""
        pass


class RelationalProbe(ABC):
    """A port for a liveness round trip against the relational store."""

    @abstractmethod
    async def probe(self):
        """Raises StorageError if the store is unreachable."""
        pass


class Unpacker(ABC):
    """A port for unpacking one archive file into a directory."""

    @abstractmethod
    async def unpack(self, archive_path: Path, output_dir: Path) -> ExtractionResult:
        """
        Materializes the archive's contents under `output_dir`.
        Raises ExtractionError if the archive cannot be unpacked as a whole.
        """
        pass
