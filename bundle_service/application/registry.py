"""
The table of recognized upload types and their validation rules.
"""

import logging
from typing import Dict, Iterable, List, Optional

from .domain import FileTypeDescriptor

logger = logging.getLogger(__name__)

_MIB = 1024 * 1024

_COMPOUND_EXTENSIONS = ("tar.gz",)

BUILTIN_FILE_TYPES = (
    FileTypeDescriptor(
        name="ZIP",
        extensions=frozenset({"zip"}),
        content_types=frozenset({"application/zip"}),
        magic_numbers=(b"\x50\x4B\x03\x04",),
        max_size_bytes=100 * _MIB,
    ),
    FileTypeDescriptor(
        name="PNG",
        extensions=frozenset({"png"}),
        content_types=frozenset({"image/png"}),
        magic_numbers=(b"\x89\x50\x4E\x47\x0D\x0A\x1A\x0A",),
        max_size_bytes=10 * _MIB,
    ),
    FileTypeDescriptor(
        name="JPEG",
        extensions=frozenset({"jpg", "jpeg"}),
        content_types=frozenset({"image/jpeg"}),
        magic_numbers=(b"\xFF\xD8\xFF\xE0", b"\xFF\xD8\xFF\xE1"),
        max_size_bytes=10 * _MIB,
    ),
)


def extension_of(filename: str) -> str:
    """
    Returns the lowercase extension of a filename without the leading dot.

    A `.tar.gz` suffix is a single composite token, distinct from `gz`.
    A name without a dot has no extension.
    """
    lowered = filename.lower()
    for compound in _COMPOUND_EXTENSIONS:
        if lowered.endswith("." + compound):
            return compound
    stem, dot, extension = lowered.rpartition(".")
    if not dot or not stem:
        return ""
    return extension


class FileTypeRegistry:
    """Descriptors keyed by name, searched in registration order."""

    def __init__(self, descriptors: Iterable[FileTypeDescriptor] = ()):
        self._descriptors: Dict[str, FileTypeDescriptor] = {}
        for descriptor in descriptors:
            self.register(descriptor)

    @classmethod
    def with_builtins(cls) -> "FileTypeRegistry":
        return cls(BUILTIN_FILE_TYPES)

    def register(self, descriptor: FileTypeDescriptor):
        """Adds a descriptor, replacing any existing one with the same name."""
        if descriptor.name in self._descriptors:
            logger.info(f"Replacing file type {descriptor.name}")
        self._descriptors[descriptor.name] = descriptor

    def get(self, name: str) -> Optional[FileTypeDescriptor]:
        return self._descriptors.get(name)

    def names(self) -> List[str]:
        return list(self._descriptors)

    def find_by_extension(self, extension: str) -> Optional[FileTypeDescriptor]:
        """Returns the first descriptor accepting `extension`, or None."""
        extension = extension.lower().lstrip(".")
        for descriptor in self._descriptors.values():
            if descriptor.accepts_extension(extension):
                return descriptor
        return None

    def find_for_filename(self, filename: str) -> Optional[FileTypeDescriptor]:
        return self.find_by_extension(extension_of(filename))
