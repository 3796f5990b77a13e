"""Validation of incoming upload streams against a file type descriptor."""

import logging
from typing import AsyncIterable, AsyncIterator, Optional

from .domain import FileTypeDescriptor
from .exceptions import (
    BadSignatureError,
    MissingFilenameError,
    PayloadTooLargeError,
    StreamReadError,
    UnsupportedContentTypeError,
    UnsupportedExtensionError,
)
from .registry import extension_of


async def _read_chunks(chunks: AsyncIterable[bytes]) -> AsyncIterator[bytes]:
    """Yields chunks, translating transport failures into StreamReadError."""
    iterator = chunks.__aiter__()
    while True:
        try:
            chunk = await iterator.__anext__()
        except StopAsyncIteration:
            return
        except Exception as e:
            raise StreamReadError(f"Failed to read chunk: {e}") from e
        yield chunk


class StreamingValidator:
    """Consumes an upload stream, enforcing a descriptor's rules as it goes."""

    def __init__(self):
        self.logger = logging.getLogger(self.__class__.__name__)

    def _check_headers(
        self,
        descriptor: FileTypeDescriptor,
        filename: Optional[str],
        content_type: Optional[str],
    ):
        if not filename:
            raise MissingFilenameError("No filename provided")

        if not descriptor.accepts_extension(extension_of(filename)):
            allowed = sorted(descriptor.extensions)
            self.logger.warning(
                f"Rejected {filename!r}: extension not in {allowed}"
            )
            raise UnsupportedExtensionError(
                f"Invalid file extension. Allowed extensions: {allowed}"
            )

        if not descriptor.accepts_content_type(content_type or ""):
            allowed = sorted(descriptor.content_types)
            self.logger.warning(
                f"Rejected {filename!r}: content type {content_type!r} "
                f"not in {allowed}"
            )
            raise UnsupportedContentTypeError(
                f"Invalid content type. Allowed types: {allowed}"
            )

    def _check_signature(
        self, descriptor: FileTypeDescriptor, filename: str, head: bytes
    ):
        if not descriptor.matches_signature(head):
            self.logger.warning(
                f"Rejected {filename!r}: signature {head[:8].hex()} does not "
                f"match {descriptor.name}"
            )
            raise BadSignatureError(f"Invalid file format for {descriptor.name}")

    async def validate(
        self,
        descriptor: FileTypeDescriptor,
        filename: Optional[str],
        content_type: Optional[str],
        chunks: AsyncIterable[bytes],
    ) -> bytes:
        """
        Validates an upload and returns its assembled bytes.

        Checks run in order and stop at the first failure: filename,
        extension, content type, then (while streaming) the running size and
        the leading signature. The size limit is enforced per chunk, so an
        oversized stream is abandoned without being buffered in full.

        Args:
            descriptor: The rules to validate against.
            filename: The client-supplied filename.
            content_type: The client-declared content type.
            chunks: The body of the upload.

        Returns:
            The complete, validated payload.

        Raises:
            InputError: A subclass naming the rule that was violated.
            StreamReadError: If the underlying stream fails.
        """

        self._check_headers(descriptor, filename, content_type)

        buffer = bytearray()
        signature_pending = bool(descriptor.magic_numbers)

        async for chunk in _read_chunks(chunks):
            if len(buffer) + len(chunk) > descriptor.max_size_bytes:
                self.logger.warning(
                    f"Rejected {filename!r}: exceeds {descriptor.max_size_bytes} bytes"
                )
                raise PayloadTooLargeError(
                    f"File exceeds maximum allowed size of "
                    f"{descriptor.max_size_bytes} bytes"
                )

            buffer.extend(chunk)

            # A short first chunk is held until the signature can be decided.
            if signature_pending and len(buffer) >= descriptor.signature_length:
                self._check_signature(descriptor, filename, bytes(buffer))
                signature_pending = False

        if signature_pending and buffer:
            self._check_signature(descriptor, filename, bytes(buffer))

        self.logger.info(f"Validated {filename!r} ({len(buffer)} bytes)")
        return bytes(buffer)
