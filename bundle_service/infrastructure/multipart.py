"""
Incremental multipart/form-data reading for uploads.

The request body is fed to python-multipart's push parser only as fast as
the consumer asks for the first part's bytes, so abandoning the part stops
reading the body.
"""

import logging
from collections import deque
from typing import AsyncIterator, Deque, Dict, List, Optional, Tuple

from python_multipart.exceptions import MultipartParseError
from python_multipart.multipart import MultipartParser, parse_options_header

from ..application.domain import UploadPart
from ..application.exceptions import StreamReadError

_HEADERS = "headers"
_DATA = "data"
_END = "end"


def boundary_of(content_type: Optional[str]) -> Optional[bytes]:
    """Returns the boundary of a multipart/form-data content type, if any."""
    if not content_type:
        return None
    media_type, options = parse_options_header(content_type)
    if media_type.strip().lower() != b"multipart/form-data":
        return None
    return options.get(b"boundary") or None


def _decode(value: bytes) -> str:
    try:
        return value.decode("utf-8")
    except UnicodeDecodeError:
        return value.decode("latin-1")


class MultipartReader:
    """Parses a multipart body as it arrives and exposes its first part."""

    def __init__(self, stream: AsyncIterator[bytes], boundary: bytes, chunk_size: int):
        self.logger = logging.getLogger(self.__class__.__name__)
        self.stream = stream
        self.chunk_size = chunk_size
        self.bytes_received = 0

        self._events: Deque[Tuple[str, object]] = deque()
        self._exhausted = False
        self._header_field = b""
        self._header_value = b""
        self._headers: List[Tuple[bytes, bytes]] = []
        self._parser = MultipartParser(
            boundary,
            callbacks={
                "on_part_begin": self._on_part_begin,
                "on_header_field": self._on_header_field,
                "on_header_value": self._on_header_value,
                "on_header_end": self._on_header_end,
                "on_headers_finished": self._on_headers_finished,
                "on_part_data": self._on_part_data,
                "on_part_end": self._on_part_end,
            },
        )

    def _on_part_begin(self):
        self._headers = []

    def _on_header_field(self, data: bytes, start: int, end: int):
        self._header_field += data[start:end]

    def _on_header_value(self, data: bytes, start: int, end: int):
        self._header_value += data[start:end]

    def _on_header_end(self):
        self._headers.append((self._header_field.lower(), self._header_value))
        self._header_field = b""
        self._header_value = b""

    def _on_headers_finished(self):
        self._events.append((_HEADERS, dict(self._headers)))

    def _on_part_data(self, data: bytes, start: int, end: int):
        self._events.append((_DATA, data[start:end]))

    def _on_part_end(self):
        self._events.append((_END, None))

    async def _next_event(self) -> Optional[Tuple[str, object]]:
        while not self._events:
            if self._exhausted:
                return None
            try:
                chunk = await self.stream.__anext__()
            except StopAsyncIteration:
                self._exhausted = True
                chunk = None

            try:
                if chunk is None:
                    self._parser.finalize()
                else:
                    self.bytes_received += len(chunk)
                    self._parser.write(chunk)
            except MultipartParseError as e:
                raise StreamReadError(f"Malformed multipart body: {e}") from e

        return self._events.popleft()

    async def _part_chunks(self) -> AsyncIterator[bytes]:
        while True:
            event = await self._next_event()
            if event is None:
                raise StreamReadError("Request body ended before the part was complete")

            kind, value = event
            if kind == _END:
                return
            if kind == _DATA:
                for start in range(0, len(value), self.chunk_size):
                    yield value[start:start + self.chunk_size]

    def _to_part(self, headers: Dict[bytes, bytes]) -> UploadPart:
        _, options = parse_options_header(headers.get(b"content-disposition", b""))
        filename = options.get(b"filename")
        if filename is None:
            self.logger.debug(f"First part is a plain field: {options.get(b'name')!r}")
            return UploadPart(filename=None, content_type=None, chunks=self._part_chunks())

        content_type = headers.get(b"content-type")
        return UploadPart(
            filename=_decode(filename),
            content_type=content_type.decode("latin-1") if content_type is not None else None,
            chunks=self._part_chunks(),
        )

    async def first_part(self) -> Optional[UploadPart]:
        """
        Reads up to the end of the first part's headers.

        Returns:
            The first part, whose chunks continue reading the body on
            demand, or None if the body holds no part.

        Raises:
            StreamReadError: If the body is not valid multipart.
        """
        while True:
            event = await self._next_event()
            if event is None:
                return None
            kind, value = event
            if kind == _HEADERS:
                return self._to_part(value)
