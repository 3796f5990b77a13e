"""
Pydantic models for the JSON bodies returned by the HTTP API.

These models serve as a strict contract for the responses, keeping the
shape of each endpoint independent of the domain objects behind it.
"""

from typing import List

from pydantic import BaseModel


class UploadResponse(BaseModel):
    """Represents a successfully stored upload."""

    message: str = "File uploaded successfully"
    file_name: str
    size: int


class FileListResponse(BaseModel):
    """
    Represents the extracted contents of a bundle.

    For zip bundles `files` lists every extracted file. For tar.gz bundles
    unpacked by the system utility it holds a single entry, the bundle
    directory.
    """

    bundle: str
    files: List[str]


class ErrorResponse(BaseModel):
    """Represents any rejected or failed request."""

    error: str
