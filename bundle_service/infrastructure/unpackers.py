"""
Infrastructure adapters that unpack archive files into directories.
"""

import asyncio
import logging
import shutil
import tarfile
import zipfile
import zlib
from pathlib import Path, PurePosixPath, PureWindowsPath
from typing import List, Optional

from ..application.domain import ExtractionResult, Unpacker
from ..application.exceptions import ExtractionError


def safe_member_path(output_dir: Path, member_name: str) -> Optional[Path]:
    """
    Resolves an archive member name under `output_dir`.

    Returns None for names that are absolute, carry a drive letter, contain
    a `..` component, or otherwise resolve outside `output_dir`.
    """
    normalized = member_name.replace("\\", "/")
    if normalized.startswith("/") or PureWindowsPath(member_name).drive:
        return None

    parts = [p for p in PurePosixPath(normalized).parts if p not in ("", ".")]
    if not parts or ".." in parts:
        return None

    root = output_dir.resolve()
    target = root.joinpath(*parts)
    if not target.resolve().is_relative_to(root):
        return None
    return target


class ZipUnpacker(Unpacker):
    """Unpacks zip archives entry by entry, skipping entries that fail."""

    def __init__(self, chunk_size: int = 65536):
        self.logger = logging.getLogger(self.__class__.__name__)
        self.chunk_size = chunk_size

    def _write_entry(self, archive: zipfile.ZipFile, info: zipfile.ZipInfo, target: Path):
        target.parent.mkdir(parents=True, exist_ok=True)
        with archive.open(info) as source, open(target, "wb") as destination:
            shutil.copyfileobj(source, destination, self.chunk_size)

    def _blocking_unpack(self, archive_path: Path, output_dir: Path) -> List[str]:
        try:
            archive = zipfile.ZipFile(archive_path)
        except (zipfile.BadZipFile, OSError) as e:
            raise ExtractionError(f"Cannot open zip archive: {e}") from e

        paths = []
        with archive:
            for info in archive.infolist():
                target = safe_member_path(output_dir, info.filename)
                if target is None:
                    self.logger.warning(f"Skipping unsafe entry {info.filename!r}")
                    continue

                try:
                    if info.is_dir():
                        target.mkdir(parents=True, exist_ok=True)
                        continue
                    self._write_entry(archive, info, target)
                except (OSError, zipfile.BadZipFile, zlib.error, EOFError, RuntimeError) as e:
                    # Encrypted entries raise RuntimeError.
                    self.logger.warning(f"Skipping entry {info.filename!r}: {e}")
                    continue

                paths.append(str(target))

        return paths

    async def unpack(self, archive_path: Path, output_dir: Path) -> ExtractionResult:
        """
        Extracts every safe entry, in stored order.

        Entry names are untrusted: traversal and absolute names are skipped.
        Directory entries are created but not listed. A single entry failing
        to read or write is logged and skipped.

        Returns:
            The written file paths, in entry order.

        Raises:
            ExtractionError: If the archive cannot be opened.
        """
        paths = await asyncio.to_thread(self._blocking_unpack, archive_path, output_dir)
        return ExtractionResult.of(*paths)


class TarCommandUnpacker(Unpacker):
    """
    Unpacks tar.gz archives with the system `tar` utility.

    Individual entry outcomes are not observable, so the result is a single
    marker entry: the output directory itself.
    """

    def __init__(self, tar_command: str = "tar"):
        self.logger = logging.getLogger(self.__class__.__name__)
        self.tar_command = tar_command

    async def unpack(self, archive_path: Path, output_dir: Path) -> ExtractionResult:
        try:
            process = await asyncio.create_subprocess_exec(
                self.tar_command,
                "-xzf",
                str(archive_path),
                "-C",
                str(output_dir),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise ExtractionError(f"Cannot run {self.tar_command}: {e}") from e

        _, stderr = await process.communicate()
        if process.returncode != 0:
            message = stderr.decode(errors="replace").strip()
            raise ExtractionError(
                f"{self.tar_command} exited with status {process.returncode}: {message}"
            )

        self.logger.info(f"Unpacked {archive_path.name} with {self.tar_command}")
        return ExtractionResult.of(output_dir)


class TarfileUnpacker(Unpacker):
    """Unpacks tar.gz archives in-process, listing every extracted file."""

    def __init__(self):
        self.logger = logging.getLogger(self.__class__.__name__)

    def _blocking_unpack(self, archive_path: Path, output_dir: Path) -> List[str]:
        paths = []
        try:
            with tarfile.open(archive_path, "r:gz") as archive:
                for member in archive:
                    target = safe_member_path(output_dir, member.name)
                    if target is None:
                        self.logger.warning(f"Skipping unsafe entry {member.name!r}")
                        continue
                    try:
                        archive.extract(member, output_dir, filter="data")
                    except (tarfile.FilterError, tarfile.ExtractError, OSError) as e:
                        self.logger.warning(f"Skipping entry {member.name!r}: {e}")
                        continue
                    if member.isfile():
                        paths.append(str(target))
        except (tarfile.ReadError, EOFError, zlib.error, OSError) as e:
            raise ExtractionError(f"Cannot decompress tar archive: {e}") from e
        return paths

    async def unpack(self, archive_path: Path, output_dir: Path) -> ExtractionResult:
        paths = await asyncio.to_thread(self._blocking_unpack, archive_path, output_dir)
        return ExtractionResult.of(*paths)
