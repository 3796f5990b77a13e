"""Tests for the file type registry."""

import pytest

from bundle_service.application.domain import FileTypeDescriptor
from bundle_service.application.registry import FileTypeRegistry, extension_of


@pytest.mark.unit
class TestExtensionOf:
    """Verify extension resolution from filenames."""

    def test_simple_extension_is_lowercased(self):
        assert extension_of("IMG.PNG") == "png"

    def test_last_extension_wins(self):
        assert extension_of("img.png.bak") == "bak"

    def test_tar_gz_is_one_token(self):
        assert extension_of("bundle.TAR.GZ") == "tar.gz"

    def test_plain_gz_stays_gz(self):
        assert extension_of("notes.gz") == "gz"

    def test_no_extension(self):
        assert extension_of("zip") == ""
        assert extension_of(".zip") == ""


@pytest.mark.unit
class TestFileTypeRegistry:
    """Verify lookup and registration of descriptors."""

    def test_builtins_registered_in_order(self):
        registry = FileTypeRegistry.with_builtins()
        assert registry.names() == ["ZIP", "PNG", "JPEG"]

    def test_builtin_zip_rules(self):
        zip_type = FileTypeRegistry.with_builtins().get("ZIP")
        assert zip_type.content_types == {"application/zip"}
        assert zip_type.magic_numbers == (b"PK\x03\x04",)
        assert zip_type.max_size_bytes == 100 * 1024 * 1024

    def test_find_by_extension_is_case_insensitive(self):
        registry = FileTypeRegistry.with_builtins()
        assert registry.find_by_extension("JPEG").name == "JPEG"
        assert registry.find_by_extension("jpg").name == "JPEG"
        assert registry.find_by_extension(".Zip").name == "ZIP"

    def test_find_by_extension_miss(self):
        assert FileTypeRegistry.with_builtins().find_by_extension("exe") is None

    def test_compound_extension_distinct_from_gz(self):
        registry = FileTypeRegistry.with_builtins()
        registry.register(
            FileTypeDescriptor(
                name="TARGZ",
                extensions=frozenset({"tar.gz"}),
                content_types=frozenset({"application/gzip"}),
                magic_numbers=(b"\x1f\x8b",),
                max_size_bytes=1024,
            )
        )
        assert registry.find_for_filename("bundle.tar.gz").name == "TARGZ"
        assert registry.find_by_extension("gz") is None

    def test_register_overwrites_by_name(self):
        registry = FileTypeRegistry.with_builtins()
        smaller = FileTypeDescriptor(
            name="PNG",
            extensions=frozenset({"png"}),
            content_types=frozenset({"image/png"}),
            magic_numbers=(),
            max_size_bytes=10,
        )
        registry.register(smaller)
        assert registry.get("PNG") is smaller
        assert registry.names().count("PNG") == 1
