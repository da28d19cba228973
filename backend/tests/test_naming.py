"""Tests for naming policy helpers."""

import re

import pytest

from filebox.schemas.files import FileKind
from filebox.utils import naming


class TestGenerateName:
    def test_image_pattern(self):
        assert re.match(r"^\d+_[a-z0-9]+\.jpg$", naming.generate_name(FileKind.IMAGE))

    def test_document_pattern(self):
        assert re.match(r"^\d+_[a-z0-9]+\.pdf$", naming.generate_name(FileKind.DOCUMENT))

    def test_uses_given_timestamp(self):
        assert naming.generate_name(FileKind.IMAGE, now_ms=1700000000000).startswith("1700000000000_")

    def test_tokens_differ(self):
        names = {naming.generate_name(FileKind.IMAGE, now_ms=1) for _ in range(20)}
        assert len(names) > 1


class TestNormalizeName:
    @pytest.mark.parametrize(
        "name, kind, expected",
        [
            ("vacation", FileKind.IMAGE, "vacation.jpg"),
            ("vacation.jpeg", FileKind.IMAGE, "vacation.jpeg"),
            ("report", FileKind.DOCUMENT, "report.pdf"),
            ("report.pdf", FileKind.DOCUMENT, "report.pdf"),
            ("report.PDF", FileKind.DOCUMENT, "report.PDF"),
            ("photo.png", FileKind.DOCUMENT, "photo.png"),
            ("scan.pdf", FileKind.IMAGE, "scan.pdf"),
            ("v1.2", FileKind.IMAGE, "v1.2.jpg"),
            ("notes.txt", FileKind.DOCUMENT, "notes.txt.pdf"),
        ],
    )
    def test_policy(self, name, kind, expected):
        assert naming.normalize_name(name, kind) == expected

    def test_idempotent(self):
        once = naming.normalize_name("report", FileKind.DOCUMENT)
        assert naming.normalize_name(once, FileKind.DOCUMENT) == once


class TestClassify:
    @pytest.mark.parametrize(
        "name, kind",
        [
            ("a.pdf", FileKind.DOCUMENT),
            ("A.PDF", FileKind.DOCUMENT),
            ("a.jpg", FileKind.IMAGE),
            ("pdf", FileKind.IMAGE),
            ("a.pdf.jpg", FileKind.IMAGE),
        ],
    )
    def test_suffix(self, name, kind):
        assert naming.classify(name) == kind


class TestHelpers:
    def test_extension_of(self):
        assert naming.extension_of("a.JPG") == "jpg"
        assert naming.extension_of("noext") == ""
        assert naming.extension_of(".hidden") == ""

    def test_with_suffix(self):
        assert naming.with_suffix("a.jpg", 2) == "a (2).jpg"
        assert naming.with_suffix("noext", 1) == "noext (1)"

    def test_content_type(self):
        assert naming.content_type_for("a.pdf") == "application/pdf"
        assert naming.content_type_for("a.jpg") == "image/jpeg"
        assert naming.content_type_for("a.unknownext") == "application/octet-stream"
