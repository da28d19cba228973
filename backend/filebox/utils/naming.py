"""File naming policy — generated names, extension normalization, kind inference."""

from __future__ import annotations

import mimetypes
import secrets
import string
import time

from filebox.schemas.files import FileKind

CANONICAL_EXTENSIONS = {
    FileKind.IMAGE: "jpg",
    FileKind.DOCUMENT: "pdf",
}

RECOGNIZED_EXTENSIONS = {
    FileKind.IMAGE: frozenset({"jpg", "jpeg", "png", "gif", "webp", "heic", "bmp"}),
    FileKind.DOCUMENT: frozenset({"pdf"}),
}

_TOKEN_ALPHABET = string.ascii_lowercase + string.digits


def extension_of(name: str) -> str:
    """Lower-cased extension without the dot, or "" if there is none."""
    stem, dot, ext = name.rpartition(".")
    if not dot or not stem:
        return ""
    return ext.lower()


def is_recognized(name: str) -> bool:
    ext = extension_of(name)
    return any(ext in exts for exts in RECOGNIZED_EXTENSIONS.values())


def classify(name: str) -> FileKind:
    """Case-insensitive ``.pdf`` suffix is a document, anything else an image."""
    if name.lower().endswith(".pdf"):
        return FileKind.DOCUMENT
    return FileKind.IMAGE


def generate_name(kind: FileKind, now_ms: int | None = None) -> str:
    """Build ``{timestamp}_{token}.{ext}`` for uploads without a desired name."""
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    token = "".join(secrets.choice(_TOKEN_ALPHABET) for _ in range(6))
    return f"{now_ms}_{token}.{CANONICAL_EXTENSIONS[kind]}"


def normalize_name(name: str, kind: FileKind) -> str:
    """Append the canonical extension unless the name already has a recognized one.

    A recognized extension of the other kind is left alone; ``scan.pdf``
    uploaded as an image stays ``scan.pdf``.
    """
    name = name.strip()
    if is_recognized(name):
        return name
    return f"{name}.{CANONICAL_EXTENSIONS[kind]}"


def with_suffix(name: str, n: int) -> str:
    """``photo.jpg`` -> ``photo (n).jpg``."""
    stem, dot, ext = name.rpartition(".")
    if not dot or not stem:
        return f"{name} ({n})"
    return f"{stem} ({n}).{ext}"


def content_type_for(name: str) -> str:
    guessed, _ = mimetypes.guess_type(name)
    return guessed or "application/octet-stream"
