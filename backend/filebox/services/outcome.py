"""Operation outcome returned to the presentation layer instead of raising."""

from __future__ import annotations

from dataclasses import dataclass

from filebox.schemas.files import FileRecord
from filebox.services.errors import FileBoxError


@dataclass(frozen=True)
class Outcome:
    ok: bool
    message: str
    error: FileBoxError | None = None
    record: FileRecord | None = None

    @classmethod
    def success(cls, message: str = "ok", record: FileRecord | None = None) -> "Outcome":
        return cls(ok=True, message=message, record=record)

    @classmethod
    def failure(
        cls,
        message: str,
        error: FileBoxError,
        record: FileRecord | None = None,
    ) -> "Outcome":
        return cls(ok=False, message=message, error=error, record=record)

    def __bool__(self) -> bool:
        return self.ok
