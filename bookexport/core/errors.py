"""Errors raised by the export pipeline.

Each error carries a stable ``code`` that clients can switch on and a readable
``message``; the HTTP status is picked by ``core.exception_handlers``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Optional context returned to the client under ``error.details``."""

    book_slug: str
    part_count: int
    entry_path: str
    error_type: str
    hint: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # str(error) is the message
        super().__init__(self.message)


class ValidationAppError(AppError):
    """The request describes a book that cannot be exported."""


class GenerationAppError(AppError):
    """The EPUB archive could not be produced."""
