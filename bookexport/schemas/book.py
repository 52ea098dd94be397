"""Pydantic schemas for the in-memory book model."""

from __future__ import annotations

from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field


class Chapter(BaseModel):
    """One chapter of a book, with its already serialized XHTML body."""

    model_config = ConfigDict(frozen=True)

    title: str = Field(
        ..., description="Page title of the chapter; the archive file name is derived from it."
    )
    name: str | None = Field(
        default=None,
        description="Human-readable chapter label (defaults to the title).",
    )
    content: str = Field(
        default="",
        description="Well-formed XHTML body fragment, inserted verbatim.",
    )
    slug: str | None = Field(
        default=None,
        description="Sanitized title, filled in during export.",
    )

    @property
    def display_name(self) -> str:
        return self.name or self.title


class BookContent(BaseModel):
    """Everything about a book except its page title (the export request body)."""

    model_config = ConfigDict(frozen=True)

    name: str | None = Field(
        default=None,
        description="Human-readable book title (defaults to the page title).",
    )
    lang: str = Field(default="en", description="Language code, e.g. 'fr'.")
    author: str = Field(default="", description="Author, empty when unknown.")
    translator: str = Field(default="", description="Translator, empty when none.")
    illustrator: str = Field(default="", description="Illustrator, empty when none.")
    year: str = Field(default="", description="Original publication year, empty when unknown.")
    uuid: UUID = Field(
        default_factory=uuid4,
        description="Unique identifier of the book (generated when omitted).",
    )
    content: str = Field(
        default="",
        description="XHTML body fragment of the whole book, used outside summary mode.",
    )
    chapters: tuple[Chapter, ...] = Field(
        default=(),
        description="Ordered chapters, used in summary mode.",
    )
    summary: bool = Field(
        default=False,
        description="Summary mode: every chapter becomes its own archive entry.",
    )


class Book(BookContent):
    """A complete book ready to be exported."""

    title: str = Field(
        ..., min_length=1, description="Page title of the book, e.g. 'Le Petit Prince'."
    )
    slug: str | None = Field(
        default=None,
        description="Sanitized title, filled in during export.",
    )

    @property
    def display_name(self) -> str:
        return self.name or self.title

    @property
    def is_multi_chapter(self) -> bool:
        return self.summary and bool(self.chapters)
