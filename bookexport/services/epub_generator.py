"""EPUB 2 export of a book.

Turns an in-memory Book into a complete EPUB 2 archive:
1. Sanitize the book and chapter titles into slugs (on a copy of the book)
2. Derive the ordered content parts
3. Render container, package document, navigation map and XHTML pages
4. Package everything into a ZIP whose first entry is ``mimetype``

See http://idpf.org/epub/201 for the format.
"""

from __future__ import annotations

import logging
import zipfile
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable
from urllib.parse import quote

from bookexport.adapters.archive.base import AbstractArchive
from bookexport.adapters.archive.zip_archive import MIMETYPE_PATH, EpubZipArchive
from bookexport.core.config import settings
from bookexport.core.errors import GenerationAppError
from bookexport.schemas.book import Book
from bookexport.services.epub_templates import (
    CONTAINER_PATH,
    COVER_PATH,
    NCX_PATH,
    PACKAGE_PATH,
    TITLE_PAGE_PATH,
    build_content_parts,
    render_container,
    render_front_page,
    render_navigation_map,
    render_package_document,
    render_part,
)
from bookexport.utils.slug import RESERVED_IDS, sanitize, unique_slug, unique_slugs

logger = logging.getLogger(__name__)

EPUB_MIME_TYPE = "application/epub+zip"
EPUB_EXTENSION = "epub"

# Errors the packager may raise; anything else is a bug and propagates as-is.
_PACKAGING_ERRORS = (OSError, ValueError, RuntimeError, MemoryError, zipfile.LargeZipFile)


@dataclass(frozen=True)
class GeneratedFile:
    """An export result ready to be stored or streamed."""

    content: bytes
    mime_type: str
    extension: str
    basename: str

    @property
    def filename(self) -> str:
        return f"{self.basename}.{self.extension}"


def sanitize_book(book: Book) -> Book:
    """Return a copy of ``book`` with slugs set on the book and every chapter.

    Neither the book slug nor any chapter slug collides with the fixed
    ``cover``, ``title`` and ``ncx`` ids.
    """
    book_slug = unique_slug(book.title, taken={r.lower() for r in RESERVED_IDS}, fallback="book")
    chapter_slugs = unique_slugs(chapter.title for chapter in book.chapters)
    chapters = tuple(
        chapter.model_copy(update={"slug": slug})
        for chapter, slug in zip(book.chapters, chapter_slugs)
    )
    return book.model_copy(
        update={
            "slug": book_slug,
            "chapters": chapters,
        }
    )


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Epub2Generator:
    """Build EPUB 2 archives from books.

    The generator holds configuration only; every call gets its own archive,
    so one instance can serve concurrent exports.
    """

    extension = EPUB_EXTENSION
    mime_type = EPUB_MIME_TYPE

    def __init__(
        self,
        *,
        source_url_template: str = "https://{lang}.wikisource.org/wiki/{title}",
        publisher: str = "Wikisource",
        archive_factory: Callable[[], AbstractArchive] = EpubZipArchive,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self._source_url_template = source_url_template
        self._publisher = publisher
        self._archive_factory = archive_factory
        self._clock = clock

    def source_url(self, lang: str, slug: str) -> str:
        """Canonical URL of the book's source page."""
        return self._source_url_template.format(lang=lang, title=quote(slug))

    def create(self, book: Book) -> bytes:
        """Build the archive bytes for ``book``.

        Raises:
            GenerationAppError: If the archive cannot be packaged.
        """
        return self._package(sanitize_book(book))

    def generate(self, book: Book) -> GeneratedFile:
        """Build the archive and describe it (media type, extension, file name).

        Raises:
            GenerationAppError: If the archive cannot be packaged.
        """
        working_copy = sanitize_book(book)
        return GeneratedFile(
            content=self._package(working_copy),
            mime_type=self.mime_type,
            extension=self.extension,
            basename=working_copy.slug or "book",
        )

    def _build_entries(self, book: Book) -> list[tuple[str, str]]:
        parts = build_content_parts(book)
        published_at = self._clock().strftime("%Y-%m-%dT%H:%M:%SZ")
        front_page = render_front_page(book)

        entries = [
            (MIMETYPE_PATH, EPUB_MIME_TYPE),
            (CONTAINER_PATH, render_container()),
            (
                PACKAGE_PATH,
                render_package_document(
                    book,
                    parts,
                    source_url=self.source_url(book.lang, sanitize(book.title)),
                    publisher=self._publisher,
                    published_at=published_at,
                ),
            ),
            (NCX_PATH, render_navigation_map(book, parts)),
            (COVER_PATH, front_page),
            (TITLE_PAGE_PATH, front_page),
        ]
        entries.extend((part.path, render_part(book, part)) for part in parts)
        return entries

    def _package(self, book: Book) -> bytes:
        entries = self._build_entries(book)

        logger.info(
            "epub.generate.start",
            extra={
                "book_slug": book.slug,
                "multi_chapter": book.is_multi_chapter,
                "entry_count": len(entries),
            },
        )

        archive = self._archive_factory()
        try:
            for path, text in entries:
                archive.add_entry(path, text.encode("utf-8"))
            data = archive.finalize()
        except _PACKAGING_ERRORS as exc:
            archive.abort()
            logger.error(
                "epub.generate.failed",
                extra={
                    "book_slug": book.slug,
                    "error_type": type(exc).__name__,
                    "error_msg": str(exc),
                },
            )
            raise GenerationAppError(
                code="epub_generation_failed",
                message="The EPUB file could not be generated.",
                details={"book_slug": book.slug or "", "error_type": type(exc).__name__},
            ) from exc

        logger.info(
            "epub.generate.success",
            extra={
                "book_slug": book.slug,
                "entry_count": len(entries),
                "size_bytes": len(data),
            },
        )
        return data


def create_epub_generator() -> Epub2Generator:
    """Generator configured from application settings."""
    return Epub2Generator(
        source_url_template=settings.export.source_url_template,
        publisher=settings.export.publisher,
    )


def generate_epub(book: Book) -> GeneratedFile:
    """Export ``book`` as an EPUB 2 file using the configured generator."""
    return create_epub_generator().generate(book)
