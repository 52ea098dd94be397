"""Rendering of the EPUB2 text artifacts from Jinja2 templates.

Manifest, spine, guide and navigation map are all rendered from the same
ordered list of content parts, so they always reference the same ids in the
same order. Book metadata is autoescaped; part bodies are already serialized
XHTML and are inserted as-is.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape

from bookexport.schemas.book import Book

EPUB_TEMPLATES_DIR = Path(__file__).resolve().parents[1] / "templates" / "epub2"

CONTAINER_PATH = "META-INF/container.xml"
PACKAGE_PATH = "OPS/content.opf"
NCX_PATH = "OPS/toc.ncx"
COVER_PATH = "OPS/cover.xhtml"
TITLE_PAGE_PATH = "OPS/title.xhtml"


@dataclass(frozen=True)
class ContentPart:
    """One XHTML page of book text inside the archive."""

    item_id: str
    label: str
    content: str

    @property
    def href(self) -> str:
        return f"{self.item_id}.xhtml"

    @property
    def path(self) -> str:
        return f"OPS/{self.href}"


@lru_cache(maxsize=1)
def _epub_template_env() -> Environment:
    return Environment(
        loader=FileSystemLoader(str(EPUB_TEMPLATES_DIR)),
        autoescape=select_autoescape(
            enabled_extensions=("xml", "xhtml", "opf", "ncx"),
            default_for_string=True,
        ),
        undefined=StrictUndefined,
        trim_blocks=True,
        lstrip_blocks=True,
    )


def _render(template_name: str, **context: object) -> str:
    return _epub_template_env().get_template(template_name).render(**context)


def build_content_parts(book: Book) -> list[ContentPart]:
    """Derive the ordered content parts of a sanitized book.

    In summary mode every chapter is a part; otherwise the whole book is a
    single part named after the book.

    Raises:
        ValueError: If the book (or a chapter in summary mode) has no slug yet.
    """
    if book.is_multi_chapter:
        parts = []
        for chapter in book.chapters:
            if not chapter.slug:
                raise ValueError(f"chapter '{chapter.title}' has no slug")
            parts.append(
                ContentPart(
                    item_id=chapter.slug,
                    label=chapter.display_name,
                    content=chapter.content,
                )
            )
        return parts

    if not book.slug:
        raise ValueError(f"book '{book.title}' has no slug")
    return [ContentPart(item_id=book.slug, label=book.display_name, content=book.content)]


def render_container() -> str:
    return _render("container.xml", package_path=PACKAGE_PATH)


def render_package_document(
    book: Book,
    parts: list[ContentPart],
    *,
    source_url: str,
    publisher: str,
    published_at: str,
) -> str:
    """Render the OPF package document (metadata, manifest, spine, guide)."""
    return _render(
        "content.opf",
        book=book,
        parts=parts,
        source_url=source_url,
        publisher=publisher,
        published_at=published_at,
    )


def render_navigation_map(book: Book, parts: list[ContentPart]) -> str:
    """Render the NCX table of contents; the title page has playOrder 1."""
    return _render("toc.ncx", book=book, parts=parts)


def render_front_page(book: Book) -> str:
    """Render the cover/title page (both pages share this template)."""
    return _render("page.xhtml", book=book)


def render_part(book: Book, part: ContentPart) -> str:
    return _render("part.xhtml", book=book, part=part)
