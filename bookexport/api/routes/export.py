from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response

from bookexport.core.rate_limit import enforce_rate_limit
from bookexport.schemas.book import Book, BookContent
from bookexport.services.epub_generator import EPUB_MIME_TYPE, generate_epub

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Export"])


@router.post(
    "/export",
    response_class=Response,
    dependencies=[Depends(enforce_rate_limit)],
    responses={
        200: {
            "content": {EPUB_MIME_TYPE: {}},
            "description": "The book as an EPUB 2 file.",
        },
        429: {"description": "Too many exports from this client; see Retry-After."},
    },
)
async def export_book(
    page: Annotated[
        str,
        Query(min_length=1, description="Page title of the book, e.g. 'Le Petit Prince'."),
    ],
    book_content: BookContent,
) -> Response:
    """Export a book as an EPUB 2 file.

    The book text is posted as JSON (metadata plus either the whole book body
    or, in summary mode, one body per chapter); ``page`` names the book and
    determines the file name.

    Returns:
        Response: The archive bytes with an attachment Content-Disposition.

    Raises:
        GenerationAppError: If the archive cannot be built (rendered as 500).
    """
    book = Book(title=page, **dict(book_content))
    generated = generate_epub(book)

    logger.info(
        "export.success",
        extra={
            "book_slug": generated.basename,
            "size_bytes": len(generated.content),
            "chapter_count": len(book.chapters),
        },
    )

    return Response(
        content=generated.content,
        media_type=generated.mime_type,
        headers={"Content-Disposition": f'attachment; filename="{generated.filename}"'},
    )
