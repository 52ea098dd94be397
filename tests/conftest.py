"""Pytest configuration and fixtures shared across all test modules.

Environment variables are set before any import that might build the global
settings, so tests never depend on a local .env file.
"""

import os

os.environ.setdefault("APP_ENV", "testing")
os.environ.setdefault("APP_RATE_LIMIT_ENABLED", "true")
os.environ.setdefault("APP_RATE_LIMIT_REQUESTS", "10")
os.environ.setdefault("APP_RATE_LIMIT_WINDOW_MINUTES", "60")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from uuid import UUID  # noqa: E402

import pytest  # noqa: E402

from bookexport.core import rate_limit  # noqa: E402
from bookexport.schemas.book import Book, Chapter  # noqa: E402

BOOK_UUID = UUID("0cc33cbd-94e2-49c1-909a-72ae16bc2658")


@pytest.fixture(autouse=True)
def fresh_rate_limiter(monkeypatch: pytest.MonkeyPatch) -> None:
    """Start every test with empty rate limit counters."""
    monkeypatch.setattr(rate_limit, "_limiter", None)
    monkeypatch.setattr(rate_limit, "_limiter_config", None)


@pytest.fixture
def single_book() -> Book:
    return Book(
        title="Le Petit Prince",
        lang="fr",
        author="Antoine de Saint-Exupéry",
        year="1943",
        uuid=BOOK_UUID,
        content="<p>Lorsque j’avais six ans…</p>",
    )


@pytest.fixture
def summary_book() -> Book:
    return Book(
        title="Les Misérables",
        name="Les Misérables",
        lang="fr",
        author="Victor Hugo",
        translator="",
        illustrator="Émile Bayard",
        uuid=BOOK_UUID,
        summary=True,
        chapters=(
            Chapter(title="Fantine", content="<p>En 1815…</p>"),
            Chapter(title="Cosette", content="<p>Waterloo.</p>"),
            Chapter(title="Marius", name="Tome III : Marius", content="<p>Paris.</p>"),
        ),
    )
