"""Title to slug conversion for archive file names and manifest ids."""

from __future__ import annotations

import re
from typing import Iterable

# Accent folding runs before the final strip, otherwise accented letters
# would be deleted instead of transliterated.
_ACCENT_FOLDS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile("[éèêëÊË]", re.IGNORECASE), "e"),
    (re.compile("[àâäÂÄ]", re.IGNORECASE), "a"),
    (re.compile("[îïÎÏ]", re.IGNORECASE), "i"),
    (re.compile("[ûùüÛÜ]", re.IGNORECASE), "u"),
    (re.compile("[ôöÔÖ]", re.IGNORECASE), "o"),
    (re.compile("[ç]", re.IGNORECASE), "c"),
)
_SPACE = re.compile("[ ]")
_DISALLOWED = re.compile("[^a-zA-Z0-9_]")

RESERVED_IDS = frozenset({"cover", "title", "ncx"})


def _fold_to(base: str):
    def _replace(match: re.Match[str]) -> str:
        return base.upper() if match.group(0).isupper() else base

    return _replace


def sanitize(raw_title: str) -> str:
    """Reduce a title to ``[A-Za-z0-9_]*``.

    Accented vowels and cedillas fold to their ASCII base letter, keeping
    the letter case; spaces become underscores; anything else is dropped.

    Examples:
        >>> sanitize("Émile à Paris")
        'Emile_a_Paris'
        >>> sanitize("???")
        ''
    """
    slug = raw_title
    for pattern, base in _ACCENT_FOLDS:
        slug = pattern.sub(_fold_to(base), slug)
    slug = _SPACE.sub("_", slug)
    return _DISALLOWED.sub("", slug)


def unique_slugs(titles: Iterable[str], reserved: Iterable[str] = RESERVED_IDS) -> list[str]:
    """Sanitize titles into slugs that can all live in one archive.

    Each slug is usable as an XML id and a file name: empty results become
    ``chapter_<position>``, a leading digit gets a ``_`` prefix, and clashes
    (case-insensitive) with reserved ids or earlier slugs get a ``_<k>`` suffix.

    Args:
        titles: Raw titles in archive order.
        reserved: Ids already taken by fixed archive entries.

    Returns:
        One slug per title, in the same order.
    """
    taken = {r.lower() for r in reserved}
    return [
        unique_slug(title, taken=taken, fallback=f"chapter_{position}")
        for position, title in enumerate(titles, start=1)
    ]


def unique_slug(title: str, *, taken: set[str], fallback: str) -> str:
    """Sanitize one title into an XML id not yet in ``taken``.

    ``taken`` holds lower-cased ids and is updated with the returned slug.
    """
    base = as_xml_id(sanitize(title), fallback=fallback)
    slug = base
    suffix = 2
    while slug.lower() in taken:
        slug = f"{base}_{suffix}"
        suffix += 1
    taken.add(slug.lower())
    return slug


def as_xml_id(slug: str, *, fallback: str) -> str:
    """Turn a sanitized slug into a valid XML id (non-empty, no leading digit)."""
    if not slug:
        return fallback
    if slug[0].isdigit():
        return f"_{slug}"
    return slug
