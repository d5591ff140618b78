"""Short identifiers derived from university titles."""

from __future__ import annotations

import re
import uuid
from itertools import groupby

MAX_INITIALS_LENGTH = 20

_NON_LOWER_ALNUM = re.compile(r"[^a-z0-9]")
_NON_UPPER_ALNUM = re.compile(r"[^A-Z0-9]")


def _letter_run_heads(title: str | None) -> list[str]:
    """Return the first character of each maximal run of Unicode letters."""
    if not title or not title.strip():
        return []
    return [
        next(run)
        for is_letter, run in groupby(title, key=str.isalpha)
        if is_letter
    ]


def random_fallback() -> str:
    """Return 8 random hex characters."""
    return uuid.uuid4().hex[:8]


def generate_id(title: str | None) -> str:
    """Derive a lowercase record id from the first letter of each word.

    Examples:
        >>> generate_id("Hello World 123")
        'hw'
        >>> generate_id("Texas A&M University")
        'tamu'

    Titles without letters (``None``, blank, digits only) fall back to
    :func:`random_fallback`.
    """
    heads = "".join(ch.lower() for ch in _letter_run_heads(title))
    slug = _NON_LOWER_ALNUM.sub("", heads)
    return slug or random_fallback()


def build_initials(title: str | None) -> str:
    """Derive uppercase initials used to name uploaded images.

    Same extraction as :func:`generate_id`, uppercased, restricted to
    ``[A-Z0-9]`` and truncated to 20 characters.
    """
    heads = "".join(ch.upper() for ch in _letter_run_heads(title))
    initials = _NON_UPPER_ALNUM.sub("", heads)[:MAX_INITIALS_LENGTH]
    return initials or random_fallback()
