"""URL slug generation for listing titles."""

import re

_STRIP_PATTERN = re.compile(r"[^\w\s-]")
_SEPARATOR_PATTERN = re.compile(r"[\s_-]+")


def slugify(title: str) -> str:
    """Lowercase, drop punctuation, and join words with single hyphens.

    ``slugify(slugify(x)) == slugify(x)`` for any input.
    """

    slug = title.lower().strip()
    slug = _STRIP_PATTERN.sub("", slug)
    slug = _SEPARATOR_PATTERN.sub("-", slug)
    return slug.strip("-")
