import re
import secrets
import string
from typing import Callable, Iterator

SUFFIX_ALPHABET = string.ascii_lowercase + string.digits

SuffixFactory = Callable[[int], str]

# совпадают со статическими путями /documents/...
RESERVED_SLUGS = frozenset({"options"})


def slugify(text: str) -> str:
    """URL-безопасный slug из заголовка"""
    slug = text.lower().strip()
    slug = re.sub(r"[^a-z0-9\s-]", "", slug)
    slug = re.sub(r"[\s_-]+", "-", slug)
    return slug.strip("-")


def random_suffix(length: int) -> str:
    return "".join(secrets.choice(SUFFIX_ALPHABET) for _ in range(length))


def slug_candidates(
    base: str,
    max_attempts: int,
    suffix_length: int,
    suffix_factory: SuffixFactory = random_suffix
) -> Iterator[str]:
    """Сначала сам slug (кроме зарезервированных), затем max_attempts вариантов с суффиксом"""
    if base not in RESERVED_SLUGS:
        yield base
    for _ in range(max_attempts):
        yield f"{base}-{suffix_factory(suffix_length)}"
