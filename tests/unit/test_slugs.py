"""Tests for slug generation."""

from app.domains.documents.slugs import (
    RESERVED_SLUGS, SUFFIX_ALPHABET, random_suffix, slug_candidates, slugify,
)


def test_slugify_lowercases_and_dashes() -> None:
    assert slugify("  Clean Water Act, 2024!  ") == "clean-water-act-2024"
    assert slugify("a  b--c") == "a-b-c"


def test_slugify_can_produce_empty_slug() -> None:
    assert slugify("!!!") == ""


def test_random_suffix_uses_alphabet() -> None:
    suffix = random_suffix(8)

    assert len(suffix) == 8
    assert set(suffix) <= set(SUFFIX_ALPHABET)


def test_candidates_start_with_base_and_are_bounded() -> None:
    suffixes = iter(["aaaa", "bbbb", "cccc"])

    candidates = list(slug_candidates("budget", 3, 4, lambda length: next(suffixes)))

    assert candidates == ["budget", "budget-aaaa", "budget-bbbb", "budget-cccc"]


def test_suffix_length_is_passed_to_factory() -> None:
    lengths = []

    def factory(length: int) -> str:
        lengths.append(length)
        return "x" * length

    list(slug_candidates("budget", 2, 8, factory))

    assert lengths == [8, 8]


def test_reserved_slug_is_never_a_candidate() -> None:
    suffixes = iter(["aaaa", "bbbb"])

    candidates = list(slug_candidates("options", 2, 4, lambda length: next(suffixes)))

    assert candidates == ["options-aaaa", "options-bbbb"]
    assert "options" in RESERVED_SLUGS
