import re

import pytest

from slugline.services.slugs import (
    SLUG_RE,
    generate_slug,
    is_valid_slug,
    random_suffixed_slug,
    suffixed_slug,
)

FALLBACK_RE = re.compile(r"^post-[0-9a-z]{6}$")


@pytest.mark.parametrize(
    ("title", "expected"),
    [
        ("Hello, World!!", "hello-world"),
        ("My Trip", "my-trip"),
        ("  Leading and trailing  ", "leading-and-trailing"),
        ("snake_case_title", "snake-case-title"),
        ("a -- b", "a-b"),
        ("--Already-Hyphenated--", "already-hyphenated"),
        ("Café au lait", "caf-au-lait"),
        ("2024: A Year", "2024-a-year"),
    ],
)
def test_generate_slug_examples(title: str, expected: str) -> None:
    assert generate_slug(title) == expected


@pytest.mark.parametrize("title", ["", "   ", "!!!", "日本語", None])
def test_generate_slug_falls_back_for_empty_result(title) -> None:
    slug = generate_slug(title)
    assert FALLBACK_RE.fullmatch(slug)


def test_fallback_slugs_are_random() -> None:
    assert len({generate_slug("") for _ in range(20)}) > 1


def test_long_title_breaks_at_word_boundary_after_index_30() -> None:
    title = "The quick brown fox jumps over the lazy dog and keeps on running"
    slug = generate_slug(title)
    assert slug == "the-quick-brown-fox-jumps-over-the-lazy-dog-and"
    assert len(slug) <= 50
    assert SLUG_RE.fullmatch(slug)


def test_long_single_word_is_cut_at_50() -> None:
    slug = generate_slug("a" * 80)
    assert slug == "a" * 50


def test_early_hyphen_is_not_used_as_break_point() -> None:
    title = "short " + "x" * 70
    slug = generate_slug(title)
    assert slug == "short-" + "x" * 44
    assert len(slug) == 50


def test_truncation_strips_trailing_hyphen() -> None:
    title = "x" * 49 + " tail"
    slug = generate_slug(title)
    assert slug == "x" * 49
    assert not slug.endswith("-")


def test_is_valid_slug() -> None:
    assert is_valid_slug("my-trip")
    assert is_valid_slug("a")
    assert not is_valid_slug("")
    assert not is_valid_slug(None)
    assert not is_valid_slug("My-Trip")
    assert not is_valid_slug("my_trip")
    assert not is_valid_slug("a" * 51)


def test_suffixed_slug_keeps_within_limit() -> None:
    assert suffixed_slug("my-trip", 2) == "my-trip-2"
    base = "b" * 50
    assert suffixed_slug(base, 2) == "b" * 48 + "-2"
    assert suffixed_slug(base, 1000) == "b" * 45 + "-1000"


def test_suffixed_slug_strips_hyphen_exposed_by_truncation() -> None:
    base = "a" * 46 + "-bcd"
    assert suffixed_slug(base, 12) == "a" * 46 + "-12"


def test_random_suffixed_slug_is_valid() -> None:
    slug = random_suffixed_slug("c" * 50)
    assert len(slug) == 50
    assert re.fullmatch(r"c{43}-[0-9a-z]{6}", slug)
