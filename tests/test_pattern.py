import time

import pytest

from asset_exporter.export.pattern import PatternMatcher, collapse_stars, has_wildcard, matches


@pytest.mark.parametrize("pattern, candidate", [
    ("*", ""),
    ("*", "data/anything.txt"),
    ("a?c", "abc"),
    ("data/*.txt", "data/readme.txt"),
    ("data/*.txt", "data/sub/dir/readme.txt"),
    ("a*b*c", "aXXbYYc"),
    ("a*ab", "aaab"),
    ("*a", "ba"),
    ("a*", "a*b"),
    ("??", "xy"),
    ("*.spr", ".spr"),
])
def test_matches(pattern, candidate):
    assert matches(pattern, candidate)


@pytest.mark.parametrize("pattern, candidate", [
    ("", "a"),
    ("a?c", "ac"),
    ("a*b", "a*c"),
    ("data/*.txt", "data/readme.txt.bak"),
    ("??", "xyz"),
    ("*a", "ab"),
    ("Data/*", "data/x"),
])
def test_does_not_match(pattern, candidate):
    assert not matches(pattern, candidate)


def test_star_backtracks_to_later_occurrence():
    # First ".t" must not pin the star
    assert matches("*.txt", "notes.t.txt")


def test_collapse_stars():
    assert collapse_stars("a***b**") == "a*b*"
    assert PatternMatcher("data/**/x").pattern == "data/*/x"


def test_literal_matcher_compares_exactly():
    matcher = PatternMatcher("data/readme.txt")
    assert matcher.literal
    assert matcher.match("data/readme.txt")
    assert not matcher.match("data/readme.txt2")


def test_has_wildcard():
    assert has_wildcard("a*")
    assert has_wildcard("a?")
    assert not has_wildcard("data/readme.txt")


def test_many_stars_do_not_blow_up():
    pattern = "*" * 200 + "a*" * 50 + "b"
    candidate = "a" * 3000

    start = time.perf_counter()
    assert not matches(pattern, candidate)
    assert not PatternMatcher(pattern).match(candidate)
    assert matches(pattern, candidate + "b")
    assert time.perf_counter() - start < 2.0
