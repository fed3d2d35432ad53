# ==============================================================================
# PATTERN MATCHER MODULE
# ==============================================================================
# Shell-style wildcard matching of archive keys.
#
#   *   any run of characters, including none (path separators included)
#   ?   exactly one character
#
# Every other character matches itself, case-sensitively. Patterns are
# anchored at both ends. There are no character classes and no escapes.
#
# The matcher is the iterative two-pointer algorithm with a single backtrack
# point: when a literal fails after a '*', retry with the '*' consuming one
# more character. Worst case O(len(pattern) * len(candidate)), no recursion.
#
# Usage:
#   matches("data/*.pal", "data/a.pal")          -> True
#   matcher = PatternMatcher("data/sprite/??.spr")
#   hits = [k for k in keys if matcher.match(k)]
# ==============================================================================

WILDCARD_ANY = '*'
WILDCARD_ONE = '?'


def has_wildcard(text: str) -> bool:
    """Check if text contains '*' or '?'."""
    return WILDCARD_ANY in text or WILDCARD_ONE in text


def collapse_stars(pattern: str) -> str:
    """Replace runs of '*' with a single '*' (they are equivalent)."""
    out = []
    for ch in pattern:
        if ch == WILDCARD_ANY and out and out[-1] == WILDCARD_ANY:
            continue
        out.append(ch)
    return ''.join(out)


def matches(pattern: str, candidate: str) -> bool:
    """
    Test a candidate against a wildcard pattern.

    Args:
        pattern: Pattern with optional '*' and '?'
        candidate: String to test

    Returns:
        True if the whole candidate matches the whole pattern
    """
    p = 0
    c = 0
    star = -1
    star_match = 0
    p_len = len(pattern)
    c_len = len(candidate)

    while c < c_len:
        if p < p_len and pattern[p] == WILDCARD_ANY:
            # Remember the star; first try matching it against nothing
            star = p
            star_match = c
            p += 1
        elif p < p_len and (pattern[p] == WILDCARD_ONE or pattern[p] == candidate[c]):
            p += 1
            c += 1
        elif star != -1:
            # Backtrack: let the last star swallow one more character
            p = star + 1
            star_match += 1
            c = star_match
        else:
            return False

    # Only trailing stars may remain
    while p < p_len and pattern[p] == WILDCARD_ANY:
        p += 1

    return p == p_len


class PatternMatcher:
    """
    One pattern, prepared for matching many candidates.

    Attributes:
        pattern (str): The pattern with consecutive '*' collapsed
        literal (bool): True when the pattern has no wildcard
    """

    def __init__(self, pattern: str):
        self.pattern = collapse_stars(pattern)
        self.literal = not has_wildcard(self.pattern)

    def match(self, candidate: str) -> bool:
        if self.literal:
            return self.pattern == candidate
        return matches(self.pattern, candidate)

    def __repr__(self):
        return f"PatternMatcher({self.pattern!r})"
