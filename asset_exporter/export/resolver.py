# ==============================================================================
# ASSET RESOLVER MODULE
# ==============================================================================
# Expands a script pattern into the archive entries it names.
#
#   - A pattern without wildcards names exactly one entry: itself. Whether
#     it exists is only checked when the entry is exported. An extensionless
#     literal that is not a key is made of its grouped keys, if any.
#   - A wildcard pattern is matched against every archive key.
#
# Grouped suffixes: some formats are split over several entries that share
# a stem (a sprite's "poring.spr" and "poring.act"). During wildcard
# matching such keys are compared by their stem, and all keys of one stem
# resolve to a single entry whose identifier is the extensionless stem.
# A pattern ending in a grouped suffix ("data/sprite/*.spr") is matched by
# stem as well, and only against grouped keys.
#
# Results keep archive key order; each stem appears once, at the position
# of its first key.
# ==============================================================================

from collections import OrderedDict
from dataclasses import dataclass
from typing import List, Sequence, Tuple

from ..core.errors import ResolutionMiss
from .pattern import PatternMatcher, has_wildcard


DEFAULT_GROUPED_SUFFIXES = ("spr", "act")


@dataclass(frozen=True)
class ResolvedEntry:
    """
    One exportable entry.

    Attributes:
        identifier (str):       Archive key, or a stem for grouped keys
        pattern (str):          The script pattern that produced it
        members (Tuple[str]):   Archive keys that make up the entry
    """
    identifier: str
    pattern: str
    members: Tuple[str, ...]


def split_extension(key: str) -> Tuple[str, str]:
    """
    Split the extension off the final path component.

    Returns:
        (stem, extension) with the extension lower-cased and without its dot;
        ("data/readme", "") when there is none
    """
    slash = key.rfind('/')
    dot = key.rfind('.')
    if dot <= slash + 1:
        return key, ""
    return key[:dot], key[dot + 1:].lower()


class AssetResolver:
    """
    Resolves patterns against an archive key set.

    Attributes:
        grouped_suffixes (Tuple[str]): Lower-case suffixes folded into stems
    """

    def __init__(self, grouped_suffixes: Sequence[str] = DEFAULT_GROUPED_SUFFIXES):
        self.grouped_suffixes = tuple(s.lower().lstrip('.') for s in grouped_suffixes)

    def canonical(self, key: str) -> Tuple[str, bool]:
        """
        Canonical form of a key or pattern.

        Returns:
            (form, grouped): the stem and True for grouped suffixes,
            otherwise the key unchanged and False
        """
        stem, extension = split_extension(key)
        if extension and extension in self.grouped_suffixes:
            return stem, True
        return key, False

    def resolve(self, pattern: str, keys: Sequence[str]) -> List[ResolvedEntry]:
        """
        Expand a pattern.

        Args:
            pattern: Normalized script pattern
            keys: Archive key set, in iteration order

        Returns:
            Resolved entries (exactly one for a literal pattern)

        Raises:
            ResolutionMiss: a wildcard pattern matched nothing
        """
        if not has_wildcard(pattern):
            members = self._literal_members(pattern, keys)
            return [ResolvedEntry(identifier=pattern, pattern=pattern, members=members)]

        pattern_form, pattern_grouped = self.canonical(pattern)
        matcher = PatternMatcher(pattern_form)

        found: "OrderedDict[str, List[str]]" = OrderedDict()
        for key in keys:
            form, grouped = self.canonical(key)
            if pattern_grouped and not grouped:
                continue
            if matcher.match(form):
                found.setdefault(form, []).append(key)

        if not found:
            raise ResolutionMiss(pattern)

        return [
            ResolvedEntry(identifier=form, pattern=pattern, members=tuple(members))
            for form, members in found.items()
        ]

    def _literal_members(self, pattern: str, keys: Sequence[str]) -> Tuple[str, ...]:
        """
        Archive keys behind a literal pattern.

        An extensionless literal that is not itself a key stands for its
        grouped keys ("poring" -> "poring.spr", "poring.act"), in key order.
        Anything else is its own single member.
        """
        if split_extension(pattern)[1]:
            return (pattern,)

        grouped = {f"{pattern}.{suffix}" for suffix in self.grouped_suffixes}
        members = []
        for key in keys:
            if key == pattern:
                return (pattern,)
            if key in grouped:
                members.append(key)
        return tuple(members) or (pattern,)
