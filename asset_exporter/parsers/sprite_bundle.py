# ==============================================================================
# SPRITE BUNDLE MODULE
# ==============================================================================
# A sprite is stored as two entries sharing one stem:
#   data/sprite/monster/poring.spr   (frames + palette)
#   data/sprite/monster/poring.act   (animations referencing the frames)
#
# Wildcard resolution folds both into the extensionless stem
# "data/sprite/monster/poring"; this decoder loads the pair back.
# Both halves are required: a stem missing either companion is a decode
# error for that entry only.
# ==============================================================================

from dataclasses import dataclass
from typing import List, Sequence

from .base_decoder import ResourceDecoder
from .spr_parser import SPRParser, SPRSprite
from .act_parser import ACTParser, ACTData


# Suffixes of the two halves, in load order
BUNDLE_SUFFIXES = ("spr", "act")


@dataclass
class SpriteBundle:
    """
    A sprite with its animation data.

    Attributes:
        stem (str):        Logical name shared by both entries
        sprite (SPRSprite):
        action (ACTData):
    """
    stem: str
    sprite: SPRSprite
    action: ACTData


def bundle_members(stem: str, suffixes: Sequence[str] = BUNDLE_SUFFIXES) -> List[str]:
    """Entry keys making up a stem: "<stem>.spr", "<stem>.act"."""
    return [f"{stem}.{suffix}" for suffix in suffixes]


class SpriteBundleDecoder(ResourceDecoder):
    """Decodes an extensionless stem into its SPR + ACT pair."""

    name = "sprite bundle"

    def __init__(self):
        self.spr_parser = SPRParser()
        self.act_parser = ACTParser()

    def decode(self, archive, key: str) -> SpriteBundle:
        spr_key, act_key = bundle_members(key)

        missing = [k for k in (spr_key, act_key) if not archive.contains(k)]
        if missing:
            raise self.fail(f"missing companion entry: {', '.join(missing)}", key)

        sprite = self.spr_parser.decode(archive, spr_key)
        action = self.act_parser.decode(archive, act_key)
        return SpriteBundle(stem=key, sprite=sprite, action=action)

    def decode_bytes(self, data: bytes, key: str = ""):
        raise self.fail("a sprite bundle is decoded from two entries, not one", key)
