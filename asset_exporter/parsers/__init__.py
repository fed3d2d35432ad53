# ==============================================================================
# PARSERS MODULE
# ==============================================================================
# This module contains file format decoders for Ragnarok Online asset files.
#
# Supported formats:
#   - SPR: Sprite files (indexed color images with palettes)
#   - ACT: Action files (animation data for sprites)
#   - PAL: Palette files (256-color palettes for recoloring sprites)
#   - GAT: Ground altitude maps
#   - RSW: World resource headers
#   - LUB: Compiled Lua chunk headers
#   - Sprite bundles: an SPR + ACT pair sharing one stem
#
# Additional utilities:
#   - to_json_ready: Decoded objects -> plain JSON values
#   - Texture renderers: PNG output for images, sprites and palettes
#
# These decoders are used by the export dispatcher for structured (JSON) and
# texture (PNG) output.
# ==============================================================================

from .base_decoder import ResourceDecoder, to_json_ready
from .pal_parser import PALParser, Palette
from .spr_parser import SPRParser, SPRSprite, SPRFrame
from .act_parser import ACTParser, ACTData, ACTAction, ACTFrame, ACTLayer
from .gat_parser import GATParser, GATMap
from .rsw_parser import RSWParser, RSWWorld
from .lub_parser import LUBParser, LuaChunkHeader
from .sprite_bundle import SpriteBundleDecoder, SpriteBundle, bundle_members
from .image_renderer import (
    TextureRenderer, RenderedImage, PillowImageRenderer,
    SpriteFrameRenderer, BundleFrameRenderer, PaletteRenderer,
)

__all__ = [
    # Base
    'ResourceDecoder', 'to_json_ready',

    # PAL Parser
    'PALParser', 'Palette',

    # SPR Parser
    'SPRParser', 'SPRSprite', 'SPRFrame',

    # ACT Parser
    'ACTParser', 'ACTData', 'ACTAction', 'ACTFrame', 'ACTLayer',

    # Map data
    'GATParser', 'GATMap',
    'RSWParser', 'RSWWorld',

    # Lua
    'LUBParser', 'LuaChunkHeader',

    # Sprite bundles
    'SpriteBundleDecoder', 'SpriteBundle', 'bundle_members',

    # Texture renderers
    'TextureRenderer', 'RenderedImage', 'PillowImageRenderer',
    'SpriteFrameRenderer', 'BundleFrameRenderer', 'PaletteRenderer',
]
