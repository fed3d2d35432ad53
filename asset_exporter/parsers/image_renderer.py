# ==============================================================================
# IMAGE RENDERER MODULE
# ==============================================================================
# Texture output: turns image-like entries into PNG files.
#
# Renderers:
#   - PillowImageRenderer:  bmp, tga, png, jpg, jpeg -> re-encoded RGBA PNG
#   - SpriteFrameRenderer:  spr -> one PNG per frame
#   - PaletteRenderer:      pal -> 16x16 swatch grid
#   - BundleFrameRenderer:  extensionless sprite stem -> frames of <stem>.spr
#
# Every renderer returns a list of RenderedImage. `frame` is None for
# single-image results and the frame index otherwise, so the caller can name
# files "<id>.png" or "<id>.<frame:03d>.png".
# ==============================================================================

import io
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional

from PIL import Image, UnidentifiedImageError

from ..core.errors import DecodeError
from .pal_parser import PALParser
from .spr_parser import SPRParser, SPRSprite
from .sprite_bundle import bundle_members


@dataclass
class RenderedImage:
    frame: Optional[int]
    png: bytes


def encode_png(image: Image.Image) -> bytes:
    """Encode an image as PNG bytes."""
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


class TextureRenderer(ABC):
    """Renders one entry (key or stem) into PNG images."""

    name = "texture"

    @abstractmethod
    def render(self, archive, key: str) -> List[RenderedImage]:
        """
        Args:
            archive: ArchiveProvider holding the entry
            key: Entry key or sprite stem

        Returns:
            Rendered images (may be empty when nothing is drawable)

        Raises:
            DecodeError: the entry cannot be decoded as an image
        """
        pass


class PillowImageRenderer(TextureRenderer):
    """Decodes common image formats with Pillow and re-encodes them as PNG."""

    name = "image"

    def render(self, archive, key: str) -> List[RenderedImage]:
        data = archive.read_raw_bytes(key)
        try:
            with Image.open(io.BytesIO(data)) as image:
                image.load()
                converted = image.convert("RGBA")
        except (UnidentifiedImageError, OSError, ValueError) as e:
            raise DecodeError(f"image: {e}", key) from e
        return [RenderedImage(frame=None, png=encode_png(converted))]


def render_sprite_frames(sprite: SPRSprite) -> List[RenderedImage]:
    """Render every drawable frame of a sprite."""
    total = sprite.get_total_frames()
    images = []
    for index in range(total):
        image = sprite.get_frame_image(index)
        if image is None:
            continue
        frame = None if total == 1 else index
        images.append(RenderedImage(frame=frame, png=encode_png(image)))
    return images


class SpriteFrameRenderer(TextureRenderer):

    name = "sprite frames"

    def __init__(self):
        self.parser = SPRParser()

    def render(self, archive, key: str) -> List[RenderedImage]:
        return render_sprite_frames(self.parser.decode(archive, key))


class BundleFrameRenderer(TextureRenderer):
    """Frames of the .spr half of a sprite stem."""

    name = "sprite bundle frames"

    def __init__(self):
        self.parser = SPRParser()

    def render(self, archive, key: str) -> List[RenderedImage]:
        spr_key = bundle_members(key)[0]
        if not archive.contains(spr_key):
            raise DecodeError(f"{self.name}: missing companion entry: {spr_key}", key)
        return render_sprite_frames(self.parser.decode(archive, spr_key))


class PaletteRenderer(TextureRenderer):

    name = "palette swatch"

    def __init__(self):
        self.parser = PALParser()

    def render(self, archive, key: str) -> List[RenderedImage]:
        palette = self.parser.decode(archive, key)
        return [RenderedImage(frame=None, png=encode_png(palette.to_image()))]
