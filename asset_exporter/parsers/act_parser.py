# ==============================================================================
# ACT PARSER MODULE
# ==============================================================================
# Decoder for ACT animation files, the companion of SPR sprite sheets.
#
# An ACT file lists actions (walk, attack, ...); each action is a list of
# frames; each frame stacks layers that point at SPR frames with an offset,
# tint, scale and rotation. Later versions append anchors per frame, sound
# event names and a per-action speed after the actions.
#
#   act = ACTParser().load_from_bytes(data)
#   for layer in act.get_frame(0, 0).layers:
#       print(layer.sprite_index, layer.x, layer.y)
#
# Format notes: https://ragnarokresearchlab.github.io/file-formats/act/
# ==============================================================================

import struct
from typing import List, Optional, Tuple
from dataclasses import dataclass, field

from .base_decoder import ByteReader, ResourceDecoder


# ==============================================================================
# CONSTANTS
# ==============================================================================

ACT_SIGNATURE = b"AC"

# Versions that change the layout
V_LAYER_TRANSFORM = (2, 0)   # tint/scale/rotation per layer, frame event id
V_EVENTS = (2, 1)            # sound event table after the actions
V_SPEEDS = (2, 2)            # one speed float per action
V_ANCHORS = (2, 3)           # anchor points per frame
V_SCALE_Y = (2, 4)           # separate vertical scale
V_LAYER_SIZE = (2, 5)        # explicit layer width/height

# Signature, version, action count and 10 reserved bytes
ACT_HEADER_SIZE = 16

# Speed multiplier unit, and the interval used when no speeds are stored
BASE_INTERVAL_MS = 25.0
DEFAULT_INTERVAL_MS = 150.0

MAX_ACTIONS = 200
MAX_FRAMES = 200
MAX_LAYERS = 100
MAX_ANCHORS = 2000


# ==============================================================================
# DATA CLASSES
# ==============================================================================

@dataclass
class ACTLayer:
    """
    One SPR frame placed inside an animation frame.

    Attributes:
        x, y (int): Offset from the frame centre
        sprite_index (int): Frame index inside the SPR file
        sprite_type (int): 0 for indexed frames, 1 for RGBA frames
        color (tuple): RGBA tint
    """
    x: int = 0
    y: int = 0
    sprite_index: int = 0
    mirror: bool = False
    scale_x: float = 1.0
    scale_y: float = 1.0
    rotation: int = 0
    sprite_type: int = 0
    width: int = 0
    height: int = 0
    color: Tuple[int, int, int, int] = (255, 255, 255, 255)


@dataclass
class ACTAnchor:
    x: int = 0
    y: int = 0
    attr: int = 0


@dataclass
class ACTEvent:
    name: str = ""


@dataclass
class ACTFrame:
    """Layers drawn back to front, plus an optional event index (-1 = none)."""
    layers: List[ACTLayer] = field(default_factory=list)
    event_id: int = -1
    anchors: List[ACTAnchor] = field(default_factory=list)
    delay: float = BASE_INTERVAL_MS


@dataclass
class ACTAction:
    frames: List[ACTFrame] = field(default_factory=list)

    def get_frame(self, index: int) -> Optional[ACTFrame]:
        return self.frames[index] if 0 <= index < len(self.frames) else None

    def get_total_duration(self) -> float:
        """Milliseconds needed to play every frame once."""
        return sum(frame.delay for frame in self.frames)


@dataclass
class ACTData:
    """Decoded ACT file; frame_intervals holds one interval per action."""
    version: Tuple[int, int] = (2, 5)
    actions: List[ACTAction] = field(default_factory=list)
    events: List[ACTEvent] = field(default_factory=list)
    frame_intervals: List[float] = field(default_factory=list)

    def get_action(self, index: int) -> Optional[ACTAction]:
        return self.actions[index] if 0 <= index < len(self.actions) else None

    def get_frame(self, action_index: int, frame_index: int) -> Optional[ACTFrame]:
        action = self.get_action(action_index)
        return action.get_frame(frame_index) if action else None


# ==============================================================================
# ACT PARSER
# ==============================================================================

class ACTParser(ResourceDecoder):
    """
    Decoder for ACT animation files.

    A damaged tail ends the action list at the last complete action; a file
    where not even the first action can be read is a decode error.
    """

    name = "action"

    def decode_bytes(self, data: bytes, key: str = "") -> ACTData:
        return self.load_from_bytes(data, key)

    def load_from_bytes(self, data: bytes, key: str = "") -> ACTData:
        """
        Decode an ACT file.

        Args:
            data: File contents
            key: Entry key for error messages

        Returns:
            ACTData with frame delays filled in

        Raises:
            DecodeError: bad header or no readable action
        """
        if len(data) < ACT_HEADER_SIZE:
            raise self.fail("file too small", key)
        if data[:2] != ACT_SIGNATURE:
            raise self.fail(f"invalid ACT signature: {data[:2]!r}", key)

        version = (data[3], data[2])
        if not 1 <= version[0] <= 3:
            raise self.fail(f"unsupported ACT version: {version[0]}.{version[1]}", key)

        action_count = struct.unpack_from('<H', data, 4)[0]
        if action_count > MAX_ACTIONS:
            raise self.fail(f"invalid action count: {action_count}", key)

        act = ACTData(version=version)
        reader = ByteReader(data, ACT_HEADER_SIZE)

        for _ in range(action_count):
            if reader.remaining() <= 0:
                break
            start = reader.offset
            try:
                act.actions.append(self._read_action(reader, version))
            except (struct.error, ValueError):
                reader.offset = start
                break

        if not act.actions:
            raise self.fail("no readable actions", key)

        if version >= V_EVENTS and reader.remaining() >= 4:
            (event_count,) = reader.unpack('I')
            while event_count and reader.remaining() >= 40:
                act.events.append(ACTEvent(name=reader.string(40)))
                event_count -= 1

        self._apply_intervals(act, reader)
        return act

    def _apply_intervals(self, act: ACTData, reader: ByteReader):
        """Set frame_intervals and every frame delay from the speed table."""
        has_speeds = act.version >= V_SPEEDS and reader.remaining() > 0
        speed = 1.0

        for action in act.actions:
            if not has_speeds:
                interval = DEFAULT_INTERVAL_MS
            else:
                # A short table repeats its last speed
                if reader.remaining() >= 4:
                    (speed,) = reader.unpack('f')
                interval = float(speed) * BASE_INTERVAL_MS
                if not interval > 0:
                    interval = BASE_INTERVAL_MS

            act.frame_intervals.append(interval)
            for frame in action.frames:
                frame.delay = interval

    def _read_action(self, reader: ByteReader, version: Tuple[int, int]) -> ACTAction:
        (frame_count,) = reader.unpack('i')
        if not 0 <= frame_count <= MAX_FRAMES:
            raise ValueError(f"bad frame count {frame_count}")
        return ACTAction(frames=[self._read_frame(reader, version) for _ in range(frame_count)])

    def _read_frame(self, reader: ByteReader, version: Tuple[int, int]) -> ACTFrame:
        reader.skip(32)
        (layer_count,) = reader.unpack('i')
        if not 0 <= layer_count <= MAX_LAYERS:
            raise ValueError(f"bad layer count {layer_count}")

        frame = ACTFrame(layers=[self._read_layer(reader, version) for _ in range(layer_count)])

        if version >= V_LAYER_TRANSFORM:
            (frame.event_id,) = reader.unpack('i')

        if version >= V_ANCHORS and reader.remaining() >= 4:
            (anchor_count,) = reader.unpack('I')
            if anchor_count > MAX_ANCHORS:
                anchor_count = 0
            for _ in range(anchor_count):
                if reader.remaining() < 16:
                    break
                _unknown, x, y, attr = reader.unpack('4siii')
                frame.anchors.append(ACTAnchor(x=x, y=y, attr=attr))

        return frame

    def _read_layer(self, reader: ByteReader, version: Tuple[int, int]) -> ACTLayer:
        x, y, sprite_index, mirror = reader.unpack('iiii')
        layer = ACTLayer(x=x, y=y, sprite_index=sprite_index, mirror=mirror != 0)

        if version < V_LAYER_TRANSFORM:
            return layer

        layer.color = reader.unpack('BBBB')
        (layer.scale_x,) = reader.unpack('f')
        if version >= V_SCALE_Y:
            (layer.scale_y,) = reader.unpack('f')
        else:
            layer.scale_y = layer.scale_x
        layer.rotation, layer.sprite_type = reader.unpack('ii')
        if version >= V_LAYER_SIZE:
            layer.width, layer.height = reader.unpack('ii')

        return layer
