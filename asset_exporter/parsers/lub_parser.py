# ==============================================================================
# LUB PARSER MODULE
# ==============================================================================
# Reads the header of compiled Lua chunks (.lub files).
#
# The client ships its item, skill and job tables as precompiled Lua 5.1
# bytecode under data/luafiles514/. Decompiling is out of scope; the decoder
# reports the chunk header and the source name embedded by luac.
#
# Lua 5.1 chunk header (12 bytes):
#   - Signature: ESC "Lua"
#   - Version byte (0x51 = 5.1)
#   - Format byte (0 = official)
#   - Endianness (1 = little endian)
#   - sizeof(int), sizeof(size_t), sizeof(Instruction), sizeof(lua_Number)
#   - Integral flag (0 = floating point numbers)
# Followed by the main function, starting with its source name
# (size_t length, then bytes including a trailing NUL).
# ==============================================================================

import struct
from dataclasses import dataclass

from .base_decoder import ResourceDecoder


LUA_SIGNATURE = b"\x1bLua"
LUA_HEADER_SIZE = 12


@dataclass
class LuaChunkHeader:
    version: str = ""
    format: int = 0
    little_endian: bool = True
    int_size: int = 4
    size_t_size: int = 4
    instruction_size: int = 4
    number_size: int = 8
    integral: bool = False
    source_name: str = ""
    size: int = 0


class LUBParser(ResourceDecoder):
    """Decoder for compiled Lua chunk headers."""

    name = "lua chunk"

    def decode_bytes(self, data: bytes, key: str = "") -> LuaChunkHeader:
        if len(data) < LUA_HEADER_SIZE or data[:4] != LUA_SIGNATURE:
            raise self.fail("not a compiled Lua chunk", key)

        version_byte = data[4]
        header = LuaChunkHeader(
            version=f"{version_byte >> 4}.{version_byte & 0x0F}",
            format=data[5],
            little_endian=data[6] == 1,
            int_size=data[7],
            size_t_size=data[8],
            instruction_size=data[9],
            number_size=data[10],
            integral=data[11] != 0,
            size=len(data),
        )

        # Source name only has a known layout for 5.1 chunks
        size_formats = {4: 'I', 8: 'Q'}
        if version_byte == 0x51 and header.size_t_size in size_formats:
            endian = '<' if header.little_endian else '>'
            fmt = endian + size_formats[header.size_t_size]
            if len(data) >= LUA_HEADER_SIZE + header.size_t_size:
                length = struct.unpack_from(fmt, data, LUA_HEADER_SIZE)[0]
                start = LUA_HEADER_SIZE + header.size_t_size
                raw = data[start:start + length]
                header.source_name = raw.rstrip(b'\x00').decode('utf-8', errors='replace')

        return header
