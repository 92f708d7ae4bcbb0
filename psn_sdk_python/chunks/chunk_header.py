"""
ChunkHeader - The 4-byte header that starts every PosiStageNet chunk.

The header is a single little-endian 32-bit word:
    bits 0-15   chunk id
    bits 16-30  data length (bytes of payload and sub-chunks, excluding this header)
    bit 31      has-sub-chunks flag
"""

import struct
from typing import NamedTuple


CHUNK_HEADER_LENGTH = 4
MAX_DATA_LENGTH = 0x7FFF

_HEADER_STRUCT = struct.Struct("<I")


class ChunkHeader(NamedTuple):
    """Decoded chunk header."""

    chunk_id: int
    data_length: int
    has_children: bool

    def to_uint32(self) -> int:
        """Pack the header fields into a single 32-bit word."""
        if not 0 <= self.chunk_id <= 0xFFFF:
            raise ValueError(f"Chunk id must be in range 0-65535, got {self.chunk_id}")
        if not 0 <= self.data_length <= MAX_DATA_LENGTH:
            raise ValueError(
                f"Chunk data length must be in range 0-{MAX_DATA_LENGTH}, got {self.data_length}")
        return self.chunk_id | (self.data_length << 16) | ((1 << 31) if self.has_children else 0)

    @classmethod
    def from_uint32(cls, value: int) -> "ChunkHeader":
        return cls(value & 0xFFFF, (value >> 16) & MAX_DATA_LENGTH, bool(value & 0x80000000))

    def pack(self) -> bytes:
        return _HEADER_STRUCT.pack(self.to_uint32())

    @classmethod
    def unpack(cls, data: bytes, offset: int = 0) -> "ChunkHeader":
        """
        Decode a header from 4 bytes of data.

        Raises:
            ValueError: If fewer than 4 bytes are available at offset
        """
        if len(data) - offset < CHUNK_HEADER_LENGTH:
            raise ValueError("Chunk header truncated")
        return cls.from_uint32(_HEADER_STRUCT.unpack_from(data, offset)[0])
