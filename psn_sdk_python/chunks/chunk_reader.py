"""
ChunkReader - Bounded little-endian reader over PosiStageNet packet bytes.

Every read checks the remaining length of the region the reader was created
for, so a chunk can never consume bytes beyond its parent's declared length.
"""

import struct

from .chunk_header import CHUNK_HEADER_LENGTH, ChunkHeader


class ChunkDecodeError(ValueError):
    """Raised when packet bytes are truncated or otherwise undecodable."""


_UINT64 = struct.Struct("<Q")
_FLOAT32 = struct.Struct("<f")
_VECTOR3 = struct.Struct("<fff")


class ChunkReader:
    """
    Tiny reader for walking a region of a PSN packet.

    Example usage:
        reader = ChunkReader(data)
        header = reader.read_header()
        body = reader.sub_reader(header.data_length)
    """

    def __init__(self, data: bytes, start: int = 0, end: int = None):
        """
        Initialize the reader over data[start:end].

        Args:
            data: Raw bytes from a UDP packet
            start: Offset of the first readable byte
            end: Offset one past the last readable byte (default: end of data)
        """
        self.data = data
        self.i = start
        self.n = len(data) if end is None else end

    @property
    def remaining(self) -> int:
        return self.n - self.i

    def at_end(self) -> bool:
        return self.i >= self.n

    def _require(self, count: int, what: str):
        if self.i + count > self.n:
            raise ChunkDecodeError(f"{what} truncated: need {count} bytes, {self.remaining} left")

    def read_header(self) -> ChunkHeader:
        """Read a 4-byte chunk header."""
        self._require(CHUNK_HEADER_LENGTH, "Chunk header")
        header = ChunkHeader.unpack(self.data, self.i)
        self.i += CHUNK_HEADER_LENGTH
        return header

    def read_bytes(self, count: int) -> bytes:
        self._require(count, "Chunk data")
        val = bytes(self.data[self.i:self.i + count])
        self.i += count
        return val

    def read_uint8(self) -> int:
        self._require(1, "uint8")
        val = self.data[self.i]
        self.i += 1
        return val

    def read_uint64(self) -> int:
        self._require(8, "uint64")
        val = _UINT64.unpack_from(self.data, self.i)[0]
        self.i += 8
        return val

    def read_float32(self) -> float:
        self._require(4, "float32")
        val = _FLOAT32.unpack_from(self.data, self.i)[0]
        self.i += 4
        return val

    def read_vector3(self):
        """Read three little-endian float32 values."""
        self._require(12, "Vector")
        val = _VECTOR3.unpack_from(self.data, self.i)
        self.i += 12
        return val

    def read_string(self, count: int) -> str:
        """Read count bytes of UTF-8 text."""
        return self.read_bytes(count).decode("utf-8", errors="replace")

    def sub_reader(self, count: int) -> "ChunkReader":
        """
        Split off a reader for the next count bytes and skip past them.

        Raises:
            ChunkDecodeError: If the region overruns this reader
        """
        self._require(count, "Chunk body")
        sub = ChunkReader(self.data, self.i, self.i + count)
        self.i += count
        return sub
