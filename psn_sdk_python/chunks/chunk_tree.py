"""
ChunkNode - Untyped PosiStageNet chunk tree and its binary encoding.

Typed chunks (see packet_chunks) convert themselves to ChunkNode trees for
encoding. A node's header states the length of its payload plus every encoded
descendant, so lengths are computed bottom-up before the header is written.
"""

from dataclasses import dataclass, field
from typing import List

from .chunk_header import CHUNK_HEADER_LENGTH, ChunkHeader
from .chunk_reader import ChunkReader, ChunkDecodeError


@dataclass
class ChunkNode:
    """
    One chunk: id, raw payload bytes and ordered sub-chunks.

    A leaf has a payload and no children. A container normally has no payload,
    but both are allowed and written payload-first.
    """

    chunk_id: int
    payload: bytes = b""
    children: List["ChunkNode"] = field(default_factory=list)
    # Kept for opaque chunks whose raw payload already contains sub-chunks
    force_has_children: bool = False

    @property
    def data_length(self) -> int:
        """Bytes following this node's header."""
        return len(self.payload) + sum(c.encoded_length for c in self.children)

    @property
    def encoded_length(self) -> int:
        return CHUNK_HEADER_LENGTH + self.data_length

    @property
    def has_children(self) -> bool:
        return bool(self.children) or self.force_has_children

    @property
    def header(self) -> ChunkHeader:
        return ChunkHeader(self.chunk_id, self.data_length, self.has_children)


def encode_chunk(node: ChunkNode) -> bytes:
    """
    Encode a node and its descendants, depth-first pre-order.

    Raises:
        ValueError: If any node's data length does not fit in 15 bits
    """
    out = bytearray()
    _write_node(out, node)
    return bytes(out)


def _write_node(out: bytearray, node: ChunkNode) -> int:
    # Reserve the header, write the body, then patch the header with the real length
    header_pos = len(out)
    out += b"\x00" * CHUNK_HEADER_LENGTH
    out += node.payload
    for child in node.children:
        _write_node(out, child)
    data_length = len(out) - header_pos - CHUNK_HEADER_LENGTH
    header = ChunkHeader(node.chunk_id, data_length, node.has_children)
    out[header_pos:header_pos + CHUNK_HEADER_LENGTH] = header.pack()
    return data_length


def read_chunk_node(reader: ChunkReader) -> ChunkNode:
    """Read one chunk (and, if flagged, its sub-chunks) using only header flags."""
    header = reader.read_header()
    body = reader.sub_reader(header.data_length)
    if not header.has_children:
        return ChunkNode(header.chunk_id, body.read_bytes(header.data_length))

    node = ChunkNode(header.chunk_id, force_has_children=True)
    while not body.at_end():
        node.children.append(read_chunk_node(body))
    return node


def decode_chunk_tree(data: bytes) -> ChunkNode:
    """
    Decode the first chunk in data as an untyped tree.

    Raises:
        ChunkDecodeError: If the data is empty or truncated
    """
    if not data:
        raise ChunkDecodeError("Empty packet")
    return read_chunk_node(ChunkReader(data))
