"""Datagram formats shared by the file server and the client."""

from __future__ import annotations

import struct
import zlib
from dataclasses import dataclass

BUFFER_SIZE = 1024
HEADER_SIZE = 4 + 2 + 4
DATA_SIZE = BUFFER_SIZE - HEADER_SIZE

# seq_num, size, two bytes of alignment, checksum, payload, trailing alignment
_PACKET = struct.Struct(f"<IHxxI{DATA_SIZE}sxx")
_PACKET_HEADER = 12
PACKET_SIZE = _PACKET.size
_ACK = struct.Struct("<I")
_UINT32_MAX = 0xFFFFFFFF
_UINT16_MAX = 0xFFFF

SYN = b"SYN"
SYN_ACK = b"SYN-ACK"
ACK = b"ACK"
FIN = b"FIN"
ERROR_PREFIX = b"ERROR"
NOT_FOUND = "ERROR: Arquivo não encontrado".encode("utf-8")


def crc32(data: bytes) -> int:
    """Return the standard reflected CRC-32 of ``data``."""
    return zlib.crc32(data) & _UINT32_MAX


@dataclass(frozen=True)
class Packet:
    """One data segment: sequence number, payload size, checksum and payload."""

    seq_num: int
    size: int
    checksum: int
    data: bytes

    def __post_init__(self) -> None:
        if not 0 <= self.seq_num <= _UINT32_MAX:
            raise ValueError(f"sequence number out of range: {self.seq_num}")
        if not 0 <= self.size <= _UINT16_MAX:
            raise ValueError(f"size out of range: {self.size}")
        if not 0 <= self.checksum <= _UINT32_MAX:
            raise ValueError(f"checksum out of range: {self.checksum}")
        if len(self.data) > DATA_SIZE:
            raise ValueError(f"payload longer than {DATA_SIZE} bytes")

    @property
    def is_last(self) -> bool:
        """A payload shorter than a full segment ends the file."""
        return self.size < DATA_SIZE

    def encode(self) -> bytes:
        """Serialise the packet to its fixed-size datagram."""
        return _PACKET.pack(self.seq_num, self.size, self.checksum, self.data)

    @classmethod
    def decode(cls, raw: bytes) -> Packet:
        """Parse a datagram; a short payload area is zero-filled."""
        if len(raw) < _PACKET_HEADER:
            raise ValueError(f"datagram too short for a packet header: {len(raw)} bytes")
        seq_num, size, checksum, payload = _PACKET.unpack(
            raw[:PACKET_SIZE].ljust(PACKET_SIZE, b"\0")
        )
        return cls(seq_num, size, checksum, payload[: min(size, DATA_SIZE)])

    def is_valid(self) -> bool:
        """Check that the payload matches the announced size and checksum."""
        return (
            self.size <= DATA_SIZE
            and len(self.data) == self.size
            and crc32(self.data) == self.checksum
        )


def make_packet(seq_num: int, data: bytes) -> Packet:
    """Build a packet for ``data`` with its size and checksum filled in."""
    if len(data) > DATA_SIZE:
        raise ValueError(f"payload longer than {DATA_SIZE} bytes")
    return Packet(seq_num, len(data), crc32(data), bytes(data))


def encode_ack(seq_num: int) -> bytes:
    """Serialise an acknowledgement of ``seq_num``."""
    if not 0 <= seq_num <= _UINT32_MAX:
        raise ValueError(f"sequence number out of range: {seq_num}")
    return _ACK.pack(seq_num)


def decode_ack(raw: bytes) -> int:
    """Parse an acknowledgement datagram into its sequence number."""
    if len(raw) < _ACK.size:
        raise ValueError(f"acknowledgement too short: {len(raw)} bytes")
    return _ACK.unpack_from(raw)[0]