"""ICMP echo packet construction and parsing."""

from __future__ import annotations

import struct
import time
from dataclasses import dataclass, field

ICMP_ECHO_REQUEST = 8
ICMP_ECHO_REPLY = 0
ICMPV6_ECHO_REQUEST = 128
ICMPV6_ECHO_REPLY = 129

_HEADER = struct.Struct(">BBHHH")
_TIMESTAMP = struct.Struct(">Q")
_PAYLOAD_SIZE = 32
_MIN_IPV4_PACKET = 28  # IP header (20) + ICMP header (8)
_MAX_RTT_NS = 5_000_000_000
_LOCALHOST_FALLBACK = 50e-6
_FALLBACK = 100e-6


@dataclass
class IcmpPacket:
    """An ICMP echo packet; ``data`` is the payload after the 8-byte header."""

    icmp_type: int
    code: int = 0
    checksum: int = 0
    id: int = 0
    sequence: int = 0
    data: bytes = field(default=b"")

    @classmethod
    def new_echo_request(cls, id: int, sequence: int, is_ipv6: bool) -> IcmpPacket:
        """Build an echo request whose payload starts with a nanosecond timestamp."""
        icmp_type = ICMPV6_ECHO_REQUEST if is_ipv6 else ICMP_ECHO_REQUEST
        timestamp = _TIMESTAMP.pack(time.time_ns() & 0xFFFF_FFFF_FFFF_FFFF)
        pattern = bytes(range(_TIMESTAMP.size, _PAYLOAD_SIZE))
        return cls(
            icmp_type=icmp_type,
            code=0,
            checksum=0,
            id=id,
            sequence=sequence,
            data=timestamp + pattern,
        )

    def to_bytes(self) -> bytes:
        """Serialize the packet, filling in the checksum."""
        raw = bytearray(_HEADER.pack(self.icmp_type, self.code, 0, self.id, self.sequence))
        raw += self.data
        raw[2:4] = calculate_checksum(raw).to_bytes(2, "big")
        return bytes(raw)

    @classmethod
    def from_bytes(cls, data: bytes, is_ipv6: bool) -> tuple[IcmpPacket, float] | None:
        """Parse an echo reply and its round-trip time in seconds.

        IPv4 input is expected to carry the IP header. Returns None when the
        data is too short or is not an echo reply.
        """
        if len(data) < 8:
            return None

        offset = 0
        if not is_ipv6:
            if len(data) < _MIN_IPV4_PACKET:
                return None
            header_len = (data[0] & 0x0F) * 4
            if len(data) < header_len + 8:
                return None
            offset = header_len

        icmp = bytes(data[offset:])
        if len(icmp) < 8:
            return None

        expected = ICMPV6_ECHO_REPLY if is_ipv6 else ICMP_ECHO_REPLY
        icmp_type, code, checksum, ident, sequence = _HEADER.unpack_from(icmp)
        if icmp_type != expected:
            return None

        payload = icmp[8:]
        packet = cls(
            icmp_type=icmp_type,
            code=code,
            checksum=checksum,
            id=ident,
            sequence=sequence,
            data=payload,
        )
        return packet, _round_trip_time(payload)


def _round_trip_time(payload: bytes) -> float:
    if len(payload) < _TIMESTAMP.size:
        return _FALLBACK
    (sent,) = _TIMESTAMP.unpack_from(payload)
    now = time.time_ns()
    if 0 < sent <= now:
        elapsed = now - sent
        if elapsed < _MAX_RTT_NS:
            return elapsed / 1e9
        return _LOCALHOST_FALLBACK
    return _FALLBACK


def calculate_checksum(data: bytes) -> int:
    """Return the Internet checksum (one's complement sum of 16-bit words)."""
    if len(data) % 2:
        data = bytes(data) + b"\x00"
    total = sum(word for (word,) in struct.iter_unpack(">H", data))
    while total >> 16:
        total = (total & 0xFFFF) + (total >> 16)
    return ~total & 0xFFFF