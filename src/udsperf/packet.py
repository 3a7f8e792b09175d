from __future__ import annotations

import struct
from dataclasses import dataclass

from .constants import HEADER_FORMAT, MAX_MESSAGE_SIZE, UINT32_MAX

HEADER = struct.Struct(HEADER_FORMAT)
HEADER_SIZE = HEADER.size


def fragment_count_for(payload_size: int, max_size: int = MAX_MESSAGE_SIZE) -> int:
    """Number of datagrams used to carry a message of ``payload_size`` bytes.

    Messages that do not fit one datagram are split into ``payload_size // max_size``
    full-size fragments. The remainder is not sent.
    """
    if payload_size <= max_size:
        return 1
    return payload_size // max_size


@dataclass(frozen=True, slots=True)
class PerfTopic:
    payload_size: int
    run: bool
    fragment_count: int = 1

    def to_bytes(self) -> bytes:
        for name in ("payload_size", "fragment_count"):
            value = getattr(self, name)
            if not 0 <= value <= UINT32_MAX:
                raise ValueError(f"{name} out of uint32 range: {value}")
        return HEADER.pack(self.payload_size, int(bool(self.run)), self.fragment_count)

    @staticmethod
    def from_bytes(raw: bytes) -> "PerfTopic":
        if len(raw) < HEADER_SIZE:
            raise ValueError(f"datagram too small to hold a header: {len(raw)} < {HEADER_SIZE}")

        payload_size, run, fragment_count = HEADER.unpack_from(raw)
        if run not in (0, 1):
            raise ValueError(f"invalid run flag: {run}")

        return PerfTopic(payload_size=payload_size, run=bool(run), fragment_count=fragment_count)

    @staticmethod
    def for_payload(payload_size: int, run: bool, max_size: int = MAX_MESSAGE_SIZE) -> "PerfTopic":
        return PerfTopic(
            payload_size=payload_size,
            run=run,
            fragment_count=fragment_count_for(payload_size, max_size),
        )
