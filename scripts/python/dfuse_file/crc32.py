# SPDX-License-Identifier: MIT
# Copyright (c) 2026 ADNT Sarl <info@adnt.io>

"""
CRC-32 (ISO HDLC / IEEE 802.3) implementation.

This is the checksum stored in the last four bytes of a DfuSe file
suffix. The running state and the finalized value are kept apart so
that a checksum can be built up over several buffers and finalized once.
"""

# Pre-computed CRC-32 lookup table
_CRC32_TABLE = []

CRC32_INIT = 0xFFFFFFFF


def _init_table():
    """Initialize the CRC-32 lookup table."""
    global _CRC32_TABLE
    poly = 0xEDB88320
    for i in range(256):
        crc = i
        for _ in range(8):
            if crc & 1:
                crc = (crc >> 1) ^ poly
            else:
                crc >>= 1
        _CRC32_TABLE.append(crc)


_init_table()


def crc32_update(state: int, data: bytes) -> int:
    """
    Feed bytes into a running CRC-32 state.

    Args:
        state: Running state (CRC32_INIT for a fresh computation)
        data: Bytes to add

    Returns:
        New running state, without the final XOR applied
    """
    for byte in data:
        state = ((state >> 8) & 0x00FFFFFF) ^ _CRC32_TABLE[(state ^ byte) & 0xFF]
    return state


def crc32_finalize(state: int) -> int:
    """Turn a running state into the CRC-32 value."""
    return state ^ 0xFFFFFFFF


def crc32(data: bytes) -> int:
    """
    Compute CRC-32 (ISO HDLC) checksum.

    Args:
        data: Bytes to compute checksum for

    Returns:
        32-bit CRC value
    """
    return crc32_finalize(crc32_update(CRC32_INIT, data))


class Crc32Accumulator:
    """
    Running CRC-32 over a sequence of writes.

    Example:
        acc = Crc32Accumulator()
        acc.update(header).update(body)
        checksum = acc.value
    """

    def __init__(self):
        self._state = CRC32_INIT

    def update(self, data: bytes) -> "Crc32Accumulator":
        """Add bytes to the checksum."""
        self._state = crc32_update(self._state, data)
        return self

    def reset(self) -> None:
        """Start over from an empty input."""
        self._state = CRC32_INIT

    @property
    def state(self) -> int:
        """Running state, final XOR not applied."""
        return self._state

    @property
    def value(self) -> int:
        """CRC-32 of everything fed so far. More data may still be added."""
        return crc32_finalize(self._state)
