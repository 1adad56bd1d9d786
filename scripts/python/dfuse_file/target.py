# SPDX-License-Identifier: MIT
# Copyright (c) 2026 ADNT Sarl <info@adnt.io>

"""
Target records: one contiguous memory range of a DfuSe image.

On disk a target is an 8-byte prefix (address, size) followed by
`size` raw bytes.
"""

import logging
import os
import struct
from dataclasses import dataclass
from pathlib import Path
from typing import Tuple, Union

from .errors import IoError, OversizedInputError, TruncatedInputError

_logger = logging.getLogger(__name__)

TARGET_PREFIX = struct.Struct("<II")
TARGET_PREFIX_SIZE = TARGET_PREFIX.size

U32_MAX = 0xFFFFFFFF


@dataclass(frozen=True)
class Target:
    """Address-tagged block of firmware bytes."""
    address: int
    data: bytes

    def __post_init__(self):
        if not 0 <= self.address <= U32_MAX:
            raise ValueError(f"Target address out of range: {self.address:#x}")
        if len(self.data) > U32_MAX:
            raise OversizedInputError(
                f"Target payload of {len(self.data)} bytes exceeds 32-bit size field"
            )
        # Accept bytearray/memoryview but always store an immutable copy
        if not isinstance(self.data, bytes):
            object.__setattr__(self, "data", bytes(self.data))

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def end(self) -> int:
        """First address past the end of the payload."""
        return self.address + len(self.data)

    @classmethod
    def filled(cls, address: int, size: int, fill: int = 0xFF) -> "Target":
        """Create a target of `size` copies of the `fill` byte."""
        if size < 0:
            raise ValueError("Cannot create target with negative size")
        if size > U32_MAX:
            raise OversizedInputError(f"Target size {size} exceeds 32-bit size field")
        return cls(address, bytes([fill]) * size)

    @classmethod
    def from_file(cls, address: int, path: Union[str, Path]) -> "Target":
        """
        Create a target from the full contents of a file.

        Raises:
            OversizedInputError: If the file is larger than 4 GiB - 1
            IoError: If the file cannot be read
        """
        try:
            size = os.path.getsize(path)
            if size > U32_MAX:
                raise OversizedInputError(
                    f"{path}: {size} bytes exceeds 32-bit size field"
                )
            data = Path(path).read_bytes()
        except OSError as e:
            raise IoError(f"Cannot read {path}: {e}") from e
        _logger.debug("Loaded %d bytes from %s at 0x%08X", len(data), path, address)
        return cls(address, data)


def encode_target(target: Target) -> bytes:
    """Encode a target as prefix + payload."""
    return TARGET_PREFIX.pack(target.address, target.size) + target.data


def decode_target(data: bytes, offset: int = 0) -> Tuple[Target, int]:
    """
    Decode a target from bytes.

    Args:
        data: Bytes containing the target
        offset: Starting offset in data

    Returns:
        Tuple of (decoded target, new offset after target)

    Raises:
        TruncatedInputError: If the prefix or payload is cut short
    """
    if offset + TARGET_PREFIX_SIZE > len(data):
        raise TruncatedInputError(f"Target prefix truncated at offset {offset}")
    address, size = TARGET_PREFIX.unpack_from(data, offset)
    offset += TARGET_PREFIX_SIZE

    # Slicing past the end would silently return a short payload
    if offset + size > len(data):
        raise TruncatedInputError(
            f"Target at 0x{address:08X} declares {size} bytes, "
            f"only {len(data) - offset} available"
        )
    payload = bytes(data[offset:offset + size])
    _logger.debug("Decoded target 0x%08X (%d bytes)", address, size)
    return Target(address, payload), offset + size
