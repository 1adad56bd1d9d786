# SPDX-License-Identifier: MIT
# Copyright (c) 2026 ADNT Sarl <info@adnt.io>

"""
Image records of a DfuSe file.

An image groups the targets flashed through one DFU alternate setting.
Its 274-byte prefix carries the "Target" signature, the alternate
setting, an optional name and the size and count of its elements.
"""

import logging
import struct
from pathlib import Path
from typing import List, Optional, Tuple, Union

from .errors import BadSignatureError, TruncatedInputError
from .target import TARGET_PREFIX_SIZE, Target, decode_target, encode_target
from .writer import BIN, FileWriter

_logger = logging.getLogger(__name__)

IMAGE_SIGNATURE = b"Target"
NAME_FIELD_SIZE = 255
# Keep at least one NUL terminator in the name field
NAME_MAX_LENGTH = NAME_FIELD_SIZE - 1

IMAGE_PREFIX = struct.Struct("<6sBI255sII")
IMAGE_PREFIX_SIZE = IMAGE_PREFIX.size  # 274


def encode_name(name: Optional[str]) -> bytes:
    """Encode an image name into the fixed 255-byte field."""
    if name is None:
        return bytes(NAME_FIELD_SIZE)
    raw = name.encode("utf-8")[:NAME_MAX_LENGTH]
    # Drop a multi-byte character split by the cut
    raw = raw.decode("utf-8", errors="ignore").encode("utf-8")
    return raw.ljust(NAME_FIELD_SIZE, b"\x00")


def decode_name(field: bytes) -> str:
    """Decode the name field up to its first NUL."""
    return field.split(b"\x00", 1)[0].decode("utf-8", errors="replace")


class Image:
    """
    A DfuSe image: an alternate setting and its ordered targets.

    Images start out empty and invalid. Targets are appended with
    add_target(), which is the only way the element size and count change.
    """

    def __init__(self, alt_setting: int = 0, name: Optional[str] = None):
        if not 0 <= alt_setting <= 0xFF:
            raise ValueError(f"Alternate setting out of range: {alt_setting}")
        self._alt_setting = alt_setting
        self._name = name
        self._targets: List[Target] = []
        self._element_size = 0
        self._element_count = 0
        self._valid = False

    def __repr__(self) -> str:
        return (
            f"Image(alt_setting={self._alt_setting}, name={self._name!r}, "
            f"targets={self._element_count}, size={self._element_size})"
        )

    def __bool__(self) -> bool:
        return self._valid

    @property
    def valid(self) -> bool:
        return self._valid

    @property
    def alt_setting(self) -> int:
        return self._alt_setting

    @property
    def id(self) -> int:
        """Alias of alt_setting."""
        return self._alt_setting

    @property
    def name(self) -> Optional[str]:
        return self._name

    @property
    def named(self) -> bool:
        return self._name is not None

    @property
    def targets(self) -> Tuple[Target, ...]:
        return tuple(self._targets)

    @property
    def element_size(self) -> int:
        """Bytes taken by all targets, prefixes included."""
        return self._element_size

    @property
    def element_count(self) -> int:
        return self._element_count

    @property
    def size(self) -> int:
        """Bytes taken by the whole image on disk."""
        return IMAGE_PREFIX_SIZE + self._element_size

    def add_target(self, target: Target) -> None:
        """Append a target and update the element bookkeeping."""
        self._targets.append(target)
        self._element_count += 1
        self._element_size += target.size + TARGET_PREFIX_SIZE
        self._valid = True

    def copy(self) -> "Image":
        """Independent image with the same setting, name and targets."""
        image = Image(self._alt_setting, self._name)
        for target in self._targets:
            image.add_target(target)
        return image

    def write(
        self,
        path: Union[str, Path],
        element_index: int = 0,
        writer: FileWriter = BIN,
    ) -> None:
        """
        Dump one target of this image to a loose file.

        Args:
            path: Output file
            element_index: Index of the target to dump (default first)
            writer: Output format (default raw binary)
        """
        target = self._targets[element_index]
        writer.write(path, target)
        _logger.info(
            "Wrote element %d of image %d (%d bytes at 0x%08X) to %s",
            element_index, self._alt_setting, target.size, target.address, path,
        )


def encode_image(image: Image) -> bytes:
    """Encode an image prefix followed by all its targets."""
    prefix = IMAGE_PREFIX.pack(
        IMAGE_SIGNATURE,
        image.alt_setting,
        1 if image.named else 0,
        encode_name(image.name),
        image.element_size,
        image.element_count,
    )
    return prefix + b"".join(encode_target(t) for t in image.targets)


def decode_image(data: bytes, offset: int = 0) -> Tuple[Image, int]:
    """
    Decode an image from bytes.

    Args:
        data: Bytes containing the image
        offset: Starting offset in data

    Returns:
        Tuple of (decoded image, new offset after image)

    Raises:
        TruncatedInputError: If the prefix or any target is cut short
        BadSignatureError: If the prefix does not start with "Target"
    """
    if offset + IMAGE_PREFIX_SIZE > len(data):
        raise TruncatedInputError(f"Image prefix truncated at offset {offset}")
    signature, alt_setting, named, name_field, element_size, element_count = (
        IMAGE_PREFIX.unpack_from(data, offset)
    )
    if signature != IMAGE_SIGNATURE:
        raise BadSignatureError(
            f"Bad image signature at offset {offset}: {signature!r}"
        )
    offset += IMAGE_PREFIX_SIZE

    image = Image(alt_setting, decode_name(name_field) if named else None)
    for _ in range(element_count):
        target, offset = decode_target(data, offset)
        image.add_target(target)

    if image.element_size != element_size:
        _logger.warning(
            "Image %d declares element size %d, targets add up to %d",
            alt_setting, element_size, image.element_size,
        )
    _logger.debug("Decoded %r", image)
    return image, offset
