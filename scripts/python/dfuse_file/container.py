# SPDX-License-Identifier: MIT
# Copyright (c) 2026 ADNT Sarl <info@adnt.io>

"""
DfuSe file container.

Layout (all integers little-endian):

    FilePrefix  (11 bytes)   "DfuSe", version, file size, image count
    Image * N                see image.py
    FileSuffix  (16 bytes)   device version, product, vendor, DFU format,
                             "UFD", suffix length, CRC-32

The CRC-32 covers every byte of the file except the CRC field itself.
"""

import logging
import os
import struct
import tempfile
from pathlib import Path
from typing import BinaryIO, Iterator, List, Tuple, Union

from .crc32 import Crc32Accumulator
from .errors import (
    BadSignatureError,
    ChecksumError,
    DfuseError,
    IoError,
    TruncatedInputError,
)
from .image import Image, decode_image, encode_image

_logger = logging.getLogger(__name__)

FILE_SIGNATURE = b"DfuSe"
FORMAT_VERSION = 1
DFU_FORMAT = 0x011A
SUFFIX_MARKER = b"UFD"
SUFFIX_LENGTH = 16

FILE_PREFIX = struct.Struct("<5sBIB")
FILE_PREFIX_SIZE = FILE_PREFIX.size  # 11

# Suffix without the trailing CRC
FILE_SUFFIX = struct.Struct("<HHHH3sB")
CRC_FIELD = struct.Struct("<I")

DEFAULT_VENDOR_ID = 0x0483
DEFAULT_PRODUCT_ID = 0xDF11
DEFAULT_DEVICE_VERSION = 0xFFFF

MAX_IMAGES = 0xFF


def _check_u16(name: str, value: int) -> int:
    if not 0 <= value <= 0xFFFF:
        raise ValueError(f"{name} out of range: {value:#x}")
    return value


class DfuFile:
    """
    A DfuSe firmware file.

    Build one from scratch:
        dfu = DfuFile(vendor_id=0x0483, product_id=0xDF11)
        image = Image(0, "Internal Flash")
        image.add_target(Target(0x08000000, firmware))
        dfu.add_image(image)
        dfu.save("firmware.dfu")

    Or parse an existing one:
        dfu = DfuFile.from_file("firmware.dfu")
        for image in dfu.images:
            ...
    """

    def __init__(
        self,
        vendor_id: int = DEFAULT_VENDOR_ID,
        product_id: int = DEFAULT_PRODUCT_ID,
        device_version: int = DEFAULT_DEVICE_VERSION,
    ):
        self._vendor_id = _check_u16("Vendor ID", vendor_id)
        self._product_id = _check_u16("Product ID", product_id)
        self._device_version = _check_u16("Device version", device_version)
        self._format_version = FORMAT_VERSION
        self._dfu_format = DFU_FORMAT
        self._images: List[Image] = []
        self._file_size = FILE_PREFIX_SIZE
        self._valid = True
        self._crc = self._compute_crc()

    def __repr__(self) -> str:
        return (
            f"DfuFile(vendor_id=0x{self._vendor_id:04X}, "
            f"product_id=0x{self._product_id:04X}, "
            f"device_version=0x{self._device_version:04X}, "
            f"images={len(self._images)}, valid={self._valid})"
        )

    def __bool__(self) -> bool:
        return self._valid

    @property
    def valid(self) -> bool:
        return self._valid

    @property
    def vendor_id(self) -> int:
        return self._vendor_id

    @property
    def product_id(self) -> int:
        return self._product_id

    @property
    def device_version(self) -> int:
        return self._device_version

    @property
    def format_version(self) -> int:
        return self._format_version

    @property
    def dfu_format(self) -> int:
        return self._dfu_format

    @property
    def images(self) -> Tuple[Image, ...]:
        return tuple(self._images)

    @property
    def image_count(self) -> int:
        return len(self._images)

    @property
    def file_size(self) -> int:
        """Size field of the file prefix: prefix plus all images."""
        return self._file_size

    @property
    def crc(self) -> int:
        return self._crc

    def add_image(self, image: Image) -> bool:
        """
        Append an image and recompute the checksum.

        Empty images are ignored. The checksum is recomputed over the
        whole container on every call, so adding an image costs time
        proportional to everything added before it.

        Returns:
            True if the image was added
        """
        if not image:
            _logger.warning("Ignoring invalid image %r", image)
            return False
        if len(self._images) >= MAX_IMAGES:
            raise ValueError(f"A DfuSe file holds at most {MAX_IMAGES} images")

        # Later add_target calls on the caller's image must not reach this file
        image = image.copy()
        self._images.append(image)
        self._file_size += image.size
        self._crc = self._compute_crc()
        _logger.debug(
            "Added %r, file size %d, CRC 0x%08X", image, self._file_size, self._crc
        )
        return True

    def _encode_prefix(self) -> bytes:
        return FILE_PREFIX.pack(
            FILE_SIGNATURE,
            self._format_version,
            self._file_size,
            len(self._images),
        )

    def _encode_suffix(self) -> bytes:
        return FILE_SUFFIX.pack(
            self._device_version,
            self._product_id,
            self._vendor_id,
            self._dfu_format,
            SUFFIX_MARKER,
            SUFFIX_LENGTH,
        )

    def chunks_without_crc(self) -> Iterator[bytes]:
        """Yield the serialized file in order, stopping before the CRC field."""
        yield self._encode_prefix()
        for image in self._images:
            yield encode_image(image)
        yield self._encode_suffix()

    def _compute_crc(self) -> int:
        acc = Crc32Accumulator()
        for chunk in self.chunks_without_crc():
            acc.update(chunk)
        return acc.value

    def to_bytes(self) -> bytes:
        """Serialize the whole file, CRC included."""
        return b"".join(self.chunks_without_crc()) + CRC_FIELD.pack(self._crc)

    def write(self, stream: BinaryIO) -> int:
        """
        Write the file to a binary stream.

        The CRC is written last, after the bytes it covers.

        Returns:
            Number of bytes written

        Raises:
            IoError: If the stream fails
        """
        written = 0
        try:
            for chunk in self.chunks_without_crc():
                stream.write(chunk)
                written += len(chunk)
            stream.write(CRC_FIELD.pack(self._crc))
        except OSError as e:
            raise IoError(f"Write failed after {written} bytes: {e}") from e
        return written + CRC_FIELD.size

    def save(self, path: Union[str, Path]) -> int:
        """
        Write the file to `path`.

        Data goes to a temporary file next to `path` which is renamed
        into place once complete, so a failed save leaves any existing
        file untouched.

        Returns:
            Number of bytes written
        """
        path = Path(path)
        directory = path.parent
        try:
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{path.name}.", suffix=".tmp", dir=directory
            )
        except OSError as e:
            raise IoError(f"Cannot create temporary file in {directory}: {e}") from e

        try:
            with os.fdopen(fd, "wb") as f:
                written = self.write(f)
            os.replace(tmp_name, path)
        except OSError as e:
            _remove_quietly(tmp_name)
            raise IoError(f"Cannot write {path}: {e}") from e
        except DfuseError:
            _remove_quietly(tmp_name)
            raise

        _logger.info(
            "Wrote %s: %d image(s), %d bytes, CRC 0x%08X",
            path, len(self._images), written, self._crc,
        )
        return written

    @classmethod
    def from_bytes(cls, data: bytes, verify_crc: bool = True) -> "DfuFile":
        """
        Parse a DfuSe file held in memory.

        Args:
            data: Complete file contents
            verify_crc: Check the stored CRC-32 against the contents

        Raises:
            TruncatedInputError: If any record is cut short
            BadSignatureError: If a signature or the suffix marker is wrong
            ChecksumError: If verify_crc is set and the CRC does not match
        """
        signature = bytes(data[:len(FILE_SIGNATURE)])
        if len(signature) == len(FILE_SIGNATURE) and signature != FILE_SIGNATURE:
            raise BadSignatureError(f"Not a DfuSe file, signature {signature!r}")
        if len(data) < FILE_PREFIX_SIZE:
            raise TruncatedInputError(
                f"File prefix needs {FILE_PREFIX_SIZE} bytes, got {len(data)}"
            )
        _, version, file_size, image_count = FILE_PREFIX.unpack_from(data, 0)
        offset = FILE_PREFIX_SIZE

        images = []
        for _ in range(image_count):
            image, offset = decode_image(data, offset)
            images.append(image)

        suffix_end = offset + FILE_SUFFIX.size + CRC_FIELD.size
        if suffix_end > len(data):
            raise TruncatedInputError(f"File suffix truncated at offset {offset}")
        device_version, product_id, vendor_id, dfu_format, marker, length = (
            FILE_SUFFIX.unpack_from(data, offset)
        )
        if marker != SUFFIX_MARKER or length != SUFFIX_LENGTH:
            raise BadSignatureError(
                f"Bad file suffix: marker {marker!r}, length {length}"
            )
        crc_offset = offset + FILE_SUFFIX.size
        (stored_crc,) = CRC_FIELD.unpack_from(data, crc_offset)

        if verify_crc:
            actual = Crc32Accumulator().update(data[:crc_offset]).value
            if actual != stored_crc:
                raise ChecksumError(
                    f"CRC mismatch: stored 0x{stored_crc:08X}, computed 0x{actual:08X}"
                )
        if suffix_end != len(data):
            _logger.warning("Ignoring %d trailing bytes", len(data) - suffix_end)

        dfu = cls.__new__(cls)
        dfu._vendor_id = vendor_id
        dfu._product_id = product_id
        dfu._device_version = device_version
        dfu._format_version = version
        dfu._dfu_format = dfu_format
        dfu._images = images
        dfu._file_size = FILE_PREFIX_SIZE + sum(image.size for image in images)
        dfu._crc = stored_crc
        dfu._valid = True

        if file_size != dfu._file_size:
            _logger.warning(
                "File declares size %d, images add up to %d", file_size, dfu._file_size
            )
        # Keep to_bytes() consistent when any declared size was corrected
        if b"".join(dfu.chunks_without_crc()) != data[:crc_offset]:
            dfu._crc = dfu._compute_crc()
            _logger.warning("Corrected size fields, CRC recomputed as 0x%08X", dfu._crc)
        _logger.debug("Parsed %r", dfu)
        return dfu

    @classmethod
    def from_file(
        cls,
        path: Union[str, Path],
        verify_crc: bool = True,
        strict: bool = True,
    ) -> "DfuFile":
        """
        Read and parse a DfuSe file.

        Args:
            path: File to read
            verify_crc: Check the stored CRC-32 against the contents
            strict: Raise on failure. When False, log the error and
                return an invalid, empty DfuFile instead.

        Raises:
            IoError: If the file cannot be read (strict only)
            DfuseError: If the contents do not parse (strict only)
        """
        try:
            try:
                data = Path(path).read_bytes()
            except OSError as e:
                raise IoError(f"Cannot read {path}: {e}") from e
            dfu = cls.from_bytes(data, verify_crc=verify_crc)
        except DfuseError as e:
            if strict:
                raise
            _logger.warning("%s: %s", path, e)
            return cls.invalid()

        _logger.info("Parsed %s: %d image(s)", path, dfu.image_count)
        return dfu

    @classmethod
    def invalid(cls) -> "DfuFile":
        """An empty DfuFile flagged invalid, standing in for a failed parse."""
        dfu = cls()
        dfu._valid = False
        return dfu


def _remove_quietly(path: str) -> None:
    try:
        os.unlink(path)
    except FileNotFoundError:
        pass
