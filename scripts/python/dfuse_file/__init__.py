# SPDX-License-Identifier: MIT
# Copyright (c) 2026 ADNT Sarl <info@adnt.io>

"""
DfuSe firmware file library.

This package reads and writes ST DfuSe (.dfu) containers as described
in UM0391: images made of address-tagged targets, closed by a suffix
carrying the USB ids and a CRC-32 of the whole file.

Example usage:
    from dfuse_file import DfuFile, Image, Target

    # Build a file
    image = Image(alt_setting=0, name="Internal Flash")
    image.add_target(Target.from_file(0x08000000, "firmware.bin"))
    dfu = DfuFile(vendor_id=0x0483, product_id=0xDF11)
    dfu.add_image(image)
    dfu.save("firmware.dfu")

    # Read it back
    dfu = DfuFile.from_file("firmware.dfu")
    for image in dfu.images:
        for target in image.targets:
            print(f"0x{target.address:08X}: {target.size} bytes")
"""

from .container import (
    DfuFile,
    DEFAULT_VENDOR_ID,
    DEFAULT_PRODUCT_ID,
    DEFAULT_DEVICE_VERSION,
)
from .crc32 import crc32, crc32_update, crc32_finalize, Crc32Accumulator
from .errors import (
    DfuseError,
    BadSignatureError,
    TruncatedInputError,
    OversizedInputError,
    ChecksumError,
    IoError,
)
from .image import Image, encode_image, decode_image
from .target import Target, encode_target, decode_target
from .writer import FileWriter, BinWriter, HexWriter, BIN, HEX, WRITERS

__version__ = "0.1.0"

__all__ = [
    # Container
    "DfuFile",
    "DEFAULT_VENDOR_ID",
    "DEFAULT_PRODUCT_ID",
    "DEFAULT_DEVICE_VERSION",
    # CRC
    "crc32",
    "crc32_update",
    "crc32_finalize",
    "Crc32Accumulator",
    # Errors
    "DfuseError",
    "BadSignatureError",
    "TruncatedInputError",
    "OversizedInputError",
    "ChecksumError",
    "IoError",
    # Records
    "Image",
    "encode_image",
    "decode_image",
    "Target",
    "encode_target",
    "decode_target",
    # Writers
    "FileWriter",
    "BinWriter",
    "HexWriter",
    "BIN",
    "HEX",
    "WRITERS",
]
