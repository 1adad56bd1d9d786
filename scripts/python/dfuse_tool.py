#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
# Copyright (c) 2026 ADNT Sarl <info@adnt.io>

"""
Inspect, extract and build DfuSe firmware files.

Usage:
    python dfuse_tool.py info firmware.dfu
    python dfuse_tool.py extract firmware.dfu app.bin --image 0 --element 0
    python dfuse_tool.py extract firmware.dfu app.hex --format hex
    python dfuse_tool.py build firmware.dfu app.bin@0x08000000 --name "Internal Flash"

Requirements:
    pip install intelhex
"""

import argparse
import logging
import sys
from pathlib import Path

from dfuse_file import (
    DfuFile,
    DfuseError,
    Image,
    Target,
    WRITERS,
    DEFAULT_VENDOR_ID,
    DEFAULT_PRODUCT_ID,
    DEFAULT_DEVICE_VERSION,
)

DEFAULT_ADDRESS = 0x08000000

_logger = logging.getLogger(__name__)


def _int(value: str) -> int:
    try:
        return int(value, 0)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"invalid number '{value}'") from e


def _input_spec(value: str):
    """Parse PATH[@ADDRESS]."""
    path, sep, address = value.rpartition("@")
    if sep:
        try:
            return Path(path), int(address, 0)
        except ValueError:
            pass
    return Path(value), None


def cmd_info(dfu: DfuFile):
    """Print the contents of a DfuSe file."""
    print(
        f"Vendor: 0x{dfu.vendor_id:04x} Product: 0x{dfu.product_id:04x} "
        f"Device Version: 0x{dfu.device_version:04x}"
    )
    print(f"Number of images: {dfu.image_count}")

    for image in dfu.images:
        if not image:
            print("\t INVALID IMAGE!")
            continue
        print(
            f"\t Id: {image.id} Name: {image.name or ''} Size: {image.element_size} "
            f"consisting of {image.element_count} element(s)."
        )
        for target in image.targets:
            print(f"\t\t Element Address: 0x{target.address:08x} Size: {target.size}")


def cmd_extract(dfu: DfuFile, output: Path, image_index: int, element: int, fmt: str) -> bool:
    """Write one element of one image to a loose file."""
    images = dfu.images
    if not 0 <= image_index < len(images):
        print(f"Error: Image {image_index} not found ({len(images)} image(s) in file)")
        return False
    image = images[image_index]
    if not 0 <= element < image.element_count:
        print(f"Error: Element {element} not found ({image.element_count} in image {image_index})")
        return False

    image.write(output, element, WRITERS[fmt])
    target = image.targets[element]
    print(f"Wrote {target.size} bytes from 0x{target.address:08x} to {output}")
    return True


def cmd_build(output: Path, inputs, vendor_id: int, product_id: int,
              device_version: int, alt_setting: int, name) -> bool:
    """Wrap raw binaries into a DfuSe file."""
    image = Image(alt_setting, name)
    address = DEFAULT_ADDRESS
    for path, explicit in inputs:
        if explicit is not None:
            address = explicit
        target = Target.from_file(address, path)
        image.add_target(target)
        print(f"  {path}: {target.size} bytes at 0x{target.address:08x}")
        # Inputs without an address follow the previous one
        address = target.end

    dfu = DfuFile(vendor_id, product_id, device_version)
    if not dfu.add_image(image):
        print("Error: No input data")
        return False
    size = dfu.save(output)
    print(f"Wrote {output} ({size} bytes, CRC32: 0x{dfu.crc:08x})")
    return True


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description="DfuSe firmware file tool"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="count",
        default=0,
        help="Enable verbose output. Twice for extra verbosity."
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # info command
    info_parser = subparsers.add_parser("info", help="Show the images of a DfuSe file")
    info_parser.add_argument("file", type=Path, help="DfuSe file")
    info_parser.add_argument("--no-verify", action="store_true",
                             help="Do not check the file CRC")

    # extract command
    extract_parser = subparsers.add_parser("extract", help="Dump one element to a file")
    extract_parser.add_argument("file", type=Path, help="DfuSe file")
    extract_parser.add_argument("output", type=Path, help="Output file")
    extract_parser.add_argument("--image", "-i", type=int, default=0,
                                help="Image index (default 0)")
    extract_parser.add_argument("--element", "-e", type=int, default=0,
                                help="Element index within the image (default 0)")
    extract_parser.add_argument("--format", "-f", choices=sorted(WRITERS), default="bin",
                                help="Output format (default bin)")
    extract_parser.add_argument("--no-verify", action="store_true",
                                help="Do not check the file CRC")

    # build command
    build_parser = subparsers.add_parser("build", help="Create a DfuSe file from binaries")
    build_parser.add_argument("output", type=Path, help="DfuSe file to write")
    build_parser.add_argument("inputs", type=_input_spec, nargs="+", metavar="BIN[@ADDRESS]",
                              help=f"Raw binary and load address (default 0x{DEFAULT_ADDRESS:08X})")
    build_parser.add_argument("--vendor-id", type=_int, default=DEFAULT_VENDOR_ID,
                              help=f"USB vendor ID (default 0x{DEFAULT_VENDOR_ID:04X})")
    build_parser.add_argument("--product-id", type=_int, default=DEFAULT_PRODUCT_ID,
                              help=f"USB product ID (default 0x{DEFAULT_PRODUCT_ID:04X})")
    build_parser.add_argument("--device-version", type=_int, default=DEFAULT_DEVICE_VERSION,
                              help=f"Device release number (default 0x{DEFAULT_DEVICE_VERSION:04X})")
    build_parser.add_argument("--alt-setting", type=_int, default=0,
                              help="DFU alternate setting of the image (default 0)")
    build_parser.add_argument("--name", default=None, help="Image name")

    args = parser.parse_args(argv)

    logging.basicConfig(
        stream=sys.stderr,
        format="%(message)s",
        level={
            0: logging.WARNING,
            1: logging.INFO,
        }.get(args.verbose, logging.DEBUG),
    )
    _logger.debug("CLI arguments: %s", args)

    try:
        if args.command == "info":
            dfu = DfuFile.from_file(args.file, verify_crc=not args.no_verify)
            cmd_info(dfu)
            ok = True
        elif args.command == "extract":
            dfu = DfuFile.from_file(args.file, verify_crc=not args.no_verify)
            ok = cmd_extract(dfu, args.output, args.image, args.element, args.format)
        elif args.command == "build":
            ok = cmd_build(args.output, args.inputs, args.vendor_id, args.product_id,
                           args.device_version, args.alt_setting, args.name)
    except (DfuseError, ValueError) as e:
        print(f"Error: {e}")
        return 1

    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(main())
