# SPDX-License-Identifier: MIT
# Copyright (c) 2026 ADNT Sarl <info@adnt.io>

"""
Loose-file writers for image targets.

A writer takes one target and puts its bytes in a file. New output
formats only need a FileWriter subclass.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, Union

from intelhex import IntelHex

from .errors import IoError

if TYPE_CHECKING:
    from .target import Target


class FileWriter(ABC):
    """Output format for a single target."""

    @abstractmethod
    def write(self, path: Union[str, Path], target: "Target") -> None:
        """Write the target to `path`."""


class BinWriter(FileWriter):
    """Raw payload bytes, address dropped."""

    def write(self, path: Union[str, Path], target: "Target") -> None:
        try:
            Path(path).write_bytes(target.data)
        except OSError as e:
            raise IoError(f"Cannot write {path}: {e}") from e


class HexWriter(FileWriter):
    """Intel HEX records placed at the target address."""

    def write(self, path: Union[str, Path], target: "Target") -> None:
        ih = IntelHex()
        ih.frombytes(target.data, offset=target.address)
        try:
            ih.write_hex_file(str(path))
        except OSError as e:
            raise IoError(f"Cannot write {path}: {e}") from e


BIN = BinWriter()
HEX = HexWriter()

WRITERS = {
    "bin": BIN,
    "hex": HEX,
}
