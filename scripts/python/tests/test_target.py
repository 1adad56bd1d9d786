# SPDX-License-Identifier: MIT
# Copyright (c) 2026 ADNT Sarl <info@adnt.io>

"""Tests for target records."""

import dataclasses
import os

import pytest
from dfuse_file.errors import IoError, OversizedInputError, TruncatedInputError
from dfuse_file.target import (
    TARGET_PREFIX_SIZE,
    Target,
    decode_target,
    encode_target,
)


class TestTarget:
    """Tests for Target construction."""

    def test_size_follows_payload(self):
        """size is the payload length."""
        target = Target(0x08000000, b"\x01\x02\x03")
        assert target.size == 3
        assert target.end == 0x08000003

    def test_bytearray_stored_as_bytes(self):
        """Mutable inputs are copied into bytes."""
        buf = bytearray(b"\x01\x02")
        target = Target(0, buf)
        buf[0] = 0xFF
        assert isinstance(target.data, bytes)
        assert target.data == b"\x01\x02"

    def test_immutable(self):
        """Targets cannot be modified."""
        target = Target(0, b"")
        with pytest.raises(dataclasses.FrozenInstanceError):
            target.address = 4

    def test_address_out_of_range(self):
        """Addresses must fit in 32 bits."""
        with pytest.raises(ValueError, match="out of range"):
            Target(0x1_0000_0000, b"")
        with pytest.raises(ValueError, match="out of range"):
            Target(-1, b"")

    def test_filled(self):
        """filled() repeats the fill byte."""
        target = Target.filled(0x20000000, 5, 0xA5)
        assert target.address == 0x20000000
        assert target.data == b"\xA5" * 5

    def test_filled_default_is_erased_flash(self):
        """Default fill is 0xFF."""
        assert Target.filled(0, 3).data == b"\xFF\xFF\xFF"

    def test_filled_negative_size(self):
        """Negative sizes are rejected."""
        with pytest.raises(ValueError):
            Target.filled(0, -1)

    def test_filled_oversized(self):
        """Sizes beyond the 32-bit field are rejected before allocating."""
        with pytest.raises(OversizedInputError):
            Target.filled(0, 0x1_0000_0000)


class TestTargetFromFile:
    """Tests for Target.from_file."""

    def test_reads_whole_file(self, tmp_path):
        """The full file becomes the payload."""
        path = tmp_path / "fw.bin"
        path.write_bytes(bytes(range(100)))
        target = Target.from_file(0x08004000, path)
        assert target.address == 0x08004000
        assert target.data == bytes(range(100))

    def test_missing_file(self, tmp_path):
        """Unreadable files raise IoError."""
        with pytest.raises(IoError):
            Target.from_file(0, tmp_path / "missing.bin")

    def test_oversized_file(self, tmp_path, monkeypatch):
        """Files too large for the size field raise OversizedInputError."""
        path = tmp_path / "huge.bin"
        path.write_bytes(b"\x00")
        monkeypatch.setattr(os.path, "getsize", lambda p: 0x1_0000_0000)
        with pytest.raises(OversizedInputError):
            Target.from_file(0, path)


class TestEncodeTarget:
    """Tests for encode_target."""

    def test_layout(self):
        """Address and size are little-endian, followed by the payload."""
        encoded = encode_target(Target(0x08000000, b"\xDE\xAD\xBE\xEF"))
        assert encoded == (
            b"\x00\x00\x00\x08"
            b"\x04\x00\x00\x00"
            b"\xDE\xAD\xBE\xEF"
        )

    def test_empty_payload(self):
        """Empty targets are just the prefix."""
        assert encode_target(Target(1, b"")) == b"\x01\x00\x00\x00\x00\x00\x00\x00"


class TestDecodeTarget:
    """Tests for decode_target."""

    def test_decode(self):
        """Prefix and payload are decoded, offset advances past the target."""
        data = b"\x00\x00\x00\x08\x02\x00\x00\x00\x11\x22"
        target, offset = decode_target(data)
        assert target == Target(0x08000000, b"\x11\x22")
        assert offset == 10

    def test_decode_with_offset(self):
        """Decoding starts at the given offset."""
        data = b"junk" + encode_target(Target(0x100, b"\x01"))
        target, offset = decode_target(data, 4)
        assert target.address == 0x100
        assert offset == len(data)

    def test_leaves_trailing_data(self):
        """Bytes after the payload are not consumed."""
        data = encode_target(Target(0, b"\x01\x02")) + b"\xFF\xFF"
        _, offset = decode_target(data)
        assert offset == TARGET_PREFIX_SIZE + 2

    def test_truncated_prefix(self):
        """Less than 8 bytes of prefix raises."""
        with pytest.raises(TruncatedInputError, match="prefix"):
            decode_target(b"\x00\x00\x00\x08\x04")

    def test_truncated_payload(self):
        """A declared size past the end raises instead of a short payload."""
        data = b"\x00\x00\x00\x08\x10\x00\x00\x00\x01\x02\x03"
        with pytest.raises(TruncatedInputError, match="declares 16 bytes"):
            decode_target(data)
