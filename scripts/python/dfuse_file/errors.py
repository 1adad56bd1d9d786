# SPDX-License-Identifier: MIT
# Copyright (c) 2026 ADNT Sarl <info@adnt.io>

"""Exceptions raised by the DfuSe codec."""


class DfuseError(Exception):
    """Base exception for DfuSe file errors."""
    pass


class BadSignatureError(DfuseError):
    """A fixed marker field did not hold its expected value."""
    pass


class TruncatedInputError(DfuseError):
    """Fewer bytes available than a declared length requires."""
    pass


class OversizedInputError(DfuseError):
    """Input does not fit in a 32-bit size field."""
    pass


class ChecksumError(DfuseError):
    """Stored CRC-32 does not match the file contents."""
    pass


class IoError(DfuseError):
    """Underlying read or write failure."""
    pass
