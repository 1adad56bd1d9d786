# SPDX-License-Identifier: MIT
# Copyright (c) 2026 ADNT Sarl <info@adnt.io>

"""Pytest configuration and shared fixtures."""

import pytest

from dfuse_file import DfuFile, Image, Target

# Scenario values shared by several test modules
VENDOR_ID = 0x1234
PRODUCT_ID = 0x5678
DEVICE_VERSION = 0x0100
FLASH_BASE = 0x0800_0000
PAYLOAD = bytes([0xDE, 0xAD, 0xBE, 0xEF])


@pytest.fixture
def app_image():
    """Single image "App" with one 4-byte target at the flash base."""
    image = Image(alt_setting=0, name="App")
    image.add_target(Target(FLASH_BASE, PAYLOAD))
    return image


@pytest.fixture
def dfu(app_image):
    """Container holding the app image."""
    dfu = DfuFile(vendor_id=VENDOR_ID, product_id=PRODUCT_ID, device_version=DEVICE_VERSION)
    dfu.add_image(app_image)
    return dfu


@pytest.fixture
def multi_dfu():
    """Container with two images, one of them unnamed with two targets."""
    flash = Image(alt_setting=0, name="@Internal Flash  /0x08000000/64*002Kg")
    flash.add_target(Target(FLASH_BASE, bytes(range(256)) * 4))
    option_bytes = Image(alt_setting=1)
    option_bytes.add_target(Target(0x1FFF_C000, b"\xAA\x55" * 8))
    option_bytes.add_target(Target.filled(0x1FFF_C010, 16, 0x00))

    dfu = DfuFile(vendor_id=0x0483, product_id=0xDF11, device_version=0x2200)
    dfu.add_image(flash)
    dfu.add_image(option_bytes)
    return dfu


@pytest.fixture
def dfu_path(tmp_path, dfu):
    """The app container saved to disk."""
    path = tmp_path / "app.dfu"
    dfu.save(path)
    return path
