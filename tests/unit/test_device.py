"""Tests for user-agent parsing into session device fields."""

import pytest

from src.portal.core.device import DeviceInfo, parse_device
from src.portal.models import DeviceType

pytestmark = pytest.mark.unit

CHROME_WINDOWS = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
SAFARI_IPHONE = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_1 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.1 Mobile/15E148 Safari/604.1"
)
SAFARI_IPAD = (
    "Mozilla/5.0 (iPad; CPU OS 16_6 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/16.6 Mobile/15E148 Safari/604.1"
)
GOOGLEBOT = "Mozilla/5.0 (compatible; Googlebot/2.1; +http://www.google.com/bot.html)"


def test_missing_user_agent_defaults_to_desktop():
    assert parse_device(None) == DeviceInfo()
    assert parse_device("").device_type == DeviceType.DESKTOP.value


def test_desktop_browser():
    info = parse_device(CHROME_WINDOWS)
    assert info.device_type == DeviceType.DESKTOP.value
    assert info.browser == "Chrome"
    assert info.os == "Windows"


def test_mobile():
    info = parse_device(SAFARI_IPHONE)
    assert info.device_type == DeviceType.MOBILE.value
    assert info.os == "iOS"
    assert info.device == "iPhone"


def test_tablet():
    assert parse_device(SAFARI_IPAD).device_type == DeviceType.TABLET.value


def test_bot():
    assert parse_device(GOOGLEBOT).device_type == DeviceType.BOT.value
