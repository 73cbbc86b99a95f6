"""User-agent parsing for session device metadata."""

from dataclasses import dataclass

from user_agents import parse

from src.portal.models.enums import DeviceType


@dataclass(frozen=True)
class DeviceInfo:
    browser: str | None = None
    browser_version: str | None = None
    os: str | None = None
    os_version: str | None = None
    device: str | None = None
    device_type: str = DeviceType.DESKTOP.value


def parse_device(user_agent: str | None) -> DeviceInfo:
    """Parse a raw user-agent string into browser, OS and device fields.

    Unknown or missing agents yield a desktop device with empty fields.
    """
    if not user_agent:
        return DeviceInfo()

    ua = parse(user_agent)

    if ua.is_bot:
        device_type = DeviceType.BOT
    elif ua.is_tablet:
        device_type = DeviceType.TABLET
    elif ua.is_mobile:
        device_type = DeviceType.MOBILE
    else:
        device_type = DeviceType.DESKTOP

    device = ua.device.family if ua.device.family and ua.device.family != "Other" else None

    return DeviceInfo(
        browser=ua.browser.family or None,
        browser_version=ua.browser.version_string or None,
        os=ua.os.family or None,
        os_version=ua.os.version_string or None,
        device=device,
        device_type=device_type.value,
    )
