"""Unit tests for user-agent parsing."""

import pytest

from metrics_service.domain.entities import DeviceType
from metrics_service.domain.user_agent import parse_user_agent

CHROME_MAC = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0 Safari/537.36"
)
FIREFOX_WINDOWS = "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:121.0) Gecko/20100101 Firefox/121.0"
SAFARI_IPHONE = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.0 Mobile/15E148 Safari/604.1"
)


def test_missing_user_agent_defaults_to_unknown_desktop():
    info = parse_user_agent(None)
    assert info.device_type == DeviceType.DESKTOP
    assert info.browser == "Unknown"
    assert info.os == "Unknown"


def test_chrome_wins_over_safari_token():
    """Chrome UAs also contain 'Safari'; the first rule in order wins."""
    info = parse_user_agent(CHROME_MAC)
    assert info.browser == "Chrome"
    assert info.os == "macOS"
    assert info.device_type == DeviceType.DESKTOP


def test_firefox_on_windows():
    info = parse_user_agent(FIREFOX_WINDOWS)
    assert info.browser == "Firefox"
    assert info.os == "Windows"


def test_mobile_detection_is_case_insensitive():
    info = parse_user_agent(SAFARI_IPHONE)
    assert info.device_type == DeviceType.MOBILE
    assert info.browser == "Safari"
    assert info.os == "macOS"


@pytest.mark.parametrize(
    "user_agent, expected",
    [
        ("SomeTablet Browser", DeviceType.TABLET),
        ("MOBILE thing", DeviceType.MOBILE),
        ("curl/8.0", DeviceType.DESKTOP),
    ],
)
def test_device_rules(user_agent, expected):
    assert parse_user_agent(user_agent).device_type == expected


def test_parsing_is_deterministic():
    assert parse_user_agent(CHROME_MAC) == parse_user_agent(CHROME_MAC)
