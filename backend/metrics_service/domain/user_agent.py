"""User-agent parsing with ordered substring rules.

The first matching rule wins. The tables are part of the stored data
contract: reordering them changes how historical and new events compare.
"""

from dataclasses import dataclass

from metrics_service.domain.entities.common import DeviceType

UNKNOWN = "Unknown"

# (needle, result); device needles are matched case-insensitively.
DEVICE_RULES: tuple[tuple[str, DeviceType], ...] = (
    ("mobile", DeviceType.MOBILE),
    ("tablet", DeviceType.TABLET),
)

BROWSER_RULES: tuple[tuple[str, str], ...] = (
    ("Chrome", "Chrome"),
    ("Firefox", "Firefox"),
    ("Safari", "Safari"),
    ("Edge", "Edge"),
    ("Opera", "Opera"),
)

OS_RULES: tuple[tuple[str, str], ...] = (
    ("Windows", "Windows"),
    ("Mac OS", "macOS"),
    ("Linux", "Linux"),
    ("Android", "Android"),
    ("iOS", "iOS"),
)


@dataclass(frozen=True)
class ClientInfo:
    device_type: DeviceType = DeviceType.DESKTOP
    browser: str = UNKNOWN
    os: str = UNKNOWN


def _first_match(haystack: str, rules, default):
    for needle, result in rules:
        if needle in haystack:
            return result
    return default


def parse_user_agent(user_agent: str | None) -> ClientInfo:
    """Derive device type, browser and OS from a raw user-agent string."""
    if not user_agent:
        return ClientInfo()
    return ClientInfo(
        device_type=_first_match(user_agent.lower(), DEVICE_RULES, DeviceType.DESKTOP),
        browser=_first_match(user_agent, BROWSER_RULES, UNKNOWN),
        os=_first_match(user_agent, OS_RULES, UNKNOWN),
    )
