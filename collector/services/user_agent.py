"""
Pattern-based user agent classification.

Coarse on purpose: enough to split traffic by device type, OS and browser
family without shipping a device database or calling out to a service.
Anything that does not match comes back as UNKNOWN.
"""
import re
from dataclasses import dataclass
from typing import Optional, List, Tuple

UNKNOWN = "unknown"

DESKTOP = "desktop"
MOBILE = "mobile"
TABLET = "tablet"


@dataclass(frozen=True)
class ParsedUserAgent:
    browser: Optional[str] = None
    browser_version: Optional[str] = None
    os: Optional[str] = None
    os_version: Optional[str] = None
    device_type: str = UNKNOWN
    device_vendor: Optional[str] = None
    device_model: Optional[str] = None
    engine: Optional[str] = None
    cpu: Optional[str] = None

    @property
    def browser_label(self) -> str:
        return _label(self.browser, self.browser_version)

    @property
    def os_label(self) -> str:
        return _label(self.os, self.os_version)


def _label(name: Optional[str], version: Optional[str]) -> str:
    if not name:
        return UNKNOWN
    return f"{name} {version}".strip() if version else name


# Order matters: Edge, Opera and Samsung Internet also say "Chrome",
# and every Chromium browser also says "Safari".
BROWSER_PATTERNS: List[Tuple[str, re.Pattern]] = [
    ("Edge", re.compile(r"(?:Edg|EdgA|EdgiOS|Edge)/([\d.]+)")),
    ("Opera", re.compile(r"(?:OPR|OPiOS|Opera)/([\d.]+)")),
    ("Samsung Internet", re.compile(r"SamsungBrowser/([\d.]+)")),
    ("Firefox", re.compile(r"(?:Firefox|FxiOS)/([\d.]+)")),
    ("Chrome", re.compile(r"(?:Chrome|CriOS)/([\d.]+)")),
    ("Safari", re.compile(r"Version/([\d.]+).*Safari/")),
    ("Internet Explorer", re.compile(r"(?:MSIE |Trident/.*rv:)([\d.]+)")),
]

IOS_PATTERN = re.compile(r"(?:iPhone|iPad|iPod).*?OS ([\d_]+)")
ANDROID_PATTERN = re.compile(r"Android ([\d.]+)")
MACOS_PATTERN = re.compile(r"Mac OS X ([\d_.]+)")
WINDOWS_PATTERN = re.compile(r"Windows NT ([\d.]+)")
CHROMEOS_PATTERN = re.compile(r"CrOS \S+ ([\d.]+)")

WINDOWS_VERSIONS = {
    "10.0": "10",
    "6.3": "8.1",
    "6.2": "8",
    "6.1": "7",
    "6.0": "Vista",
    "5.1": "XP",
}

VENDOR_PATTERNS: List[Tuple[str, re.Pattern]] = [
    ("Apple", re.compile(r"iPhone|iPad|iPod|Macintosh")),
    ("Samsung", re.compile(r"SAMSUNG|SM-[A-Z0-9]+")),
    ("Google", re.compile(r"Pixel")),
    ("Huawei", re.compile(r"HUAWEI|Huawei")),
    ("Xiaomi", re.compile(r"Xiaomi|Redmi|\bMi [0-9A-Z]")),
]


def _short_version(version: str, parts: int = 2) -> str:
    return ".".join(version.replace("_", ".").split(".")[:parts])


def _browser(ua: str) -> Tuple[Optional[str], Optional[str]]:
    for name, pattern in BROWSER_PATTERNS:
        match = pattern.search(ua)
        if match:
            return name, _short_version(match.group(1))
    return None, None


def _os(ua: str) -> Tuple[Optional[str], Optional[str]]:
    match = IOS_PATTERN.search(ua)
    if match:
        return "iOS", _short_version(match.group(1), 3)

    match = ANDROID_PATTERN.search(ua)
    if match:
        return "Android", match.group(1)

    match = WINDOWS_PATTERN.search(ua)
    if match:
        return "Windows", WINDOWS_VERSIONS.get(match.group(1), match.group(1))
    if "Windows" in ua:
        return "Windows", None

    match = CHROMEOS_PATTERN.search(ua)
    if match:
        return "Chrome OS", match.group(1)

    match = MACOS_PATTERN.search(ua)
    if match:
        return "macOS", _short_version(match.group(1), 3)

    if "Linux" in ua or "X11" in ua:
        return "Linux", None

    return None, None


def _device_type(ua: str, os_name: Optional[str]) -> str:
    if "iPad" in ua or "Tablet" in ua:
        return TABLET
    if os_name == "Android":
        # Android phones say "Mobile", tablets do not
        return MOBILE if "Mobile" in ua else TABLET
    if "Mobi" in ua or "iPhone" in ua or "iPod" in ua or "Windows Phone" in ua:
        return MOBILE
    if os_name in ("Windows", "macOS", "Linux", "Chrome OS"):
        return DESKTOP
    return UNKNOWN


def _engine(ua: str, browser: Optional[str], os_name: Optional[str]) -> Optional[str]:
    # Every iOS browser is WebKit underneath
    if os_name == "iOS" or browser == "Safari":
        return "WebKit"
    if browser in ("Chrome", "Opera", "Samsung Internet") or (browser == "Edge" and "Edg/" in ua):
        return "Blink"
    if browser == "Edge":
        return "EdgeHTML"
    if browser == "Firefox":
        return "Gecko"
    if browser == "Internet Explorer":
        return "Trident"
    return None


def _vendor(ua: str) -> Optional[str]:
    for name, pattern in VENDOR_PATTERNS:
        if pattern.search(ua):
            return name
    return None


# "Android 14; Pixel 8)" or "Android 9; en-us; SM-G960F Build/PPR1)"
ANDROID_MODEL_PATTERN = re.compile(
    r"Android [\d.]+;\s*(?:[a-z]{2}[-_][a-zA-Z]{2};\s*)?([^;)]+?)(?:\s+Build/[^;)]*)?\)"
)
APPLE_MODEL_PATTERN = re.compile(r"\((iPhone|iPad|iPod|Macintosh)\b")

CPU_PATTERNS: List[Tuple[str, re.Pattern]] = [
    ("arm64", re.compile(r"\b(?:arm64|aarch64)\b", re.IGNORECASE)),
    ("arm", re.compile(r"\barmv?[5-8]\w*", re.IGNORECASE)),
    ("amd64", re.compile(r"\b(?:x86_64|x86-64|x64|Win64|WOW64|amd64)\b", re.IGNORECASE)),
    ("ia32", re.compile(r"\b(?:i[3-6]86|x86)\b", re.IGNORECASE)),
]


def _device_model(ua: str) -> Optional[str]:
    match = ANDROID_MODEL_PATTERN.search(ua)
    if match:
        model = match.group(1).strip()
        # reduced UAs send a single letter, e.g. "Android 10; K)"
        return model if len(model) > 1 else None
    match = APPLE_MODEL_PATTERN.search(ua)
    if match:
        return match.group(1)
    return None


def _cpu(ua: str) -> Optional[str]:
    for name, pattern in CPU_PATTERNS:
        if pattern.search(ua):
            return name
    return None


def parse_user_agent(user_agent: Optional[str]) -> ParsedUserAgent:
    if not user_agent or not user_agent.strip():
        return ParsedUserAgent()

    browser, browser_version = _browser(user_agent)
    os_name, os_version = _os(user_agent)

    return ParsedUserAgent(
        browser=browser,
        browser_version=browser_version,
        os=os_name,
        os_version=os_version,
        device_type=_device_type(user_agent, os_name),
        device_vendor=_vendor(user_agent),
        engine=_engine(user_agent, browser, os_name),
        device_model=_device_model(user_agent),
        cpu=_cpu(user_agent),
    )
