from typing import Optional, Tuple
from urllib.parse import urlparse

from loguru import logger

from collector.schemas.sites import SiteConfig

WILDCARD_PREFIX = "*."


def _normalize_host(host: Optional[str]) -> Optional[str]:
    if not host:
        return None
    host = host.strip().lower().rstrip(".")
    return host or None


def host_from_url(value: Optional[str]) -> Optional[str]:
    """Host of an absolute URL, or None when there is none to take."""
    if not value or value.strip().lower() == "null":
        return None
    try:
        return _normalize_host(urlparse(value.strip()).hostname)
    except ValueError:
        return None


def _normalize_entry(entry: str) -> Optional[str]:
    """Allow-list entries may be stored as bare hosts or as full URLs."""
    entry = entry.strip().lower()
    if entry.startswith(WILDCARD_PREFIX):
        suffix = _normalize_host(entry[len(WILDCARD_PREFIX):])
        return WILDCARD_PREFIX + suffix if suffix else None
    if "://" in entry:
        return host_from_url(entry)
    return _normalize_host(entry.split("/", 1)[0].split(":", 1)[0])


def host_matches(host: str, entry: str) -> bool:
    normalized = _normalize_entry(entry)
    if normalized is None:
        return False
    if normalized.startswith(WILDCARD_PREFIX):
        return host.endswith(normalized[1:])
    return host == normalized


def request_host(
    origin: Optional[str],
    referer: Optional[str],
    url: Optional[str],
) -> Tuple[Optional[str], Optional[str]]:
    """(host, source) from the first usable of Origin, Referer, payload url."""
    for source, value in (("origin", origin), ("referer", referer), ("url", url)):
        host = host_from_url(value)
        if host:
            return host, source
    return None, None


def is_allowed(
    site: SiteConfig,
    origin: Optional[str] = None,
    referer: Optional[str] = None,
    url: Optional[str] = None,
) -> bool:
    """
    Empty allow-list: everything passes. Otherwise the request host must match
    an entry exactly (or fall under a *.domain wildcard), and a request that
    carries no host at all is refused.
    """
    if not site.allowed_domains:
        return True

    host, source = request_host(origin, referer, url)
    if host is None:
        logger.warning(
            f"Domain check failed for site {site.site_key}: no origin, referer or url host "
            f"(allowed: {site.allowed_domains})"
        )
        return False

    if any(host_matches(host, entry) for entry in site.allowed_domains):
        return True

    logger.warning(
        f"Domain check failed for site {site.site_key}: host {host!r} from {source} "
        f"not in {site.allowed_domains} (origin={origin!r}, referer={referer!r}, url={url!r})"
    )
    return False
