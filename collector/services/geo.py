from dataclasses import dataclass
from typing import Mapping, Optional, Tuple
from urllib.parse import unquote

# (country, region, city) header names set by the edge network in front of us
EDGE_GEO_HEADERS: Tuple[Tuple[str, str, str], ...] = (
    ("x-vercel-ip-country", "x-vercel-ip-country-region", "x-vercel-ip-city"),
    ("cf-ipcountry", "cf-region", "cf-ipcity"),
    ("cloudfront-viewer-country", "cloudfront-viewer-country-region", "cloudfront-viewer-city"),
)

# Cloudflare: XX = unknown, T1 = Tor exit node
PLACEHOLDER_COUNTRIES = {"XX", "T1"}


@dataclass(frozen=True)
class GeoHint:
    country: Optional[str] = None
    region: Optional[str] = None
    city: Optional[str] = None


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    # Vercel URL-encodes city names
    value = unquote(value).strip()
    return value or None


def geo_from_headers(headers: Mapping[str, str]) -> GeoHint:
    """
    First edge provider that reports a usable country wins.
    Header names must already be lower-cased.
    """
    for country_header, region_header, city_header in EDGE_GEO_HEADERS:
        country = _clean(headers.get(country_header))
        if country is None or country.upper() in PLACEHOLDER_COUNTRIES:
            continue
        return GeoHint(
            country=country.upper(),
            region=_clean(headers.get(region_header)),
            city=_clean(headers.get(city_header)),
        )
    return GeoHint()
