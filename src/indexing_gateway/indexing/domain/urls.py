from typing import Iterable
from urllib.parse import urlparse

ALLOWED_SCHEMES = ("http", "https")


def is_valid_url(url: str) -> bool:
    """Absolute http(s) URL with a host. Anything else is rejected before submission."""
    if not url or not isinstance(url, str):
        return False

    try:
        parsed = urlparse(url.strip())
        hostname = parsed.hostname
    except ValueError:
        return False

    return parsed.scheme in ALLOWED_SCHEMES and bool(hostname)


def all_valid_urls(urls: Iterable[str]) -> bool:
    return all(is_valid_url(url) for url in urls)
