"""Host key normalization."""

from urllib.parse import urlparse


def base_url(url: str) -> str:
    """Return ``scheme://authority`` for a URL or bare host name, lower-cased."""
    url = url.strip()
    if "://" not in url:
        url = f"http://{url}"
    parsed = urlparse(url)
    return f"{parsed.scheme}://{parsed.netloc}".lower().rstrip("/")
