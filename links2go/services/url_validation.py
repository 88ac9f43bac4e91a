"""Target URL validation and normalization."""

from pydantic import HttpUrl, TypeAdapter, ValidationError

from links2go.exceptions import InvalidUrlError


_http_url = TypeAdapter(HttpUrl)


def normalize_url(url: str) -> str:
    """
    Validate ``url`` and return its normalized form.

    ``HttpUrl`` only accepts http and https, lowercases the host and adds
    the root path to bare hosts (``https://example.com`` becomes
    ``https://example.com/``).

    Raises:
        InvalidUrlError: If the URL is malformed or uses another scheme
    """
    if not isinstance(url, str) or not url.strip():
        raise InvalidUrlError("URL is required")

    try:
        return str(_http_url.validate_python(url.strip()))
    except ValidationError:
        raise InvalidUrlError("Invalid URL: only absolute http and https URLs are allowed")
