"""Public base URL resolution for generated links."""

from fastapi import Request

from stacsearch.configs import STAC_API_URL


def determine_endpoint(request: Request) -> str:
    """Return the base URL clients should follow.

    The ``STAC_API_URL`` setting wins, then ``X-Forwarded-Proto`` /
    ``X-Forwarded-Host`` from a proxy, then the URL the request arrived on.
    """
    if STAC_API_URL:
        return STAC_API_URL.rstrip("/")
    forwarded_host = request.headers.get("x-forwarded-host")
    if forwarded_host:
        proto = request.headers.get("x-forwarded-proto", request.url.scheme)
        return f"{proto}://{forwarded_host}"
    return str(request.base_url).rstrip("/")
