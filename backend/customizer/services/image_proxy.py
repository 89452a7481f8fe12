"""
Image proxy: fetch a remote product image and return it as an embeddable
``data:`` URL so the rendering surface can composite and capture it
without cross-origin taint.

Failures never propagate; the caller gets the original URL back.
"""

import base64
import logging

import httpx

from customizer.config import IMAGE_PROXY_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)

_DEFAULT_CONTENT_TYPE = "image/png"


async def fetch_as_embeddable(
    url: str | None,
    client: httpx.AsyncClient | None = None,
    timeout: float = IMAGE_PROXY_TIMEOUT_SECONDS,
) -> str | None:
    """Return *url* as a base64 data URL, or *url* itself on any failure."""
    if not url:
        return url
    if url.startswith("data:"):
        return url

    try:
        if client is None:
            async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as own_client:
                response = await own_client.get(url)
        else:
            response = await client.get(url, timeout=timeout)
        response.raise_for_status()
        content_type = response.headers.get("content-type") or _DEFAULT_CONTENT_TYPE
        encoded = base64.b64encode(response.content).decode("ascii")
    except httpx.HTTPStatusError as exc:
        logger.warning("[image_proxy] HTTP %s fetching '%s'", exc.response.status_code, url)
        return url
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        logger.warning("[image_proxy] Request error fetching '%s': %s", url, exc)
        return url
    except Exception as exc:
        logger.error("[image_proxy] Unexpected error fetching '%s': %s", url, exc)
        return url

    return f"data:{content_type};base64,{encoded}"
