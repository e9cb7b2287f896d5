"""
Redirect Service

This service handles URL redirection logic: resolving a shortcode through
the registry (which records the click) and handing back the target URL.
"""

from typing import Optional

from shortlink.services.url_registry import URLRegistry


class RedirectService:
    """
    Service for handling URL redirections.

    Lookup errors (ShortCodeNotFoundError, ShortCodeExpiredError) propagate
    to the caller.
    """

    def __init__(self, registry: URLRegistry):
        self.registry = registry

    async def get_redirect_url(
        self,
        short_code: str,
        referrer: Optional[str] = None,
        location: Optional[str] = None,
    ) -> str:
        """
        Get the original URL for redirection, recording the click.

        Args:
            short_code: Shortcode taken from the request path
            referrer: Referer header of the request, if any
            location: Best-effort location of the visitor, if known
        """
        record = await self.registry.resolve(short_code, source=referrer, location=location)
        return record.original_url
