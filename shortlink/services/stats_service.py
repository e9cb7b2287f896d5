"""
Statistics Service

Read-only views over the registry for the statistics endpoints:
per-shortcode details with click history, and a listing of every tracked
URL with summary totals. Expired records are listed too, flagged as such.
"""

from typing import Optional

from shortlink.services.url_registry import URLRegistry


class StatsService:
    """Service for retrieving URL statistics. Performs no mutation."""

    def __init__(self, registry: URLRegistry):
        self.registry = registry

    def _to_stats(self, record, now) -> dict:
        return {
            "original_url": record.original_url,
            "short_code": record.shortcode,
            "short_url": record.short_url,
            "created_at": record.created_at,
            "expires_at": record.expires_at,
            "validity_minutes": record.validity_minutes,
            "is_expired": record.is_expired(now),
            "click_count": record.click_count,
            "clicks": [click.model_dump() for click in record.clicks],
        }

    def get_stats(self, short_code: str) -> Optional[dict]:
        """
        Get statistics for a short URL.

        Returns None if the short code is not tracked.
        """
        record = self.registry.get_stats(short_code)
        if record is None:
            return None
        return self._to_stats(record, self.registry.clock())

    def list_stats(self) -> dict:
        """
        Statistics for every tracked URL, newest first, with totals:
        - total_urls: tracked URLs (expired included)
        - active_urls: URLs that still resolve
        - total_clicks: clicks across all tracked URLs
        """
        now = self.registry.clock()
        records = sorted(self.registry.list_all(), key=lambda r: r.created_at, reverse=True)
        urls = [self._to_stats(record, now) for record in records]

        return {
            "total_urls": len(urls),
            "active_urls": sum(1 for url in urls if not url["is_expired"]),
            "total_clicks": sum(url["click_count"] for url in urls),
            "urls": urls,
        }
