"""
Services module.

- url_registry: shortcode registry (creation, resolution, expiry, persistence)
- cleanup_task: periodic purge of expired records
- redirect_service / stats_service: thin views used by the API layer
"""
