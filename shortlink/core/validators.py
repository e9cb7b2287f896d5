"""
Input Validators

Syntactic checks for the two kinds of user input the registry accepts:
original URLs and custom shortcodes. No network access is performed.
"""

import re
from urllib.parse import urlparse

URL_PREFIX_PATTERN = re.compile(r"^https?://.+")
SHORTCODE_PATTERN = re.compile(r"^[A-Za-z0-9]{3,20}$")
WHITESPACE_PATTERN = re.compile(r"\s")


def validate_url(url: str) -> bool:
    """
    Validate that a string is an absolute http(s) URL.

    The string must start with ``http://`` or ``https://`` (lowercase, as
    typed by the user) and must parse with a non-empty host and, when
    present, a numeric port in range.

    Args:
        url: Candidate URL

    Returns:
        True if valid, False otherwise
    """
    if not url or not isinstance(url, str):
        return False

    if not URL_PREFIX_PATTERN.match(url):
        return False

    if WHITESPACE_PATTERN.search(url):
        return False

    try:
        result = urlparse(url)
        if not result.netloc or not result.hostname:
            return False
        # Raises ValueError for non-numeric or out of range ports
        result.port
    except ValueError:
        return False

    return True


def validate_shortcode(short_code: str) -> bool:
    """True iff the shortcode is 3-20 ASCII letters or digits."""
    if not isinstance(short_code, str):
        return False
    return SHORTCODE_PATTERN.fullmatch(short_code) is not None


def sanitize_short_code(short_code: str):
    """
    Strip surrounding whitespace from a shortcode taken from a request path.

    Returns:
        The stripped shortcode if it has a valid format, None otherwise
    """
    if not short_code or not isinstance(short_code, str):
        return None

    short_code = short_code.strip()
    if not validate_shortcode(short_code):
        return None

    return short_code
