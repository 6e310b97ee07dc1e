"""
Locale code helpers shared by the resolver, the router and the backend adapter.
"""

import re
from typing import Iterable, Optional

# "us", "en-gb", "pt_BR", "zh-hant": two or three letters plus an optional subtag.
LOCALE_SEGMENT_PATTERN = re.compile(r"^[A-Za-z]{2,3}(?:[-_][A-Za-z0-9]{2,4})?$")


def normalize_locale_code(code: Optional[str]) -> Optional[str]:
    """Return the canonical spelling of a locale code, or None if blank."""
    if code is None:
        return None
    normalized = code.strip().casefold().replace("_", "-")
    return normalized or None


def looks_like_locale(segment: Optional[str]) -> bool:
    """True if a path segment is shaped like a locale code."""
    return bool(segment) and LOCALE_SEGMENT_PATTERN.match(segment) is not None


# Unknown segments that still read as a locale: a bare two-letter code, or any
# code with a subtag. A bare three-letter segment ("faq", "tos") reads as a page.
LOCALE_TOKEN_PATTERN = re.compile(r"^(?:[A-Za-z]{2}|[A-Za-z]{2,3}[-_][A-Za-z0-9]{2,4})$")


def is_locale_token(segment: Optional[str], extra_tokens: Iterable[str] = ()) -> bool:
    """True if an unresolved path segment should be replaced rather than prefixed."""
    if not segment:
        return False
    if LOCALE_TOKEN_PATTERN.match(segment):
        return True
    return normalize_locale_code(segment) in extra_tokens
