"""Utility functions for mongo-migrate.

Helpers shared by the prompt layer, the orchestrator and subprocess logging
so that connection strings are rendered the same way everywhere.
"""

import re
from collections.abc import Iterable

from .constants import MONGO_URI_SCHEMES

_CREDENTIALS_PATTERN = re.compile(r"//([^:/@]+):([^@]+)@")


def mask_connection_string(uri: str) -> str:
    """Redact the ``user:password@`` authority segment of a connection string.

    Masking is idempotent and strings without credentials are returned unchanged.

    Example:
        >>> mask_connection_string("mongodb://admin:s3cret@db:27017")
        'mongodb://***:***@db:27017'
    """
    return _CREDENTIALS_PATTERN.sub("//***:***@", uri)


def mask_arguments(args: Iterable[str]) -> list[str]:
    """Mask every argument that looks like a connection string."""
    return [mask_connection_string(arg) if "://" in arg else arg for arg in args]


def validate_mongo_uri(uri: str) -> tuple[bool, str]:
    """Check that a URI uses a recognized MongoDB scheme.

    Returns:
        Tuple of (is_valid, error_message)
    """
    if uri.strip().startswith(MONGO_URI_SCHEMES):
        return True, ""
    return False, "Please enter a valid MongoDB URI (mongodb:// or mongodb+srv://)"


def format_item_list(items: Iterable[str], limit: int | None = None) -> str:
    """Join item names for display, truncating after ``limit`` names."""
    names = list(items)
    if limit is not None and len(names) > limit:
        return f"{', '.join(names[:limit])}... (+{len(names) - limit} more)"
    return ", ".join(names)
