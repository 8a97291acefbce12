"""
URL Utilities for Temma.
"""

from typing import List
from urllib.parse import unquote


def split_path(path: str) -> List[str]:
    """
    Split a URL path into decoded, non-empty chunks.

    Example:
        split_path("/user/show/12/") -> ["user", "show", "12"]
    """
    chunks = []
    for chunk in path.strip("/").split("/"):
        chunk = unquote(chunk).strip()
        if chunk:
            chunks.append(chunk)
    return chunks
