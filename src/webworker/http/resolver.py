"""
Path resolution.

Turns the raw target of a request line into a storage-relative path and
checks whether it exists. Nothing is opened here.

    "/index.html"   → "index.html"
    "index.html"    → "index.html"      (no separator, nothing stripped)
    "//a.html"      → "/a.html"         (exactly ONE separator is removed)
    "/../secret"    → "../secret"       (no canonicalization, no jail)

Paths are not contained to a root directory. A request for "../secret"
is resolved as-is against the working directory.
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional


logger = logging.getLogger(__name__)


SEPARATOR = "/"


@dataclass(frozen=True)
class Request:
    """
    The one request a connection carries.

    Attributes:
        requested_path: Target exactly as it appeared on the request line.
        resolved_path: Target with one leading separator removed.
        found: Whether resolved_path exists on local storage.
    """
    requested_path: str
    resolved_path: str
    found: bool


def strip_leading_separator(path: str) -> str:
    """Remove exactly one leading path separator, if present."""
    if path.startswith(SEPARATOR):
        return path[len(SEPARATOR):]
    return path


class PathResolver:
    """
    Resolves requested paths against local storage.

    Args:
        base_dir: Directory relative paths are looked up in.
                  None means the process working directory.
    """

    def __init__(self, base_dir: Optional[str] = None):
        self.base_dir = base_dir

    def storage_path(self, resolved_path: str) -> str:
        """Filesystem path for a resolved (storage-relative) path."""
        if not resolved_path or self.base_dir is None:
            return resolved_path
        return os.path.join(self.base_dir, resolved_path)

    def exists(self, resolved_path: str) -> bool:
        # os.path.exists("") is False, so an empty target is never found
        return os.path.exists(self.storage_path(resolved_path))

    def resolve(self, requested_path: str) -> Request:
        """
        Build the Request for a raw requested path.

        Args:
            requested_path: Second token of the request line.

        Returns:
            Immutable Request carrying the existence check result.
        """
        resolved = strip_leading_separator(requested_path)
        found = self.exists(resolved)
        logger.debug(f"Path={resolved!r} found={found}")
        return Request(
            requested_path=requested_path,
            resolved_path=resolved,
            found=found,
        )
