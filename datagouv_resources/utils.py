"""Small helpers shared by the client modules."""

from __future__ import annotations

import os
from typing import Optional


def join_url(*parts: Optional[str]) -> str:
    """Join URL segments with single slashes.

    A ``None`` segment is kept as an empty one, so a missing id is
    still sent to the API, which reports the error.

    >>> join_url("https://www.data.gouv.fr/api/1/", "datasets", "abc")
    'https://www.data.gouv.fr/api/1/datasets/abc'
    """
    return "/".join("" if part is None else str(part).strip("/") for part in parts)


def file_base_name(file_path: str) -> str:
    """Return the part of ``file_path`` after the last separator."""
    return os.path.basename(os.fspath(file_path))
