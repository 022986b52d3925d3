"""Pydantic schemas for the data.gouv.fr payloads handled by the client.

Only the fields the client relies on are modelled; everything else the
API returns is kept untouched, either because the schema allows extra
fields or through :attr:`Resource.rest`.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

UPDATABLE_FIELDS = frozenset({"description", "title", "url"})


class Resource(BaseModel):
    """A file or remote link attached to a dataset.

    Attributes
    ----------
    id : str
        Identifier assigned by data.gouv.fr.  Never changes.
    created_at, last_modified : str, optional
        ISO 8601 timestamps as sent by the API.
    title, description, format, url : str, optional
        Resource metadata.  ``format`` is the file extension hint.
    latest : str, optional
        Permanent URL always pointing at the latest version.
    rest : dict
        The full payload the API returned for this resource.
    """

    model_config = ConfigDict(extra="ignore")

    id: str
    created_at: Optional[str] = None
    last_modified: Optional[str] = None
    title: Optional[str] = None
    latest: Optional[str] = None
    url: Optional[str] = None
    description: Optional[str] = None
    format: Optional[str] = None
    rest: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_api(cls, payload: Dict[str, Any]) -> "Resource":
        """Build a record from a raw API payload, keeping the payload in ``rest``."""
        return cls.model_validate({**payload, "rest": dict(payload)})


class DatasetMetadata(BaseModel):
    """The part of a dataset payload needed to list its resources."""

    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    title: Optional[str] = None
    resources: List[Dict[str, Any]] = Field(default_factory=list)
