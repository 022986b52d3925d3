"""Exceptions raised by :mod:`datagouv_resources.client`."""

from __future__ import annotations

from typing import Any, Dict, Optional


class DatagouvError(RuntimeError):
    """Base class for every error raised by this package."""


class UpstreamHTTPError(DatagouvError):
    """Raised when a request to the remote API fails."""

    def __init__(self, url: str, status_code: Optional[int], message: str):
        self.url = url
        self.status_code = status_code
        self.message = message
        super().__init__(f"Request to {url} failed: status={status_code} message={message}")


class UploadFailedError(DatagouvError):
    """Raised when the upload endpoint reports that the upload failed."""

    def __init__(self, file_path: str, payload: Any):
        self.file_path = file_path
        self.payload = payload
        super().__init__("Resource creation failed")


class DeletionFailedError(DatagouvError):
    """Raised when a resource deletion is not answered with HTTP 204.

    The message is always the same; ``status_code`` and
    ``upstream_message`` carry what the remote service answered.
    """

    def __init__(
        self,
        resource_id: str,
        status_code: Optional[int] = None,
        upstream_message: Optional[str] = None,
    ):
        self.resource_id = resource_id
        self.status_code = status_code
        self.upstream_message = upstream_message
        super().__init__("Resource deletion failed")


class DecodeError(DatagouvError):
    """Raised when a response body is not JSON or has an unexpected shape."""

    def __init__(self, url: str, reason: str, body: Optional[Dict[str, Any]] = None):
        self.url = url
        self.reason = reason
        self.body = body
        super().__init__(f"Unexpected response from {url}: {reason}")
