"""Client for the resource endpoints of the data.gouv.fr API.

The functions and classes defined in this module create, update, list
and delete the resources (files or remote links) attached to a
dataset.  The client holds no configuration: the API base URL, the
dataset id and the API key are passed on every call, so a single
instance can serve several datasets or platforms (production, demo).

Every call is a single HTTP request, except
:meth:`DatagouvResourceClient.create_resource_from_file` which uploads
the file then renames the created resource.  Nothing is retried and
errors are never turned into empty results: failures are logged where
useful and raised as :mod:`datagouv_resources.errors` exceptions.

Examples
--------
>>> from datagouv_resources.client import get_matching_resources, delete_resource_dataset_pattern
>>> base_url = "https://demo.data.gouv.fr/api/1"
>>> for res in get_matching_resources("my-dataset-id", base_url, r"^2024"):
...     print(res.id, res.title)
>>> delete_resource_dataset_pattern(
...     "my-dataset-id", base_url, api_key, r"\\.tmp$", confirm_delete=False, verbose=True
... )  # dry run: only lists what would be deleted

Note
----
The endpoints used here belong to version 1 of the API.  See
https://doc.data.gouv.fr/api/reference/ for the full reference.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Dict, List, Mapping, Optional, Pattern, Union

import requests
from pydantic import ValidationError

from . import config
from .errors import (
    DecodeError,
    DeletionFailedError,
    UploadFailedError,
    UpstreamHTTPError,
)
from .models import UPDATABLE_FIELDS, DatasetMetadata, Resource
from .utils import file_base_name, join_url

# Module-level logger; the calling application decides where records go.
logger = logging.getLogger(__name__)

# Payload fields of a remote resource that the caller cannot choose.
REMOTE_RESOURCE_DEFAULTS = {
    "filetype": "remote",
    "format": "csv",
    "mime": "text/csv",
    "type": "main",
}

ResourceRef = Union[Resource, str]


def _create_session() -> requests.Session:
    """Return a `requests.Session` identifying the client.

    No retry adapter is mounted: a failed call is reported to the
    caller straight away.
    """
    session = requests.Session()
    session.headers.update({"User-Agent": config.USER_AGENT})
    return session


def _upstream_message(response: requests.Response) -> str:
    """Extract the error message the API put in ``response``, if any."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return response.text or str(response.reason or "")


def _resource_id(resource: ResourceRef) -> str:
    """Return the id of ``resource``, which may already be a plain id."""
    return resource.id if isinstance(resource, Resource) else str(resource)


class DatagouvResourceClient:
    """Client for the dataset resource endpoints of data.gouv.fr.

    The instance only owns the HTTP transport (a `requests.Session`)
    and the request timeout.  It keeps no state between calls and can
    be shared freely.
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        timeout: float = config.REQUEST_TIMEOUT,
    ) -> None:
        self.session = session or _create_session()
        self.timeout = timeout

    # ------------------------------------------------------------------
    # transport helpers

    def _send(
        self, method: str, url: str, api_key: Optional[str] = None, **kwargs: Any
    ) -> requests.Response:
        """Send a request and raise :class:`UpstreamHTTPError` on failure.

        Only transport errors and 4xx/5xx statuses count as failures;
        any other status is handed back to the caller.
        """
        headers = {"X-API-KEY": api_key} if api_key is not None else {}
        logger.debug("%s %s", method, url)
        try:
            response = self.session.request(
                method, url, headers=headers, timeout=self.timeout, **kwargs
            )
            response.raise_for_status()
        except requests.HTTPError as exc:
            status_code = exc.response.status_code if exc.response is not None else None
            message = _upstream_message(exc.response) if exc.response is not None else str(exc)
            raise UpstreamHTTPError(url, status_code, message) from exc
        except requests.RequestException as exc:
            raise UpstreamHTTPError(url, None, str(exc)) from exc
        return response

    @staticmethod
    def _json(response: requests.Response, url: str) -> Dict[str, Any]:
        """Decode ``response`` as a JSON object or raise :class:`DecodeError`."""
        try:
            body = response.json()
        except ValueError as exc:
            raise DecodeError(url, "body is not valid JSON") from exc
        if not isinstance(body, dict):
            raise DecodeError(url, f"expected a JSON object, got {type(body).__name__}")
        return body

    @staticmethod
    def _to_resource(payload: Dict[str, Any], url: str) -> Resource:
        """Build a :class:`Resource` from ``payload`` or raise :class:`DecodeError`."""
        try:
            return Resource.from_api(payload)
        except ValidationError as exc:
            raise DecodeError(url, str(exc), payload) from exc

    # ------------------------------------------------------------------
    # datasets

    def get_dataset_metadata(self, base_url: str, dataset_id: Optional[str]) -> Dict[str, Any]:
        """Return the dataset payload exactly as the API sent it.

        ``dataset_id`` is not checked: a missing or wrong id is reported
        by the API and surfaces as :class:`UpstreamHTTPError`.
        """
        url = join_url(base_url, "datasets", dataset_id)
        return self._json(self._send("GET", url), url)

    # ------------------------------------------------------------------
    # resource creation

    def create_resource_remote(
        self,
        base_url: str,
        dataset_id: str,
        title: str,
        description: str,
        url: str,
        api_key: str,
    ) -> Resource:
        """Register a remote file (a link) as a new resource of the dataset.

        The resource is always declared as a CSV file (``format`` and
        ``mime`` are fixed), whatever ``url`` points to.
        """
        endpoint = join_url(base_url, "datasets", dataset_id, "resources")
        payload = {
            **REMOTE_RESOURCE_DEFAULTS,
            "description": description,
            "title": title,
            "url": url,
        }
        response = self._send("POST", endpoint, api_key=api_key, json=payload)
        resource = self._to_resource(self._json(response, endpoint), endpoint)
        logger.info("Remote resource %s created: %s", resource.id, resource.title)
        return resource

    def create_resource_from_file(
        self, file_path: str, base_url: str, dataset_id: str, api_key: str
    ) -> Resource:
        """Upload a local file as a new resource, then rename it.

        The API derives the resource title from the upload, and that
        title does not always match the file name.  The resource is
        therefore renamed to the exact base name of ``file_path`` right
        after the upload, so that :meth:`get_matching_resources` finds
        it by name later.

        Parameters
        ----------
        file_path : str
            Path of the local file to upload.
        base_url, dataset_id, api_key : str
            Target platform, dataset and credential.

        Returns
        -------
        Resource
            The resource as returned by the rename call.

        Raises
        ------
        UploadFailedError
            If the upload response does not report success.  No rename
            is attempted in that case.
        UpstreamHTTPError
            If either request fails.  A failing rename leaves the
            uploaded resource in place with its original title.
        """
        endpoint = join_url(base_url, "datasets", dataset_id, "upload")
        file_name = file_base_name(file_path)
        logger.debug("Creating resource for %s", file_path)
        with open(file_path, "rb") as fh:
            response = self._send(
                "POST", endpoint, api_key=api_key, files={"file": (file_name, fh)}
            )
        body = self._json(response, endpoint)
        # Any falsy flag (missing, false, null, "") means the upload failed.
        if not body.get("success"):
            logger.error("Resource creation failed for %s: %s", file_path, body)
            raise UploadFailedError(str(file_path), body)

        created = self._to_resource(body, endpoint)
        logger.debug("Resource created: %s", created.title)
        renamed = self.update_resource(
            created, base_url, dataset_id, api_key, {"title": file_name}
        )
        logger.info("Resource %s created and renamed to %s", renamed.id, renamed.title)
        return renamed

    # ------------------------------------------------------------------
    # resource updates

    def update_resource(
        self,
        resource: ResourceRef,
        base_url: str,
        dataset_id: str,
        api_key: str,
        fields: Mapping[str, str],
    ) -> Resource:
        """Update some of the ``description``, ``title`` and ``url`` of a resource.

        Only the keys present in ``fields`` are sent; the API leaves the
        other fields unchanged.

        Raises
        ------
        ValueError
            If ``fields`` holds anything else than the three keys above.
        """
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(
                f"Cannot update resource fields {sorted(unknown)}; "
                f"allowed: {sorted(UPDATABLE_FIELDS)}"
            )
        endpoint = join_url(
            base_url, "datasets", dataset_id, "resources", _resource_id(resource)
        )
        response = self._send("PUT", endpoint, api_key=api_key, json=dict(fields))
        return self._to_resource(self._json(response, endpoint), endpoint)

    def update_resource_description(
        self,
        resource: ResourceRef,
        base_url: str,
        dataset_id: str,
        description: str,
        api_key: str,
    ) -> Resource:
        """Replace the description of a resource, leaving its other fields alone."""
        return self.update_resource(
            resource, base_url, dataset_id, api_key, {"description": description}
        )

    # ------------------------------------------------------------------
    # deletion

    def delete_resource(
        self, resource_id: str, base_url: str, dataset_id: str, api_key: str
    ) -> None:
        """Delete a resource.

        Only an HTTP 204 answer counts as success.  Anything else,
        including another 2xx status, raises :class:`DeletionFailedError`
        carrying the status and the upstream message.
        """
        endpoint = join_url(base_url, "datasets", dataset_id, "resources", resource_id)
        try:
            response = self._send("DELETE", endpoint, api_key=api_key)
        except UpstreamHTTPError as exc:
            logger.error(
                "Resource deletion failed for %s : status=%s message=%s",
                resource_id,
                exc.status_code,
                exc.message,
            )
            raise DeletionFailedError(resource_id, exc.status_code, exc.message) from exc

        if response.status_code != 204:
            message = _upstream_message(response)
            logger.error(
                "Resource deletion failed for %s : status=%s message=%s",
                resource_id,
                response.status_code,
                message,
            )
            raise DeletionFailedError(resource_id, response.status_code, message)
        logger.debug("Resource deletion success for %s", resource_id)

    # ------------------------------------------------------------------
    # pattern based helpers

    def get_matching_resources(
        self,
        dataset_id: str,
        base_url: str,
        pattern: Union[str, Pattern[str]],
        verbose: bool = False,
    ) -> List[Resource]:
        """Return the resources of a dataset whose title matches ``pattern``.

        ``pattern`` is a regular expression searched anywhere in the
        title (``re.search``), so ``"2024"`` matches ``"export-2024.csv"``;
        anchor it to match whole titles.  The API order is preserved.
        Resources without a title never match.
        """
        metadata = self.get_dataset_metadata(base_url, dataset_id)
        try:
            dataset = DatasetMetadata.model_validate(metadata)
        except ValidationError as exc:
            raise DecodeError(join_url(base_url, "datasets", dataset_id), str(exc), metadata) from exc

        regex = re.compile(pattern)
        matches = [
            self._to_resource(payload, join_url(base_url, "datasets", dataset_id))
            for payload in dataset.resources
            if isinstance(payload.get("title"), str) and regex.search(payload["title"])
        ]
        if verbose:
            logger.info(
                "%d resource(s) of dataset %s matching %r",
                len(matches),
                dataset_id,
                regex.pattern,
            )
            for resource in matches:
                logger.info("  %s  %s", resource.id, resource.title)
        return matches

    def delete_resource_dataset_pattern(
        self,
        dataset_id: str,
        base_url: str,
        api_key: str,
        pattern: Union[str, Pattern[str]],
        confirm_delete: bool = False,
        verbose: bool = False,
    ) -> List[Resource]:
        """Delete every resource whose title matches ``pattern``.

        Deletions run one after the other, in the order the API lists
        the resources.  The first failure is raised and the remaining
        resources are left alone.

        With ``confirm_delete`` false nothing is deleted: the returned
        list is what *would* have been deleted.  Either way the full
        list of matches is returned.
        """
        matches = self.get_matching_resources(dataset_id, base_url, pattern, verbose=verbose)
        if not confirm_delete:
            if verbose:
                logger.info("Dry run: %d resource(s) left untouched", len(matches))
            return matches
        for resource in matches:
            self.delete_resource(resource.id, base_url, dataset_id, api_key)
            if verbose:
                logger.info("Deleted resource %s (%s)", resource.id, resource.title)
        return matches


def get_dataset_metadata(base_url: str, dataset_id: Optional[str]) -> Dict[str, Any]:
    """Module-level convenience wrapper around :meth:`DatagouvResourceClient.get_dataset_metadata`."""
    return DatagouvResourceClient().get_dataset_metadata(base_url, dataset_id)


def create_resource_remote(
    base_url: str, dataset_id: str, title: str, description: str, url: str, api_key: str
) -> Resource:
    """Module-level convenience wrapper around :meth:`DatagouvResourceClient.create_resource_remote`."""
    return DatagouvResourceClient().create_resource_remote(
        base_url, dataset_id, title, description, url, api_key
    )


def create_resource_from_file(
    file_path: str, base_url: str, dataset_id: str, api_key: str
) -> Resource:
    """Module-level convenience wrapper around :meth:`DatagouvResourceClient.create_resource_from_file`."""
    return DatagouvResourceClient().create_resource_from_file(
        file_path, base_url, dataset_id, api_key
    )


def update_resource(
    resource: ResourceRef,
    base_url: str,
    dataset_id: str,
    api_key: str,
    fields: Mapping[str, str],
) -> Resource:
    """Module-level convenience wrapper around :meth:`DatagouvResourceClient.update_resource`."""
    return DatagouvResourceClient().update_resource(
        resource, base_url, dataset_id, api_key, fields
    )


def update_resource_description(
    resource: ResourceRef, base_url: str, dataset_id: str, description: str, api_key: str
) -> Resource:
    """Module-level convenience wrapper around :meth:`DatagouvResourceClient.update_resource_description`."""
    return DatagouvResourceClient().update_resource_description(
        resource, base_url, dataset_id, description, api_key
    )


def delete_resource(resource_id: str, base_url: str, dataset_id: str, api_key: str) -> None:
    """Module-level convenience wrapper around :meth:`DatagouvResourceClient.delete_resource`."""
    DatagouvResourceClient().delete_resource(resource_id, base_url, dataset_id, api_key)


def get_matching_resources(
    dataset_id: str, base_url: str, pattern: Union[str, Pattern[str]], verbose: bool = False
) -> List[Resource]:
    """Module-level convenience wrapper around :meth:`DatagouvResourceClient.get_matching_resources`."""
    return DatagouvResourceClient().get_matching_resources(
        dataset_id, base_url, pattern, verbose=verbose
    )


def delete_resource_dataset_pattern(
    dataset_id: str,
    base_url: str,
    api_key: str,
    pattern: Union[str, Pattern[str]],
    confirm_delete: bool = False,
    verbose: bool = False,
) -> List[Resource]:
    """Module-level convenience wrapper around :meth:`DatagouvResourceClient.delete_resource_dataset_pattern`.

    A single client instance serves the listing and every deletion.
    """
    return DatagouvResourceClient().delete_resource_dataset_pattern(
        dataset_id,
        base_url,
        api_key,
        pattern,
        confirm_delete=confirm_delete,
        verbose=verbose,
    )


__all__ = [
    "DatagouvResourceClient",
    "get_dataset_metadata",
    "create_resource_remote",
    "create_resource_from_file",
    "update_resource",
    "update_resource_description",
    "delete_resource",
    "get_matching_resources",
    "delete_resource_dataset_pattern",
]
