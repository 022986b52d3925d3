"""Top level package for the datagouv_resources project.

This package wraps the resource endpoints of the data.gouv.fr API:
creating resources from local files or remote links, updating their
title, description or URL, listing them by title pattern and deleting
them.  All operations live in :mod:`datagouv_resources.client`; the
most common entry points are re-exported here.
"""

from .client import (
    DatagouvResourceClient,
    create_resource_from_file,
    create_resource_remote,
    delete_resource,
    delete_resource_dataset_pattern,
    get_dataset_metadata,
    get_matching_resources,
    update_resource,
    update_resource_description,
)
from .errors import (
    DatagouvError,
    DecodeError,
    DeletionFailedError,
    UploadFailedError,
    UpstreamHTTPError,
)
from .models import Resource

__version__ = "0.1"

__all__ = [
    "DatagouvResourceClient",
    "Resource",
    "create_resource_from_file",
    "create_resource_remote",
    "delete_resource",
    "delete_resource_dataset_pattern",
    "get_dataset_metadata",
    "get_matching_resources",
    "update_resource",
    "update_resource_description",
    "DatagouvError",
    "DecodeError",
    "DeletionFailedError",
    "UploadFailedError",
    "UpstreamHTTPError",
]
