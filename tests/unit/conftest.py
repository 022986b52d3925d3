import json
import re
import uuid
from typing import Any, Dict, Iterator, List, Optional, Tuple

import pytest
import responses
from requests import PreparedRequest

from datagouv_resources.client import DatagouvResourceClient

BASE_URL = "https://demo.data.gouv.fr/api/1"
DATASET_ID = "5e5f1c2d8b4c41012a8e1234"
API_KEY = "secret-key"

DATASET_URL = f"{BASE_URL}/datasets/{DATASET_ID}"
RESOURCES_URL = f"{DATASET_URL}/resources"
UPLOAD_URL = f"{DATASET_URL}/upload"

CallbackResult = Tuple[int, Dict[str, str], str]


def _json_reply(status_code: int, body: Any) -> CallbackResult:
    return status_code, {"Content-Type": "application/json"}, json.dumps(body)


class FakePlatform:
    """In-memory data.gouv.fr serving one dataset through `responses` callbacks."""

    def __init__(self, mock: responses.RequestsMock, dataset_id: str = DATASET_ID) -> None:
        self.dataset_id = dataset_id
        self.resources: List[Dict[str, Any]] = []
        mock.add_callback(responses.GET, f"{BASE_URL}/datasets/{dataset_id}", callback=self._get_dataset)
        resource_url = re.compile(re.escape(f"{BASE_URL}/datasets/{dataset_id}/resources/") + r"[^/]+$")
        mock.add_callback(responses.PUT, resource_url, callback=self._update_resource)
        mock.add_callback(responses.DELETE, resource_url, callback=self._delete_resource)

    def add_resource(self, title: Optional[str], **fields: Any) -> Dict[str, Any]:
        resource = {
            "id": fields.pop("id", str(uuid.uuid4())),
            "title": title,
            "description": fields.pop("description", ""),
            "url": fields.pop("url", f"https://static.data.gouv.fr/{title}"),
            "format": fields.pop("format", "csv"),
            "created_at": "2024-01-01T00:00:00",
            "last_modified": "2024-01-01T00:00:00",
            "latest": "https://www.data.gouv.fr/fr/datasets/r/latest",
            **fields,
        }
        self.resources.append(resource)
        return resource

    def _find(self, request: PreparedRequest) -> Optional[Dict[str, Any]]:
        resource_id = request.url.rsplit("/", 1)[-1]
        return next((r for r in self.resources if r["id"] == resource_id), None)

    def _authorized(self, request: PreparedRequest) -> bool:
        return request.headers.get("X-API-KEY") == API_KEY

    def _get_dataset(self, request: PreparedRequest) -> CallbackResult:
        return _json_reply(200, {"id": self.dataset_id, "title": "Demo", "resources": self.resources})

    def _update_resource(self, request: PreparedRequest) -> CallbackResult:
        if not self._authorized(request):
            return _json_reply(401, {"message": "Invalid API Key"})
        resource = self._find(request)
        if resource is None:
            return _json_reply(404, {"message": "Resource not found"})
        resource.update(json.loads(request.body))
        return _json_reply(200, resource)

    def _delete_resource(self, request: PreparedRequest) -> CallbackResult:
        if not self._authorized(request):
            return _json_reply(401, {"message": "Invalid API Key"})
        resource = self._find(request)
        if resource is None:
            return _json_reply(404, {"message": "Resource not found"})
        self.resources.remove(resource)
        return 204, {}, ""


@pytest.fixture
def mocked_api() -> Iterator[responses.RequestsMock]:
    with responses.RequestsMock(assert_all_requests_are_fired=False) as mock:
        yield mock


@pytest.fixture
def client() -> DatagouvResourceClient:
    return DatagouvResourceClient(timeout=5)


@pytest.fixture
def platform(mocked_api: responses.RequestsMock) -> FakePlatform:
    return FakePlatform(mocked_api)
