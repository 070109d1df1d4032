"""Fixtures for Firestore adapter tests.

FakeFirestore implements the slice of the Firestore REST v1 API the adapters
use (get, list with paging, create, patch with updateMask and preconditions,
delete) on top of a dict, and is mounted through httpx.MockTransport.
"""

import itertools
import json
from urllib.parse import unquote

import httpx
import pytest

from taskboard.infrastructure.firebase._rest_client import FirestoreRESTClient

PROJECT = "demo-project"
_DOCS_ROOT = f"projects/{PROJECT}/databases/(default)/documents"


class FakeFirestore:
    """In-memory Firestore REST endpoint. Documents are keyed by their path under the database root."""

    def __init__(self) -> None:
        self.docs: dict[str, dict] = {}
        self.update_times: dict[str, str] = {}
        self.requests: list[httpx.Request] = []
        self.conflicts_remaining = 0
        self.on_conflict = None
        self.fail_with: int | None = None
        self._clock = itertools.count(1)
        self._auto_ids = itertools.count(1)

    def _touch(self, path: str) -> None:
        self.update_times[path] = f"2024-01-01T00:00:00.{next(self._clock):06d}Z"

    def put(self, path: str, fields: dict) -> None:
        """Seed a document with already-encoded REST fields."""
        self.docs[path] = fields
        self._touch(path)

    def _document(self, path: str) -> dict:
        return {
            "name": f"{_DOCS_ROOT}/{path}",
            "fields": self.docs[path],
            "updateTime": self.update_times[path],
        }

    def _children(self, collection: str) -> list[str]:
        prefix = f"{collection}/"
        return sorted(
            p for p in self.docs if p.startswith(prefix) and "/" not in p[len(prefix):]
        )

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_with is not None:
            return httpx.Response(self.fail_with, json={"error": {"status": "UNAVAILABLE"}})
        path = unquote(request.url.path).split("/documents/", 1)[1]
        is_collection = len(path.split("/")) % 2 == 1
        params = request.url.params

        if request.method == "GET" and is_collection:
            names = self._children(path)
            size = int(params.get("pageSize", "300"))
            offset = int(params.get("pageToken", "0"))
            body = {"documents": [self._document(p) for p in names[offset : offset + size]]}
            if offset + size < len(names):
                body["nextPageToken"] = str(offset + size)
            return httpx.Response(200, json=body)
        if request.method == "GET":
            if path not in self.docs:
                return httpx.Response(404, json={"error": {"status": "NOT_FOUND"}})
            return httpx.Response(200, json=self._document(path))
        if request.method == "POST":
            doc_id = params.get("documentId") or f"auto{next(self._auto_ids)}"
            doc_path = f"{path}/{doc_id}"
            if doc_path in self.docs:
                return httpx.Response(409, json={"error": {"status": "ALREADY_EXISTS"}})
            self.put(doc_path, json.loads(request.content)["fields"])
            return httpx.Response(200, json=self._document(doc_path))
        if request.method == "PATCH":
            return self._patch(path, params, json.loads(request.content)["fields"])
        if request.method == "DELETE":
            self.docs.pop(path, None)
            self.update_times.pop(path, None)
            return httpx.Response(200, json={})
        return httpx.Response(405)

    def _patch(self, path: str, params: httpx.QueryParams, fields: dict) -> httpx.Response:
        expected_time = params.get("currentDocument.updateTime")
        if params.get("currentDocument.exists") == "true" and path not in self.docs:
            return httpx.Response(404, json={"error": {"status": "NOT_FOUND"}})
        if expected_time is not None:
            if self.conflicts_remaining > 0:
                self.conflicts_remaining -= 1
                if self.on_conflict is not None:
                    self.on_conflict(self)
                self._touch(path)
            if self.update_times.get(path) != expected_time:
                return httpx.Response(
                    400, json={"error": {"status": "FAILED_PRECONDITION"}}
                )
        mask = params.get_list("updateMask.fieldPaths")
        if mask:
            merged = dict(self.docs.get(path, {}))
            for name in mask:
                if name in fields:
                    merged[name] = fields[name]
                else:
                    merged.pop(name, None)
            fields = merged
        self.put(path, fields)
        return httpx.Response(200, json=self._document(path))


@pytest.fixture
def fake_firestore() -> FakeFirestore:
    return FakeFirestore()


@pytest.fixture
async def firestore_client(fake_firestore):
    http = httpx.AsyncClient(transport=httpx.MockTransport(fake_firestore.handler))
    client = FirestoreRESTClient(PROJECT, None, http_client=http)
    yield client
    await http.aclose()
