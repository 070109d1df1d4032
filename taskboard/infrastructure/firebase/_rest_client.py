"""Thin Firestore REST API client (no firebase-admin).

Uses google-auth for service account tokens and Firestore REST v1.
All HTTP calls use httpx.AsyncClient so they do not block the event loop.
Documents are addressed by slash-separated paths relative to the database
root, so nested collections (tasks/{org}/AllTasks) work the same way as
top-level ones.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import AsyncIterator
from typing import Any
from urllib.parse import quote

import httpx

from taskboard.infrastructure.firebase._rest_encoding import (
    decode_document,
    encode_document,
)

_FIRESTORE_SCOPE = "https://www.googleapis.com/auth/datastore"
_BASE = "https://firestore.googleapis.com/v1"


def _get_credentials(key_dict: dict):
    """Return google.oauth2.service_account.Credentials for Firestore."""
    from google.oauth2 import service_account

    return service_account.Credentials.from_service_account_info(
        key_dict, scopes=[_FIRESTORE_SCOPE]
    )


def _get_access_token(credentials) -> str:
    from google.auth.transport.requests import Request

    if not credentials.valid:
        credentials.refresh(Request())
    return credentials.token


class DocumentExistsError(Exception):
    """Raised when createDocument returns 409 (document ID already exists)."""


class PreconditionFailedError(Exception):
    """Raised when a write's currentDocument precondition does not hold."""


def _is_precondition_failure(resp: httpx.Response) -> bool:
    if resp.status_code == 412:
        return True
    if resp.status_code != 400:
        return False
    try:
        status = resp.json().get("error", {}).get("status")
    except ValueError:
        return False
    return status == "FAILED_PRECONDITION"


async def _request_async(
    client: httpx.AsyncClient,
    url: str,
    method: str = "GET",
    body: dict | None = None,
    access_token: str | None = None,
    params: list[tuple[str, str]] | None = None,
) -> Any:
    """Perform async HTTP request to Firestore REST API. 404 returns None."""
    headers = {"Content-Type": "application/json"}
    if access_token:
        headers["Authorization"] = f"Bearer {access_token}"
    if method in ("GET", "DELETE"):
        resp = await client.request(method, url, headers=headers, params=params)
    elif method in ("PATCH", "POST"):
        resp = await client.request(
            method, url, headers=headers, params=params, json=body
        )
    else:
        raise ValueError(f"Unsupported method: {method!r}")
    if resp.status_code == 404:
        return None
    if resp.status_code == 409:
        raise DocumentExistsError("Document already exists")
    if _is_precondition_failure(resp):
        raise PreconditionFailedError("Document changed since it was read")
    if resp.status_code not in (200, 204):
        resp.raise_for_status()
    if method == "DELETE":
        return {}
    raw = resp.content
    return json.loads(raw.decode()) if raw else {}


def _snapshot_from_document(doc: dict) -> DocumentSnapshot:
    name = doc.get("name", "")
    doc_id = name.split("/")[-1] if name else ""
    return DocumentSnapshot(
        doc_id, decode_document(doc.get("fields")), doc.get("updateTime")
    )


class DocumentSnapshot:
    """Snapshot of a document (id + data + server update time)."""

    def __init__(self, id_: str, data: dict, update_time: str | None = None):
        self.id = id_
        self._data = data
        self.update_time = update_time

    def to_dict(self) -> dict:
        return self._data


class DocumentReference:
    """Reference to a single document; matches firestore API style."""

    def __init__(self, client: FirestoreRESTClient, path: str):
        self._client = client
        self._path = path

    @property
    def id(self) -> str:
        return self._path.split("/")[-1]

    def collection(self, collection_id: str) -> CollectionReference:
        """Subcollection under this document."""
        return CollectionReference(self._client, f"{self._path}/{collection_id}")

    async def set(self, data: dict[str, Any]) -> None:
        """Create or overwrite the document (PATCH with full replace)."""
        await _request_async(
            self._client._http,
            f"{_BASE}/{self._path}",
            method="PATCH",
            body=encode_document(data),
            access_token=await self._client.get_token(),
        )

    async def update(
        self,
        data: dict[str, Any],
        *,
        update_time: str | None = None,
    ) -> DocumentSnapshot | None:
        """Write only the given top-level fields (PATCH with updateMask).

        The document must exist. When `update_time` is given the write only
        applies if the document has not changed since that time; otherwise
        PreconditionFailedError is raised.

        Returns:
            The document as stored after the write, or None if it does not exist.
        """
        params = [("updateMask.fieldPaths", field) for field in data]
        if update_time is not None:
            params.append(("currentDocument.updateTime", update_time))
        else:
            params.append(("currentDocument.exists", "true"))
        out = await _request_async(
            self._client._http,
            f"{_BASE}/{self._path}",
            method="PATCH",
            body=encode_document(data),
            access_token=await self._client.get_token(),
            params=params,
        )
        if out is None:
            return None
        return _snapshot_from_document(out)

    async def get(self) -> DocumentSnapshot | None:
        """Fetch the document; returns None if not found."""
        out = await _request_async(
            self._client._http,
            f"{_BASE}/{self._path}",
            access_token=await self._client.get_token(),
        )
        if not out:
            return None
        return _snapshot_from_document(out)

    async def delete(self, *, must_exist: bool = False) -> None:
        """Delete the document. Idempotent unless `must_exist` is set."""
        params = [("currentDocument.exists", "true")] if must_exist else None
        await _request_async(
            self._client._http,
            f"{_BASE}/{self._path}",
            method="DELETE",
            access_token=await self._client.get_token(),
            params=params,
        )


class CollectionReference:
    """Reference to a collection; matches firestore API style."""

    def __init__(self, client: FirestoreRESTClient, path: str):
        self._client = client
        self._path = path.rstrip("/")

    def document(self, document_id: str) -> DocumentReference:
        return DocumentReference(self._client, f"{self._path}/{document_id}")

    async def create(self, document_id: str, data: dict[str, Any]) -> None:
        """Create a document with the given ID (fail with DocumentExistsError if it exists)."""
        url = f"{_BASE}/{self._path}?documentId={quote(document_id, safe='')}"
        await _request_async(
            self._client._http,
            url,
            method="POST",
            body=encode_document(data),
            access_token=await self._client.get_token(),
        )

    async def add(self, data: dict[str, Any]) -> str:
        """Create a document with a server-assigned ID and return the ID."""
        out = await _request_async(
            self._client._http,
            f"{_BASE}/{self._path}",
            method="POST",
            body=encode_document(data),
            access_token=await self._client.get_token(),
        )
        name = (out or {}).get("name", "")
        return name.split("/")[-1] if name else ""

    async def stream(self, page_size: int = 300) -> AsyncIterator[DocumentSnapshot]:
        """List documents in the collection, following nextPageToken."""
        url = f"{_BASE}/{self._path}"
        page_token: str | None = None
        while True:
            params = [("pageSize", str(page_size))]
            if page_token:
                params.append(("pageToken", page_token))
            out = await _request_async(
                self._client._http,
                url,
                access_token=await self._client.get_token(),
                params=params,
            )
            if not out:
                return
            for doc in out.get("documents", []):
                yield _snapshot_from_document(doc)
            page_token = out.get("nextPageToken")
            if not page_token:
                return


class FirestoreRESTClient:
    """Lightweight Firestore client using REST API (no firebase-admin)."""

    def __init__(
        self,
        project_id: str,
        credentials,
        *,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ) -> None:
        self._project_id = project_id
        self._credentials = credentials
        self._prefix = f"projects/{project_id}/databases/(default)/documents"
        self._http = (
            http_client if http_client is not None else httpx.AsyncClient(timeout=timeout)
        )
        self._owns_http = http_client is None

    async def aclose(self) -> None:
        """Close the HTTP client only if we created it (do not close injected client)."""
        if self._owns_http:
            await self._http.aclose()

    async def get_token(self) -> str | None:
        """Return a valid access token; refreshes in thread pool to avoid blocking.

        A client built without credentials (emulator, tests) sends no token.
        """
        if self._credentials is None:
            return None
        return await asyncio.to_thread(_get_access_token, self._credentials)

    def collection(self, collection_id: str) -> CollectionReference:
        return CollectionReference(self, f"{self._prefix}/{collection_id}")

    def document(self, path: str) -> DocumentReference:
        """Document by slash-separated path, e.g. 'organizations/org-1'."""
        return DocumentReference(self, f"{self._prefix}/{path.strip('/')}")
