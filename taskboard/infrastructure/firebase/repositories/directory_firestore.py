"""Firestore-backed directory provider (implements IDirectoryProvider).

Reads the organizations/{organization_id} document, whose `president`,
`officers`, `members` and `committees` fields describe who belongs to the
organization. Member entries are maps with `id`, `name` and an optional
`profilePicUrl`; committees carry `id`, `name`, `head` and `members`.
"""

from __future__ import annotations

from typing import Any

import httpx

from taskboard.domain.entities.organization import (
    CommitteeEntity,
    MemberProfile,
    OrganizationDirectory,
)
from taskboard.infrastructure.exceptions import StorageUnavailableException
from taskboard.infrastructure.firebase._rest_client import FirestoreRESTClient
from taskboard.infrastructure.firebase.collections import organization_path
from taskboard.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


def _member(entry: Any) -> MemberProfile | None:
    if not isinstance(entry, dict) or not entry.get("id"):
        return None
    return MemberProfile(
        id=str(entry["id"]),
        name=entry.get("name") or "",
        profile_ref=entry.get("profilePicUrl") or None,
    )


def _committee(entry: Any) -> CommitteeEntity | None:
    if not isinstance(entry, dict) or not entry.get("id"):
        return None
    head = entry.get("head") or {}
    member_ids = tuple(
        str(m["id"]) for m in entry.get("members") or [] if isinstance(m, dict) and m.get("id")
    )
    return CommitteeEntity(
        id=str(entry["id"]),
        name=entry.get("name") or "",
        head_id=str(head["id"]) if isinstance(head, dict) and head.get("id") else None,
        member_ids=member_ids,
    )


def directory_from_document(data: dict[str, Any]) -> OrganizationDirectory:
    """Build a directory snapshot from an organization document."""
    entries: list[Any] = [data.get("president")]
    entries.extend(data.get("officers") or [])
    entries.extend(data.get("members") or [])
    for committee in data.get("committees") or []:
        if isinstance(committee, dict):
            entries.append(committee.get("head"))
            entries.extend(committee.get("members") or [])

    members: dict[str, MemberProfile] = {}
    for entry in entries:
        profile = _member(entry)
        # First listing wins: roster entries come before committee copies.
        if profile is not None and profile.id not in members:
            members[profile.id] = profile

    committees = [
        c for c in (_committee(e) for e in data.get("committees") or []) if c is not None
    ]
    return OrganizationDirectory(members=list(members.values()), committees=committees)


class FirestoreDirectoryProvider:
    """Loads the organization directory from Firestore on every call."""

    def __init__(self, client: FirestoreRESTClient) -> None:
        self._client = client

    async def load(self, organization_id: str) -> OrganizationDirectory:
        try:
            snapshot = await self._client.document(organization_path(organization_id)).get()
        except httpx.HTTPError as e:
            raise StorageUnavailableException("load_directory", str(e)) from e
        if snapshot is None:
            logger.warning("Organization not found (organization_id=%s)", organization_id)
            return OrganizationDirectory()
        return directory_from_document(snapshot.to_dict())
