"""Firestore client (REST-based, no firebase-admin).

Initialized by the composition root using either FIREBASE_SERVICE_ACCOUNT_KEY
(JSON string) or FIREBASE_SERVICE_ACCOUNT_PATH (file path).
"""

import json
from pathlib import Path

from taskboard.core.config import Settings, get_settings
from taskboard.infrastructure.firebase._rest_client import (
    FirestoreRESTClient,
    _get_credentials,
)
from taskboard.shared.telemetry.logging import get_logger

logger = get_logger(__name__)

_firestore_client: FirestoreRESTClient | None = None


def _load_key_dict(settings: Settings) -> dict | None:
    """Return service account dict from env key or file path."""
    key_json = (
        settings.firebase_service_account_key.get_secret_value()
        if settings.firebase_service_account_key
        else None
    )
    if key_json:
        try:
            return json.loads(key_json)
        except json.JSONDecodeError as e:
            raise ValueError("FIREBASE_SERVICE_ACCOUNT_KEY is not valid JSON") from e
    path = settings.firebase_service_account_path
    if path:
        resolved = Path(path).expanduser().resolve()
        if not resolved.is_file():
            raise ValueError(
                f"FIREBASE_SERVICE_ACCOUNT_PATH set but file not found: {path} (resolved: {resolved})"
            )
        with open(resolved, encoding="utf-8") as f:
            return json.load(f)
    return None


def init_firestore(settings: Settings | None = None) -> FirestoreRESTClient:
    """Create (once) and return the process-wide Firestore client.

    Unlike an optional integration, the task backend cannot run without its
    store, so bad or missing credentials raise instead of returning None.

    Raises:
        ValueError: Credentials missing, malformed, or without project_id.
    """
    global _firestore_client
    if _firestore_client is not None:
        return _firestore_client

    settings = settings or get_settings()
    key_dict = _load_key_dict(settings)
    if not key_dict:
        raise ValueError("Firestore credentials are not configured")
    project_id = key_dict.get("project_id")
    if not project_id:
        raise ValueError("Firebase service account JSON missing 'project_id'")

    cred = _get_credentials(key_dict)
    _firestore_client = FirestoreRESTClient(
        project_id, cred, timeout=settings.firestore_timeout_seconds
    )
    logger.info("Firestore client initialized (project_id=%s)", project_id)
    return _firestore_client


async def close_firestore() -> None:
    """Close the Firestore client's HTTP connection pool."""
    global _firestore_client
    if _firestore_client is not None:
        await _firestore_client.aclose()
        _firestore_client = None
        logger.info("Firestore HTTP client closed")
