"""Firebase Admin access: app bootstrap, ID-token checks and the Firestore handle."""

from __future__ import annotations

import logging
from typing import Any

import firebase_admin
from firebase_admin import auth, credentials, firestore
from firebase_admin import exceptions as firebase_exceptions
from google.cloud.firestore import Client as FirestoreClient

from novelhub.config import get_settings

logger = logging.getLogger(__name__)


def _app_ready() -> bool:
  return bool(firebase_admin._apps)


def initialize_firebase() -> bool:
  """Start the default Firebase app once; return whether an app is available."""
  if _app_ready():
    return True

  settings = get_settings()
  project_id = settings.firebase_project_id
  if not project_id:
    logger.warning("FIREBASE_PROJECT_ID is not set; chapter content and auth are unavailable.")
    return False

  options = {"projectId": project_id}
  key_path = settings.firebase_service_account_json_path
  try:
    if key_path:
      firebase_admin.initialize_app(credentials.Certificate(key_path), options)
    else:
      # Fall back to application default credentials on managed hosts.
      firebase_admin.initialize_app(options=options)
  except (ValueError, OSError) as exc:
    logger.error("Firebase initialization failed for project %s: %s", project_id, exc)
    return False

  logger.info("Firebase app initialized for project %s.", project_id)
  return True


def get_firestore_client() -> FirestoreClient | None:
  """Return the Firestore client for the default app, or None when Firebase is off."""
  if not initialize_firebase():
    return None
  try:
    return firestore.client()
  except Exception as exc:  # noqa: BLE001
    logger.error("Could not open a Firestore client: %s", exc)
    return None


def verify_id_token(id_token: str) -> dict[str, Any] | None:
  """Decode a Firebase ID token; None means the caller is not authenticated."""
  if not initialize_firebase():
    return None
  try:
    return auth.verify_id_token(id_token)
  except (ValueError, firebase_exceptions.FirebaseError) as exc:
    logger.info("Rejected ID token: %s", type(exc).__name__)
    return None
