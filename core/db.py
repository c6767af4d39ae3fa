"""Firestore client construction for the read layer."""

from __future__ import annotations

import logging

import firebase_admin
from firebase_admin import credentials, firestore

from config import settings

APP_NAME = "signalboard"
TOKEN_URI = "https://oauth2.googleapis.com/token"

logger = logging.getLogger("signalboard.db")


def create_firestore_client(
    project_id: str | None = None,
    client_email: str | None = None,
    private_key: str | None = None,
):
    """Build one Firestore client from service-account fields.

    Call once at process start and pass the client to the repositories.
    """
    settings.validate_env(
        {
            "FIREBASE_PROJECT_ID": project_id or settings.FIREBASE_PROJECT_ID,
            "FIREBASE_CLIENT_EMAIL": client_email or settings.FIREBASE_CLIENT_EMAIL,
            "FIREBASE_PRIVATE_KEY": private_key or settings.FIREBASE_PRIVATE_KEY,
            "REVALIDATION_SECRET": settings.REVALIDATION_SECRET,
        }
    )
    certificate = credentials.Certificate(
        {
            "type": "service_account",
            "project_id": project_id or settings.FIREBASE_PROJECT_ID,
            "client_email": client_email or settings.FIREBASE_CLIENT_EMAIL,
            "private_key": (private_key or settings.FIREBASE_PRIVATE_KEY).replace("\\n", "\n"),
            "token_uri": TOKEN_URI,
        }
    )

    try:
        app = firebase_admin.get_app(APP_NAME)
    except ValueError:
        app = firebase_admin.initialize_app(certificate, name=APP_NAME)
        logger.info("Initialized Firebase app for project %s", app.project_id)

    return firestore.client(app)
