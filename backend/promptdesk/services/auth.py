import json
import logging
from typing import Optional

from fastapi import HTTPException
from google.auth import exceptions as google_exceptions
from google.auth.transport.requests import Request
from google.oauth2 import id_token

from promptdesk.config import get_settings

log = logging.getLogger(__name__)


def _load_client_id_from_file(path: str) -> Optional[str]:
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
            return data["web"]["client_id"]
    except (OSError, ValueError, KeyError, TypeError):
        return None


def get_google_client_id() -> Optional[str]:
    settings = get_settings()
    return settings.google_client_id or _load_client_id_from_file(settings.google_client_secret_file)


def verify_google_token(token: str) -> dict:
    client_id = get_google_client_id()
    if not client_id:
        log.error(
            "Google client id missing; secret file: %s",
            get_settings().google_client_secret_file,
        )
        raise HTTPException(status_code=500, detail="Google client id not configured")

    try:
        payload = id_token.verify_oauth2_token(token, Request(), client_id)
    except (ValueError, google_exceptions.GoogleAuthError):
        raise HTTPException(status_code=401, detail="Invalid Google token")

    if payload.get("aud") != client_id:
        raise HTTPException(status_code=401, detail="Token audience mismatch")

    return payload
