from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from promptdesk.db.models import User
from promptdesk.services.errors import StorageError

log = logging.getLogger(__name__)


def _get_subject(user_payload: dict) -> str:
    return user_payload.get("sub") or user_payload.get("email") or "unknown-user"


def _find(db: Session, subject: str) -> Optional[User]:
    return db.query(User).filter(User.subject == subject).first()


def get_or_create_user(db: Session, user_payload: dict) -> User:
    """Map a verified identity token onto an integer user row."""
    subject = _get_subject(user_payload)
    try:
        user = _find(db, subject)
        if user is None:
            user = User(
                subject=subject,
                email=user_payload.get("email"),
                name=user_payload.get("name"),
            )
            db.add(user)
            try:
                db.commit()
            except IntegrityError:
                # a concurrent first request registered the same subject
                db.rollback()
                user = _find(db, subject)
                if user is None:
                    raise
            else:
                db.refresh(user)
                log.info("Registered user id=%s", user.id)
    except SQLAlchemyError as exc:
        db.rollback()
        raise StorageError("Could not resolve user") from exc
    return user
