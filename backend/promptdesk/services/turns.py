from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from promptdesk.db.models import ChatMessage
from promptdesk.services.errors import StorageError

log = logging.getLogger(__name__)


class TurnRecorder:
    """Append-only writer for chat turns.

    Every call commits on its own, so a recorded user turn is visible to other
    sessions before the completion call starts. Rows are never updated or
    deleted here.
    """

    def __init__(self, db: Session):
        self.db = db

    def record_user_turn(self, project_id: int, user_id: int, text: str) -> ChatMessage:
        return self._append(project_id, user_id, "user", text)

    def record_assistant_turn(self, project_id: int, user_id: int, text: str) -> ChatMessage:
        return self._append(project_id, user_id, "assistant", text)

    def _append(self, project_id: int, user_id: int, role: str, text: str) -> ChatMessage:
        message = ChatMessage(
            project_id=project_id,
            user_id=user_id,
            role=role,
            content=text,
            created_at=datetime.utcnow(),
        )
        try:
            self.db.add(message)
            self.db.flush()
            message_id = message.id
            # commit ends the transaction; nothing reloads the row afterwards
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise StorageError(f"Could not record {role} turn") from exc

        log.info("Recorded %s turn id=%s project=%s", role, message_id, project_id)
        return message
