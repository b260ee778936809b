"""Conversation assembly.

Rebuilds the exact message list sent to the completion endpoint for one
project: the active system prompt, a fixed window of prior turns, and the new
user utterance. Reads only.
"""
from __future__ import annotations

import logging
from typing import Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from promptdesk.db.models import ChatMessage, Prompt
from promptdesk.services.errors import StorageError, ValidationError

log = logging.getLogger(__name__)

HISTORY_WINDOW = 10


def require_text(text: Optional[str]) -> str:
    if text is None or text == "":
        raise ValidationError("Message is required")
    return text


class HistoryAssembler:
    """Builds `[{role, content}, ...]` for a project whose ownership is already checked."""

    def __init__(self, db: Session, window: int = HISTORY_WINDOW):
        self.db = db
        self.window = window

    def active_prompt(self, project_id: int) -> Optional[Prompt]:
        # the newest prompt wins; there is no explicit "active" flag
        return (
            self.db.query(Prompt)
            .filter(Prompt.project_id == project_id)
            .order_by(Prompt.created_at.desc(), Prompt.id.desc())
            .first()
        )

    def recent_messages(self, project_id: int) -> List[ChatMessage]:
        rows = (
            self.db.query(ChatMessage)
            .filter(ChatMessage.project_id == project_id)
            .order_by(ChatMessage.created_at.desc(), ChatMessage.id.desc())
            .limit(self.window)
            .all()
        )
        rows.reverse()
        return rows

    def assemble(self, project_id: int, new_user_text: str) -> List[Dict[str, str]]:
        require_text(new_user_text)

        try:
            prompt = self.active_prompt(project_id)
            history = self.recent_messages(project_id)
        except SQLAlchemyError as exc:
            raise StorageError("Could not read conversation history") from exc

        messages: List[Dict[str, str]] = []
        if prompt is not None:
            messages.append({"role": "system", "content": prompt.content})

        for msg in history:
            messages.append({"role": msg.role, "content": msg.content})

        messages.append({"role": "user", "content": new_user_text})

        log.debug(
            "Assembled project=%s system=%s history=%s total=%s",
            project_id,
            prompt is not None,
            len(history),
            len(messages),
        )
        return messages
