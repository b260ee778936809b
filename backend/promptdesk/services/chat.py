from __future__ import annotations

import enum
import logging
from typing import Any, Callable, Dict, List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from promptdesk.db.models import ChatMessage
from promptdesk.services.errors import StorageError, ValidationError
from promptdesk.services.history import HistoryAssembler, require_text
from promptdesk.services.llm_services import complete_chat
from promptdesk.services.projects import get_owned_project
from promptdesk.services.turns import TurnRecorder

log = logging.getLogger(__name__)

Completer = Callable[[List[Dict[str, str]]], str]

DEFAULT_HISTORY_LIMIT = 50


class TurnState(str, enum.Enum):
    ASSEMBLING = "assembling"
    CALLING_MODEL = "calling_model"
    RECORDING_REPLY = "recording_reply"
    DONE = "done"
    FAILED = "failed"


def handle_chat_turn(
    db: Session,
    project_id: int,
    user_id: int,
    text: str,
    complete: Completer = complete_chat,
) -> Dict[str, str]:
    """
    Run one chat turn for a project owned by `user_id`.

    The user turn is committed before the completion call and is kept if that
    call fails; no assistant turn is written in that case. Nothing is retried.
    """
    get_owned_project(db, project_id, user_id)
    require_text(text)

    state = TurnState.ASSEMBLING
    try:
        messages = HistoryAssembler(db).assemble(project_id, text)
        recorder = TurnRecorder(db)
        recorder.record_user_turn(project_id, user_id, text)

        state = TurnState.CALLING_MODEL
        log.info("project=%s state=%s messages=%s", project_id, state.value, len(messages))
        reply = complete(messages)

        state = TurnState.RECORDING_REPLY
        recorder.record_assistant_turn(project_id, user_id, reply)
    except Exception as exc:
        log.warning(
            "project=%s state=%s -> %s: %s",
            project_id,
            state.value,
            TurnState.FAILED.value,
            exc,
        )
        raise

    log.info("project=%s state=%s reply_chars=%s", project_id, TurnState.DONE.value, len(reply))
    return {"role": "assistant", "content": reply}


def get_history(
    db: Session,
    project_id: int,
    user_id: int,
    limit: int = DEFAULT_HISTORY_LIMIT,
) -> List[Dict[str, Any]]:
    """Oldest first, at most `limit` rows."""
    if limit < 1:
        raise ValidationError("limit must be a positive integer")
    get_owned_project(db, project_id, user_id)

    try:
        rows = (
            db.query(ChatMessage)
            .filter(ChatMessage.project_id == project_id)
            .order_by(ChatMessage.created_at.asc(), ChatMessage.id.asc())
            .limit(limit)
            .all()
        )
    except SQLAlchemyError as exc:
        raise StorageError("Could not read chat history") from exc

    return [
        {"id": m.id, "role": m.role, "content": m.content, "created_at": m.created_at}
        for m in rows
    ]
