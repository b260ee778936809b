from __future__ import annotations

from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from promptdesk.db.models import Project, Prompt
from promptdesk.services.errors import NotFoundError, StorageError, ValidationError
from promptdesk.services.projects import commit_or_raise, get_owned_project


def list_prompts(db: Session, project_id: int, user_id: int) -> List[Prompt]:
    """Newest first; the first element is the prompt used for chat turns."""
    get_owned_project(db, project_id, user_id)
    try:
        return (
            db.query(Prompt)
            .filter(Prompt.project_id == project_id)
            .order_by(Prompt.created_at.desc(), Prompt.id.desc())
            .all()
        )
    except SQLAlchemyError as exc:
        raise StorageError("Could not list prompts") from exc


def get_owned_prompt(db: Session, prompt_id: int, user_id: int) -> Prompt:
    try:
        prompt = (
            db.query(Prompt)
            .join(Project, Prompt.project_id == Project.id)
            .filter(Prompt.id == prompt_id, Project.user_id == user_id)
            .first()
        )
    except SQLAlchemyError as exc:
        raise StorageError("Could not load prompt") from exc
    if prompt is None:
        raise NotFoundError("Prompt not found")
    return prompt


def create_prompt(
    db: Session,
    user_id: int,
    project_id: Optional[int],
    name: Optional[str],
    content: Optional[str],
) -> Prompt:
    if not project_id or not name or not content:
        raise ValidationError("Project ID, name, and content are required")
    get_owned_project(db, project_id, user_id)

    prompt = Prompt(project_id=project_id, name=name, content=content)
    db.add(prompt)
    commit_or_raise(db, "create prompt")
    db.refresh(prompt)
    return prompt


def update_prompt(
    db: Session,
    prompt_id: int,
    user_id: int,
    name: Optional[str] = None,
    content: Optional[str] = None,
) -> Prompt:
    prompt = get_owned_prompt(db, prompt_id, user_id)
    if name is not None:
        if not name.strip():
            raise ValidationError("Prompt name cannot be empty")
        prompt.name = name
    if content is not None:
        # empty content is allowed and still becomes an (empty) system message
        prompt.content = content
    commit_or_raise(db, "update prompt")
    db.refresh(prompt)
    return prompt


def delete_prompt(db: Session, prompt_id: int, user_id: int) -> None:
    prompt = get_owned_prompt(db, prompt_id, user_id)
    db.delete(prompt)
    commit_or_raise(db, "delete prompt")
