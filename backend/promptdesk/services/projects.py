from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from promptdesk.db.models import Project
from promptdesk.services.errors import NotFoundError, StorageError, ValidationError

log = logging.getLogger(__name__)


def get_owned_project(db: Session, project_id: int, user_id: int) -> Project:
    """Ownership check: a project that is missing or belongs to someone else is not found."""
    try:
        project = (
            db.query(Project)
            .filter(Project.id == project_id, Project.user_id == user_id)
            .first()
        )
    except SQLAlchemyError as exc:
        raise StorageError("Could not load project") from exc
    if project is None:
        raise NotFoundError("Project not found")
    return project


def list_projects(db: Session, user_id: int) -> List[Project]:
    try:
        return (
            db.query(Project)
            .filter(Project.user_id == user_id)
            .order_by(Project.created_at.desc(), Project.id.desc())
            .all()
        )
    except SQLAlchemyError as exc:
        raise StorageError("Could not list projects") from exc


def commit_or_raise(db: Session, what: str) -> None:
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise StorageError(f"Could not {what}") from exc


def create_project(db: Session, user_id: int, name: Optional[str], description: Optional[str] = None) -> Project:
    if not name or not name.strip():
        raise ValidationError("Project name is required")

    project = Project(user_id=user_id, name=name, description=description or None)
    db.add(project)
    commit_or_raise(db, "create project")
    db.refresh(project)
    log.info("Created project id=%s user=%s", project.id, user_id)
    return project


def update_project(
    db: Session,
    project_id: int,
    user_id: int,
    name: Optional[str],
    description: Optional[str] = None,
) -> Project:
    project = get_owned_project(db, project_id, user_id)
    if not name or not name.strip():
        raise ValidationError("Project name is required")

    project.name = name
    project.description = description or None
    commit_or_raise(db, "update project")
    db.refresh(project)
    return project


def delete_project(db: Session, project_id: int, user_id: int) -> None:
    # prompts, messages and file references go with it (FK cascade)
    project = get_owned_project(db, project_id, user_id)
    db.delete(project)
    commit_or_raise(db, "delete project")
    log.info("Deleted project id=%s user=%s", project_id, user_id)
