from __future__ import annotations

import logging
import os
from typing import Any, BinaryIO, Callable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from promptdesk.config import get_settings
from promptdesk.db.models import ProjectFile
from promptdesk.services.errors import (
    NotFoundError,
    PayloadTooLargeError,
    StorageError,
    ValidationError,
)
from promptdesk.services.llm_services import delete_remote_file, upload_remote_file
from promptdesk.services.projects import commit_or_raise, get_owned_project

log = logging.getLogger(__name__)


def list_files(db: Session, project_id: int, user_id: int) -> List[ProjectFile]:
    get_owned_project(db, project_id, user_id)
    try:
        return (
            db.query(ProjectFile)
            .filter(ProjectFile.project_id == project_id)
            .order_by(ProjectFile.uploaded_at.desc(), ProjectFile.id.desc())
            .all()
        )
    except SQLAlchemyError as exc:
        raise StorageError("Could not list files") from exc


def _measure(fileobj: BinaryIO) -> int:
    fileobj.seek(0, os.SEEK_END)
    size = fileobj.tell()
    fileobj.seek(0)
    return size


def upload_file(
    db: Session,
    project_id: int,
    user_id: int,
    file_name: Optional[str],
    fileobj: Optional[BinaryIO],
    remote_upload: Optional[Callable[[str, BinaryIO], Any]] = None,
) -> ProjectFile:
    """Send a file to remote storage and keep a reference to it on the project."""
    get_owned_project(db, project_id, user_id)
    if fileobj is None or not file_name:
        raise ValidationError("No file uploaded")

    size = _measure(fileobj)
    limit = get_settings().max_upload_bytes
    if size > limit:
        raise PayloadTooLargeError(f"File exceeds the upload limit of {limit} bytes")

    remote_upload = remote_upload or upload_remote_file
    remote = remote_upload(file_name, fileobj)

    record = ProjectFile(
        project_id=project_id,
        file_id=remote.id,
        file_name=file_name,
        file_size=size,
    )
    db.add(record)
    commit_or_raise(db, "save file reference")
    db.refresh(record)
    log.info("Stored file_id=%s for project=%s (%s bytes)", record.file_id, project_id, size)
    return record


def delete_file(
    db: Session,
    project_id: int,
    file_pk: int,
    user_id: int,
    remote_delete: Optional[Callable[[str], bool]] = None,
) -> None:
    """Drop a file reference. The remote copy is removed when possible; a
    remote failure does not keep the local reference alive."""
    get_owned_project(db, project_id, user_id)
    try:
        record = (
            db.query(ProjectFile)
            .filter(ProjectFile.id == file_pk, ProjectFile.project_id == project_id)
            .first()
        )
    except SQLAlchemyError as exc:
        raise StorageError("Could not load file") from exc
    if record is None:
        raise NotFoundError("File not found")

    remote_delete = remote_delete or delete_remote_file
    if not remote_delete(record.file_id):
        log.warning("Remote copy of file_id=%s not removed", record.file_id)

    db.delete(record)
    commit_or_raise(db, "delete file")
