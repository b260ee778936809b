import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import Depends, FastAPI, File, Header, HTTPException, Query, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from promptdesk.config import get_settings
from promptdesk.db.database import engine, get_db
from promptdesk.db.models import Base, User
from promptdesk.schemas.chat import ChatReply, ChatRequest
from promptdesk.schemas.file import FileList, ProjectFileOut
from promptdesk.schemas.message import HistoryResponse
from promptdesk.schemas.project import ProjectList, ProjectOut, ProjectRequest
from promptdesk.schemas.prompt import (
    CreatePromptRequest,
    PromptList,
    PromptOut,
    UpdatePromptRequest,
)
from promptdesk.services import chat, files, projects, prompts
from promptdesk.services.auth import verify_google_token
from promptdesk.services.errors import PromptDeskError
from promptdesk.services.llm_services import complete_chat
from promptdesk.services.users import get_or_create_user


settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="[%(asctime)s] %(levelname)s %(name)s - %(message)s",
)
logger = logging.getLogger("promptdesk")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # create tables
    Base.metadata.create_all(bind=engine)
    logger.info("Database ready (env=%s)", settings.app_env)
    yield


app = FastAPI(title="Promptdesk API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(PromptDeskError)
async def promptdesk_error(request: Request, exc: PromptDeskError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.info("%s %s rejected: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(Exception)
async def log_exception(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})


@app.get("/healthz")
def healthz():
    return {"ok": True}


def _get_google_user(authorization: str = Header(...)) -> dict:
    if not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="Missing Bearer token")
    token = authorization.split(" ", 1)[1].strip()
    if not token:
        raise HTTPException(status_code=401, detail="Empty token")
    return verify_google_token(token)


def get_current_user(
    user_payload: dict = Depends(_get_google_user),
    db: Session = Depends(get_db),
) -> User:
    return get_or_create_user(db, user_payload)


def get_completer():
    return complete_chat


# Projects

@app.get("/projects", response_model=ProjectList)
def list_projects(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return {"projects": projects.list_projects(db, user.id)}


@app.post("/projects", response_model=ProjectOut, status_code=201)
def create_project(
    request: ProjectRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return projects.create_project(db, user.id, request.name, request.description)


@app.get("/projects/{project_id}", response_model=ProjectOut)
def get_project(project_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return projects.get_owned_project(db, project_id, user.id)


@app.put("/projects/{project_id}", response_model=ProjectOut)
def update_project(
    project_id: int,
    request: ProjectRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return projects.update_project(db, project_id, user.id, request.name, request.description)


@app.delete("/projects/{project_id}")
def delete_project(project_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    projects.delete_project(db, project_id, user.id)
    return {"message": "Project deleted successfully"}


# Prompts

@app.get("/prompts/project/{project_id}", response_model=PromptList)
def list_prompts(project_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return {"prompts": prompts.list_prompts(db, project_id, user.id)}


@app.post("/prompts", response_model=PromptOut, status_code=201)
def create_prompt(
    request: CreatePromptRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return prompts.create_prompt(db, user.id, request.project_id, request.name, request.content)


@app.get("/prompts/{prompt_id}", response_model=PromptOut)
def get_prompt(prompt_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return prompts.get_owned_prompt(db, prompt_id, user.id)


@app.put("/prompts/{prompt_id}", response_model=PromptOut)
def update_prompt(
    prompt_id: int,
    request: UpdatePromptRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return prompts.update_prompt(db, prompt_id, user.id, request.name, request.content)


@app.delete("/prompts/{prompt_id}")
def delete_prompt(prompt_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    prompts.delete_prompt(db, prompt_id, user.id)
    return {"message": "Prompt deleted successfully"}


# Chat

@app.post("/chat/{project_id}", response_model=ChatReply)
def chat_turn(
    project_id: int,
    request: ChatRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    complete=Depends(get_completer),
):
    return chat.handle_chat_turn(db, project_id, user.id, request.message, complete=complete)


@app.get("/chat/{project_id}/history", response_model=HistoryResponse)
def chat_history(
    project_id: int,
    limit: int = Query(chat.DEFAULT_HISTORY_LIMIT, ge=1),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return {"messages": chat.get_history(db, project_id, user.id, limit)}


# Files

@app.get("/files/{project_id}", response_model=FileList)
def list_files(project_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return {"files": files.list_files(db, project_id, user.id)}


@app.post("/files/{project_id}/upload", response_model=ProjectFileOut, status_code=201)
def upload_file(
    project_id: int,
    file: Optional[UploadFile] = File(None),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if file is None:
        return files.upload_file(db, project_id, user.id, None, None)
    return files.upload_file(db, project_id, user.id, file.filename, file.file)


@app.delete("/files/{project_id}/{file_pk}")
def delete_file(
    project_id: int,
    file_pk: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    files.delete_file(db, project_id, file_pk, user.id)
    return {"message": "File deleted successfully"}


def run():
    uvicorn.run("promptdesk.main:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
