"""
main.py

establishes fastapi routes over the registry manager
"""

from __future__ import annotations

import logging
from functools import lru_cache

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from .errors import LockUnavailable, PersistenceError, UnknownRepository
from .lock import FileLock
from .manager import Manager
from .models import (
    Found,
    RepositoriesResponse, Repository,
    RepositoryBatch, RepositoryCreate, RepositoryUrlUpdate,
)
from .persister import JsonPersister
from .settings import CONFIG_PATH, CORS_ORIGINS, LOCK_PATH, LOCK_POLL_S, LOCK_TIMEOUT_S, LOG_LEVEL

logging.basicConfig(level=LOG_LEVEL, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)

app = FastAPI(title="repo registry", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@lru_cache(maxsize=1)
def get_manager() -> Manager:
    lock = FileLock(LOCK_PATH, timeout=LOCK_TIMEOUT_S, poll_interval=LOCK_POLL_S)
    return Manager(lock, JsonPersister(CONFIG_PATH))


def to_http_error(e: Exception) -> HTTPException:
    if isinstance(e, UnknownRepository):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, LockUnavailable):
        return HTTPException(status_code=503, detail=str(e))
    logger.error("registry storage failure: %s", e)
    return HTTPException(status_code=500, detail=str(e))


def get_repository(manager: Manager, repo_id: str) -> Repository:
    try:
        result = manager.find_one_repository(repo_id)
    except PersistenceError as e:
        raise to_http_error(e) from e
    if not isinstance(result, Found):
        raise HTTPException(status_code=404, detail=f"unknown repository: {repo_id}")
    return result.repository


@app.get("/health")
def health():
    return {"ok": True}


@app.get("/repositories", response_model=RepositoriesResponse)
def list_repositories(manager: Manager = Depends(get_manager)) -> RepositoriesResponse:
    try:
        repos = list(manager.get_repositories().values())
    except PersistenceError as e:
        raise to_http_error(e) from e
    return RepositoriesResponse(repositories=repos)


@app.get("/repositories/{repo_id}", response_model=Repository)
def show_repository(repo_id: str, manager: Manager = Depends(get_manager)) -> Repository:
    return get_repository(manager, repo_id)


@app.post("/repositories", response_model=Repository)
def add_repository(req: RepositoryCreate, manager: Manager = Depends(get_manager)) -> Repository:
    repo = req.to_repository()
    try:
        manager.add(repo)
    except (LockUnavailable, PersistenceError) as e:
        raise to_http_error(e) from e
    return repo


@app.post("/repositories/batch")
def add_repositories(req: RepositoryBatch, manager: Manager = Depends(get_manager)):
    repos = [r.to_repository() for r in req.repositories]
    try:
        manager.add_all(repos)
    except (LockUnavailable, PersistenceError) as e:
        raise to_http_error(e) from e
    return {"ok": True, "count": len(repos)}


@app.put("/repositories/{repo_id}", response_model=Repository)
def update_repository(repo_id: str, req: RepositoryUrlUpdate, manager: Manager = Depends(get_manager)) -> Repository:
    repo = get_repository(manager, repo_id)
    try:
        manager.update(repo, req.url)
    except (UnknownRepository, LockUnavailable, PersistenceError) as e:
        raise to_http_error(e) from e
    return repo


@app.delete("/repositories/{repo_id}")
def delete_repository(repo_id: str, manager: Manager = Depends(get_manager)):
    repo = get_repository(manager, repo_id)
    try:
        manager.delete(repo)
    except (LockUnavailable, PersistenceError) as e:
        raise to_http_error(e) from e
    return {"ok": True, "id": repo_id}
