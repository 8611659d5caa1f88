# src/taskdeck/api/server.py

"""
HTTP surface for the task repository.

Routes:
- GET    /tasks        list (query params optional; none -> full snapshot)
- GET    /tasks/{id}   one task
- POST   /tasks        create -> 201
- PUT    /tasks/{id}   partial update
- DELETE /tasks/{id}   hard delete -> 204

Every TaskError becomes {"error": message} with the status the error class
carries; handlers stay thin and let the repository decide.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import Depends, FastAPI, Query, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict

from ..core.ports import TaskRepo
from ..tasks.task_errors import TaskError
from ..tasks.task_models import ViewParams

logger = logging.getLogger(__name__)


class CreateTaskBody(BaseModel):
    # Fields are optional here so a missing one is reported by the repository
    # as "Missing required fields", not as a schema error.
    model_config = ConfigDict(extra="ignore")

    name: str | None = None
    description: str | None = None
    priority: str | None = None
    dueDate: str | None = None
    completed: bool = False


class UpdateTaskBody(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str | None = None
    description: str | None = None
    priority: str | None = None
    dueDate: str | None = None
    completed: bool | None = None
    deleted: bool | None = None


def get_repository(request: Request) -> TaskRepo:
    return request.app.state.repository


def create_app(repository: TaskRepo, *, title: str = "taskdeck") -> FastAPI:
    app = FastAPI(title=title)
    app.state.repository = repository

    @app.exception_handler(TaskError)
    async def _task_error(request: Request, exc: TaskError) -> JSONResponse:
        if exc.http_status >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        else:
            logger.info("%s %s rejected: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.http_status, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def _bad_request(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.info("%s %s malformed request: %s", request.method, request.url.path, exc.errors())
        return JSONResponse(status_code=400, content={"error": "Malformed request"})

    @app.get("/tasks")
    async def list_tasks(
        search: str | None = Query(None),
        priority: str | None = Query(None),
        status: str | None = Query(None),
        sort_by: str | None = Query(None, alias="sortBy"),
        repo: TaskRepo = Depends(get_repository),
    ) -> list[dict[str, Any]]:
        if search is None and priority is None and status is None and sort_by is None:
            tasks = await repo.list()
        else:
            params = ViewParams.build(search_term=search, priority=priority, status=status, sort=sort_by)
            tasks = await repo.list(params)
        return [t.to_dict() for t in tasks]

    @app.get("/tasks/{task_id}")
    async def get_task(task_id: str, repo: TaskRepo = Depends(get_repository)) -> dict[str, Any]:
        task = await repo.get(task_id)
        return task.to_dict()

    @app.post("/tasks", status_code=201)
    async def create_task(
        body: CreateTaskBody, repo: TaskRepo = Depends(get_repository)
    ) -> dict[str, Any]:
        task = await repo.create(body.model_dump(exclude_none=True))
        return task.to_dict()

    @app.put("/tasks/{task_id}")
    async def update_task(
        task_id: str, body: UpdateTaskBody, repo: TaskRepo = Depends(get_repository)
    ) -> dict[str, Any]:
        task = await repo.update(task_id, body.model_dump(exclude_unset=True))
        return task.to_dict()

    @app.delete("/tasks/{task_id}", status_code=204)
    async def delete_task(task_id: str, repo: TaskRepo = Depends(get_repository)) -> Response:
        await repo.delete(task_id)
        return Response(status_code=204)

    return app
