from __future__ import annotations

import logging
import os
from typing import Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Form, HTTPException, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from ..repositories import ListQuery, Repository, get_repository
from ..schemas import TodoCreate, TodoUpdate
from ..utils import edit_todo_path, todo_path, todos_path

logger = logging.getLogger(__name__)

TEMPLATES_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "templates")

templates = Jinja2Templates(directory=TEMPLATES_DIR)
templates.env.globals.update(todo_path=todo_path, edit_todo_path=edit_todo_path, todos_path=todos_path)

router = APIRouter(tags=["pages"], include_in_schema=False)

OVERRIDABLE_METHODS = {"patch", "put", "delete"}
TRUTHY = {"1", "true", "on", "yes"}


def _form_done(value: Optional[str]) -> bool:
    # An unchecked checkbox is simply absent from the form.
    return value is not None and value.strip().lower() in TRUTHY


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    # Whitespace-only fields are stored as NULL like empty ones.
    return value if value and value.strip() else None


def _parse_id(todo_id: str) -> Optional[int]:
    """Page paths take any segment; anything but a plain number is an unknown todo."""
    return int(todo_id) if todo_id.isascii() and todo_id.isdigit() else None


def _redirect(path: str, notice: Optional[str] = None) -> RedirectResponse:
    url = f"{path}?{urlencode({'notice': notice})}" if notice else path
    return RedirectResponse(url=url, status_code=status.HTTP_303_SEE_OTHER)


def _not_found(request: Request) -> HTMLResponse:
    return templates.TemplateResponse(
        request, "not_found.html", {"path": request.url.path}, status_code=status.HTTP_404_NOT_FOUND
    )


# PUBLIC_INTERFACE
@router.get("/todos", response_class=HTMLResponse)
def index(request: Request, notice: Optional[str] = None, repo: Repository = Depends(get_repository)):
    """Render every todo as a table row carrying its id for the context menu."""
    todos, _ = repo.list(ListQuery(limit=10_000, sort="created_at"))
    return templates.TemplateResponse(request, "todos/index.html", {"todos": todos, "notice": notice})


# PUBLIC_INTERFACE
@router.get("/todos/new", response_class=HTMLResponse)
def new(request: Request):
    """Render an empty todo form."""
    return templates.TemplateResponse(request, "todos/new.html", {"todo": None})


# PUBLIC_INTERFACE
@router.post("/todos")
def create(
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    done: Optional[str] = Form(None),
    repo: Repository = Depends(get_repository),
):
    """Create a todo from the form and redirect to its page."""
    created = repo.create(
        TodoCreate(title=_blank_to_none(title), description=_blank_to_none(description), done=_form_done(done))
    )
    return _redirect(todo_path(created["id"]), "Todo was successfully created.")


# PUBLIC_INTERFACE
@router.get("/todos/{todo_id}", response_class=HTMLResponse)
def show(request: Request, todo_id: str, notice: Optional[str] = None, repo: Repository = Depends(get_repository)):
    tid = _parse_id(todo_id)
    todo = repo.get(tid) if tid is not None else None
    if todo is None:
        return _not_found(request)
    return templates.TemplateResponse(request, "todos/show.html", {"todo": todo, "notice": notice})


# PUBLIC_INTERFACE
@router.get("/todos/{todo_id}/edit", response_class=HTMLResponse)
def edit(request: Request, todo_id: str, repo: Repository = Depends(get_repository)):
    tid = _parse_id(todo_id)
    todo = repo.get(tid) if tid is not None else None
    if todo is None:
        return _not_found(request)
    return templates.TemplateResponse(request, "todos/edit.html", {"todo": todo})


def _update(request: Request, todo_id: str, title, description, done, repo: Repository):
    tid = _parse_id(todo_id)
    if tid is None:
        return _not_found(request)
    changes = TodoUpdate(title=_blank_to_none(title), description=_blank_to_none(description), done=_form_done(done))
    updated = repo.update(tid, changes)
    if updated is None:
        return _not_found(request)
    return _redirect(todo_path(tid), "Todo was successfully updated.")


def _destroy(request: Request, todo_id: str, repo: Repository):
    tid = _parse_id(todo_id)
    if tid is None or not repo.delete(tid):
        return _not_found(request)
    return _redirect(todos_path(), "Todo was successfully destroyed.")


# PUBLIC_INTERFACE
@router.api_route("/todos/{todo_id}", methods=["PATCH", "PUT"])
def update(
    request: Request,
    todo_id: str,
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    done: Optional[str] = Form(None),
    repo: Repository = Depends(get_repository),
):
    """Apply the submitted form to a todo and redirect to its page."""
    return _update(request, todo_id, title, description, done, repo)


# PUBLIC_INTERFACE
@router.delete("/todos/{todo_id}")
def destroy(request: Request, todo_id: str, repo: Repository = Depends(get_repository)):
    """Delete a todo and redirect to the index."""
    return _destroy(request, todo_id, repo)


# PUBLIC_INTERFACE
@router.post("/todos/{todo_id}")
def override(
    request: Request,
    todo_id: str,
    method: str = Form(..., alias="_method"),
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    done: Optional[str] = Form(None),
    repo: Repository = Depends(get_repository),
):
    """
    Dispatch a form post carrying a ``_method`` field as PATCH, PUT or DELETE,
    since HTML forms can only submit GET and POST.
    """
    verb = method.strip().lower()
    if verb not in OVERRIDABLE_METHODS:
        raise HTTPException(status_code=status.HTTP_405_METHOD_NOT_ALLOWED, detail=f"Unsupported method: {method}")
    logger.debug("Dispatching form post on %s as %s", request.url.path, verb.upper())
    if verb == "delete":
        return _destroy(request, todo_id, repo)
    return _update(request, todo_id, title, description, done, repo)
