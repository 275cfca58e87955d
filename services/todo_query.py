"""
Todo query engine: owner-scoped reads and writes over todos.

Every query starts from the owner filter; (id, user_id) is always matched
jointly so a todo owned by somebody else looks exactly like a missing one.

List parameters are normalized silently, never rejected:
- page < 1                      -> 1
- page_size outside [1, 100]    -> 10
- sort_by outside SORT_COLUMNS  -> created_at
- sort_dir other than ASC/DESC  -> DESC
SORT_COLUMNS is the only way user input shapes the query structure, so it is
an allow-list of mapped columns rather than strings.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, List, Mapping

from sqlalchemy import func, or_

from models.db_storage import DBStorage
from models.todo import Todo, STATUS_PENDING
from utils.exceptions import NotFoundError, ValidationError
from utils.security import utcnow

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100
DEFAULT_SORT = "created_at"
DEFAULT_SORT_DIR = "DESC"

# Sorting allowlist: API field -> SQLAlchemy column
SORT_COLUMNS = {
    "created_at": Todo.created_at,
    "updated_at": Todo.updated_at,
    "title": Todo.title,
    "status": Todo.status,
    "due_date": Todo.due_date,
}

UPDATABLE_FIELDS = ("title", "description", "status", "due_date")


@dataclass(frozen=True)
class TodoQuery:
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE
    status: str = ""
    search: str = ""
    sort_by: str = DEFAULT_SORT
    sort_dir: str = DEFAULT_SORT_DIR

    def normalized(self) -> "TodoQuery":
        page = self.page if self.page >= 1 else 1
        page_size = self.page_size if 1 <= self.page_size <= MAX_PAGE_SIZE else DEFAULT_PAGE_SIZE
        sort_by = self.sort_by if self.sort_by in SORT_COLUMNS else DEFAULT_SORT
        sort_dir = self.sort_dir if self.sort_dir in ("ASC", "DESC") else DEFAULT_SORT_DIR
        return replace(
            self,
            page=page,
            page_size=page_size,
            status=self.status or "",
            search=self.search or "",
            sort_by=sort_by,
            sort_dir=sort_dir,
        )


@dataclass
class TodoPage:
    items: List[Todo] = field(default_factory=list)
    total: int = 0
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE
    total_pages: int = 0


def _like_pattern(term: str) -> str:
    escaped = term.lower().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class TodoQueryEngine:
    def __init__(self, storage: DBStorage):
        self.storage = storage

    @property
    def session(self):
        return self.storage.get_session()

    def _owned(self, owner_id: int):
        if owner_id is None:
            raise ValidationError("owner id is required")
        return self.session.query(Todo).filter(Todo.user_id == owner_id, Todo.active())

    def list_todos(self, owner_id: int, params: TodoQuery | None = None) -> TodoPage:
        params = (params or TodoQuery()).normalized()
        query = self._owned(owner_id)

        if params.status:
            query = query.filter(Todo.status == params.status)

        if params.search:
            pattern = _like_pattern(params.search)
            query = query.filter(
                or_(
                    func.lower(Todo.title).like(pattern, escape="\\"),
                    func.lower(Todo.description).like(pattern, escape="\\"),
                )
            )

        total = query.count()

        column = SORT_COLUMNS[params.sort_by]
        if params.sort_dir == "ASC":
            order_by = (column.asc(), Todo.id.asc())
        else:
            order_by = (column.desc(), Todo.id.desc())

        offset = (params.page - 1) * params.page_size
        # pages past the end return no rows without querying
        rows = []
        if offset < total:
            rows = query.order_by(*order_by).offset(offset).limit(params.page_size).all()

        return TodoPage(
            items=rows,
            total=total,
            page=params.page,
            page_size=params.page_size,
            total_pages=math.ceil(total / params.page_size) if total else 0,
        )

    def get_owned(self, todo_id: int, owner_id: int) -> Todo:
        todo = self._owned(owner_id).filter(Todo.id == todo_id).first()
        if todo is None:
            raise NotFoundError("Todo not found")
        return todo

    def create(
        self,
        owner_id: int,
        title: str,
        description: str | None = "",
        status: str | None = STATUS_PENDING,
        due_date: datetime | None = None,
    ) -> Todo:
        if owner_id is None:
            raise ValidationError("owner id is required")
        if not title or not title.strip():
            raise ValidationError("title is required")

        todo = Todo(
            title=title,
            description=description or "",
            status=status or STATUS_PENDING,
            due_date=due_date,
            user_id=owner_id,
        )
        self.storage.new(todo)
        self.storage.save()
        logger.info("Todo created (id=%s, user_id=%s)", todo.id, owner_id)
        return todo

    def update(self, todo_id: int, owner_id: int, changes: Mapping[str, Any]) -> Todo:
        """
        Partial merge: only non-empty values overwrite. An empty string means
        "leave unchanged", not "clear the field".
        """
        todo = self.get_owned(todo_id, owner_id)
        for name in UPDATABLE_FIELDS:
            value = changes.get(name)
            if value is None or value == "":
                continue
            setattr(todo, name, value)
        todo.updated_at = utcnow()
        self.storage.save()
        return todo

    def delete(self, todo_id: int, owner_id: int) -> None:
        todo = self.get_owned(todo_id, owner_id)
        todo.soft_delete()
        self.storage.save()
        logger.info("Todo deleted (id=%s, user_id=%s)", todo_id, owner_id)
