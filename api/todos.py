from __future__ import annotations

from flask import Blueprint, request

from models.todo import STATUS_COMPLETED
from models.schemas.todo import TodoCreateSchema, TodoUpdateSchema, TodoOutSchema
from services.notifications import TodoCompleted
from services.todo_query import TodoQuery, DEFAULT_PAGE_SIZE, DEFAULT_SORT, DEFAULT_SORT_DIR
from utils.decorators import jwt_required, current_services, current_user_id
from utils.exceptions import ValidationError

from .errors import success_response

bp = Blueprint("todos", __name__)

todo_create_schema = TodoCreateSchema()
todo_update_schema = TodoUpdateSchema()
todo_out_schema = TodoOutSchema()
todos_out_schema = TodoOutSchema(many=True)


def _int_arg(name: str, default: int) -> int:
    # unparsable values become 0, which the query engine coerces
    raw = request.args.get(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return 0


def parse_list_query() -> TodoQuery:
    return TodoQuery(
        page=_int_arg("page", 1),
        page_size=_int_arg("page_size", DEFAULT_PAGE_SIZE),
        status=request.args.get("status", ""),
        search=request.args.get("search", ""),
        sort_by=request.args.get("sort_by", DEFAULT_SORT),
        sort_dir=request.args.get("sort_dir", DEFAULT_SORT_DIR),
    )


MAX_TODO_ID = 2**31 - 1


def parse_todo_id(raw: str) -> int:
    try:
        todo_id = int(raw)
    except ValueError:
        raise ValidationError("Invalid todo ID")
    if not 1 <= todo_id <= MAX_TODO_ID:
        raise ValidationError("Invalid todo ID")
    return todo_id


@bp.get("/todos")
@jwt_required()
def list_todos():
    """
    List the caller's todos with pagination, filtering, sorting and search
    ---
    tags:
      - Todos
    security:
      - Bearer: []
    parameters:
      - in: query
        name: page
        type: integer
        default: 1
      - in: query
        name: page_size
        type: integer
        default: 10
        description: "1-100; anything else falls back to 10"
      - in: query
        name: status
        type: string
        description: "pending, in_progress or completed"
      - in: query
        name: search
        type: string
        description: "Case-insensitive substring search on title and description"
      - in: query
        name: sort_by
        type: string
        default: created_at
        description: "Allowed: created_at, updated_at, title, status, due_date"
      - in: query
        name: sort_dir
        type: string
        default: DESC
        description: "ASC or DESC"
    responses:
      200:
        description: Paginated list of todos
      401:
        description: Unauthorized
    """
    result = current_services().todos.list_todos(current_user_id(), parse_list_query())
    return success_response(
        "Todos retrieved",
        {
            "todos": todos_out_schema.dump(result.items),
            "total": result.total,
            "page": result.page,
            "page_size": result.page_size,
            "total_pages": result.total_pages,
        },
    )


@bp.post("/todos")
@jwt_required()
def create_todo():
    """
    Create a todo
    ---
    tags:
      - Todos
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        required: true
        schema:
          type: object
          required: [title]
          properties:
            title: { type: string, maxLength: 255 }
            description: { type: string }
            status: { type: string, enum: [pending, in_progress, completed] }
            due_date: { type: string, format: date-time }
    responses:
      201:
        description: Created
      400:
        description: Validation error
      401:
        description: Unauthorized
    """
    data = todo_create_schema.load(request.get_json(silent=True) or {})
    todo = current_services().todos.create(
        current_user_id(),
        title=data["title"],
        description=data.get("description"),
        status=data.get("status"),
        due_date=data.get("due_date"),
    )
    return success_response("Todo created", todo_out_schema.dump(todo), 201)


@bp.get("/todos/<todo_id>")
@jwt_required()
def get_todo(todo_id: str):
    """
    Get a single todo by id
    ---
    tags:
      - Todos
    security:
      - Bearer: []
    parameters:
      - in: path
        name: todo_id
        type: integer
        required: true
    responses:
      200:
        description: Todo found
      400:
        description: Invalid id
      404:
        description: Not found
    """
    todo = current_services().todos.get_owned(parse_todo_id(todo_id), current_user_id())
    return success_response("Todo retrieved", todo_out_schema.dump(todo))


@bp.put("/todos/<todo_id>")
@jwt_required()
def update_todo(todo_id: str):
    """
    Update a todo (partial merge: empty fields are left unchanged)
    ---
    tags:
      - Todos
    security:
      - Bearer: []
    consumes:
      - application/json
    parameters:
      - in: path
        name: todo_id
        type: integer
        required: true
      - in: body
        name: body
        required: true
        schema:
          type: object
          properties:
            title: { type: string }
            description: { type: string }
            status: { type: string, enum: [pending, in_progress, completed] }
            due_date: { type: string, format: date-time }
    responses:
      200:
        description: Updated
      400:
        description: Validation error
      404:
        description: Not found
    """
    tid = parse_todo_id(todo_id)
    services = current_services()
    owner_id = current_user_id()
    # ownership is checked before the body is validated
    services.todos.get_owned(tid, owner_id)

    data = todo_update_schema.load(request.get_json(silent=True) or {})
    todo = services.todos.update(tid, owner_id, data)

    if todo.status == STATUS_COMPLETED:
        services.notifications.enqueue(TodoCompleted(todo_id=todo.id, title=todo.title))

    return success_response("Todo updated", todo_out_schema.dump(todo))


@bp.delete("/todos/<todo_id>")
@jwt_required()
def delete_todo(todo_id: str):
    """
    Delete a todo
    ---
    tags:
      - Todos
    security:
      - Bearer: []
    parameters:
      - in: path
        name: todo_id
        type: integer
        required: true
    responses:
      200:
        description: Deleted
      404:
        description: Not found
    """
    current_services().todos.delete(parse_todo_id(todo_id), current_user_id())
    return success_response("Todo deleted")
