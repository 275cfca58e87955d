from datetime import timezone

from marshmallow import Schema, fields, validate, post_load, EXCLUDE

from models.schemas.common import MAX_TEXT_LENGTH, validate_not_blank
from models.todo import TODO_STATUSES


def _to_naive_utc(value):
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class TodoCreateSchema(Schema):
    class Meta:
        unknown = EXCLUDE

    title = fields.String(
        required=True,
        validate=validate.And(validate.Length(max=MAX_TEXT_LENGTH), validate_not_blank),
    )
    description = fields.String(load_default="", allow_none=True)
    # empty string falls back to the default status
    status = fields.String(load_default="", allow_none=True, validate=validate.OneOf(("",) + TODO_STATUSES))
    due_date = fields.DateTime(load_default=None, allow_none=True)

    @post_load
    def _normalize_due_date(self, data, **kwargs):
        data["due_date"] = _to_naive_utc(data.get("due_date"))
        return data


class TodoUpdateSchema(Schema):
    """All optional; empty strings mean "leave unchanged"."""

    class Meta:
        unknown = EXCLUDE

    title = fields.String(allow_none=True, validate=validate.Length(max=MAX_TEXT_LENGTH))
    description = fields.String(allow_none=True)
    status = fields.String(allow_none=True, validate=validate.OneOf(("",) + TODO_STATUSES))
    due_date = fields.DateTime(allow_none=True)

    @post_load
    def _normalize_due_date(self, data, **kwargs):
        if "due_date" in data:
            data["due_date"] = _to_naive_utc(data["due_date"])
        return data


class TodoOutSchema(Schema):
    id = fields.Integer()
    title = fields.String()
    description = fields.String()
    status = fields.String()
    due_date = fields.DateTime(allow_none=True)
    created_at = fields.DateTime()
    updated_at = fields.DateTime()
