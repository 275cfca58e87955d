from marshmallow import ValidationError

MAX_TEXT_LENGTH = 255


def validate_not_blank(value: str) -> None:
    if value is None or not value.strip():
        raise ValidationError("Must not be blank.")
