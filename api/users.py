from __future__ import annotations

from flask import Blueprint

from models.schemas.user import UserOutSchema
from utils.decorators import jwt_required, current_services, current_user_id
from utils.exceptions import NotFoundError

from .errors import success_response

bp = Blueprint("users", __name__)

user_out_schema = UserOutSchema()


@bp.get("/profile")
@jwt_required()
def profile():
    """
    Get current user info.
    ---
    tags:
      - Users
    security:
      - Bearer: []
    responses:
      200:
        description: OK
      401:
        description: Unauthorized
      404:
        description: User no longer exists
    """
    user = current_services().credentials.get_user(current_user_id())
    if user is None:
        raise NotFoundError("User not found")
    return success_response("Profile retrieved", user_out_schema.dump(user))
