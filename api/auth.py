"""
Authentication blueprint:
- POST /auth/register
- POST /auth/login
- POST /auth/refresh
- POST /auth/logout

The implementation:
- Uses argon2 for password hashing (via utils.security)
- Issues HS256 access tokens and opaque refresh tokens (services.token_service)
- Stores refresh tokens in DB (RefreshToken model) so we can revoke / rotate them
"""
from __future__ import annotations

import logging
from dataclasses import asdict

from flask import Blueprint, request

from models.schemas.user import UserRegisterSchema, UserLoginSchema, UserOutSchema
from models.schemas.token import RefreshTokenRequestSchema, TokenPairOutSchema
from services.notifications import WelcomeEmail
from utils.decorators import jwt_required, current_services, current_user_id
from utils.exceptions import ConflictError, UnauthenticatedError
from utils.security import hash_password, verify_password

from .errors import success_response

logger = logging.getLogger(__name__)

bp = Blueprint("auth", __name__, url_prefix="/auth")

user_register_schema = UserRegisterSchema()
user_login_schema = UserLoginSchema()
user_out_schema = UserOutSchema()
refresh_schema = RefreshTokenRequestSchema()
token_pair_schema = TokenPairOutSchema()


@bp.post("/register")
def register():
    """
    Register a new user and return access/refresh tokens.
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      - in: body
        name: body
        schema:
          type: object
          required: [email, password, name]
          properties:
            email: { type: string }
            password: { type: string, minLength: 6 }
            name: { type: string }
    responses:
      201:
        description: Created
      400:
        description: Validation error
      409:
        description: Email already registered
    """
    data = user_register_schema.load(request.get_json(silent=True) or {})
    services = current_services()

    if services.credentials.email_exists(data["email"]):
        raise ConflictError("Email already registered")

    user = services.credentials.create_user(
        email=data["email"],
        password_hash=hash_password(data["password"]),
        name=data["name"].strip(),
    )
    tokens = services.tokens.issue_pair(user)

    services.notifications.enqueue(WelcomeEmail(email=user.email, name=user.name))
    logger.info("User registered (user_id=%s)", user.id)

    return success_response(
        "User registered successfully",
        {"user": user_out_schema.dump(user), "tokens": token_pair_schema.dump(asdict(tokens))},
        201,
    )


@bp.post("/login")
def login():
    """
    Login: return access_token and refresh_token
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             email: { type: string }
             password: { type: string }
    responses:
      200:
        description: OK (returns tokens)
      401:
        description: Unauthorized
    """
    data = user_login_schema.load(request.get_json(silent=True) or {})
    services = current_services()

    user = services.credentials.find_user_by_email(data["email"])
    if not user or not verify_password(data["password"], user.password_hash):
        raise UnauthenticatedError("Invalid email or password")

    tokens = services.tokens.issue_pair(user)
    return success_response(
        "Login successful",
        {"user": user_out_schema.dump(user), "tokens": token_pair_schema.dump(asdict(tokens))},
    )


@bp.post("/refresh")
def refresh():
    """
    Use a refresh token to obtain new access and refresh tokens (rotation).
    The presented refresh token is spent whether or not it was the latest.
    ---
    tags:
      - Auth
    consumes:
      - application/json
    parameters:
      -  in: body
         name: body
         schema:
           type: object
           properties:
             refresh_token: { type: string }
    responses:
      200:
        description: New token pair
      401:
        description: Invalid or expired refresh token
    """
    data = refresh_schema.load(request.get_json(silent=True) or {})
    tokens = current_services().tokens.rotate(data["refresh_token"])
    return success_response("Token refreshed", token_pair_schema.dump(asdict(tokens)))


@bp.post("/logout")
@jwt_required()
def logout():
    """
    Logout: revokes every refresh token of the caller
    ---
    tags:
      - Auth
    security:
      - Bearer: []
    responses:
      200:
        description: Logged out
      401:
        description: Unauthorized
    """
    current_services().tokens.revoke_all_for_user(current_user_id())
    return success_response("Logged out successfully")
