from __future__ import annotations

import logging
from functools import wraps

from flask import request, g, current_app

from utils.exceptions import (
    UnauthenticatedError,
    InvalidTokenError,
    ExpiredTokenError,
    InternalError,
)

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "


def current_services():
    """The Services container built by create_app()."""
    return current_app.extensions["services"]


def authenticate(header_value: str | None, token_service) -> int:
    """
    Resolve an Authorization header value to a user id.
    Malformed and expired tokens both surface as UnauthenticatedError; only
    the log line tells them apart.
    """
    if not header_value or not header_value.startswith(BEARER_PREFIX):
        raise UnauthenticatedError("Missing or invalid Authorization header")
    token = header_value[len(BEARER_PREFIX):]
    try:
        claims = token_service.verify_access(token)
    except (InvalidTokenError, ExpiredTokenError) as exc:
        logger.info("Access token rejected (%s)", exc.__class__.__name__)
        raise UnauthenticatedError("Invalid or expired token") from exc
    return claims.user_id


def jwt_required():
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            services = current_services()
            # g is request-local, so the id never leaks into another request
            g.current_user_id = authenticate(request.headers.get("Authorization"), services.tokens)
            return fn(*args, **kwargs)

        return wrapper

    return decorator


def current_user_id() -> int:
    user_id = g.get("current_user_id")
    if user_id is None:
        raise InternalError("current_user_id() used outside a jwt_required view")
    return user_id
