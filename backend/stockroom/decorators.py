# Overview: Request decorators for API routes (bearer auth and service key).

import hmac
from functools import wraps

from flask import current_app, g, request

from .services import session_service


def require_auth(f):
    """
    Require a bearer session and establish the owner context.

    Sets g.current_user; its id is the tenant key passed to every
    service call. Returns 401 when the header is missing or the token is
    invalid, expired or revoked.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_header = request.headers.get("Authorization")

        if not auth_header or not auth_header.startswith("Bearer "):
            return {"status": "error", "message": "Authentication required"}, 401

        token = auth_header.split(" ", 1)[1].strip()
        user = session_service.validate_session(token)

        if not user:
            return {"status": "error", "message": "Invalid or expired token"}, 401

        g.current_user = user
        return f(*args, **kwargs)

    return decorated_function


def require_service_key(f):
    """
    Guard endpoints called by the forecasting service.

    When SERVICE_API_KEY is unset the endpoint is open (local development).
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        expected = current_app.config.get("SERVICE_API_KEY")
        if expected:
            provided = request.headers.get("X-Service-Key", "")
            if not hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8")):
                return {"status": "error", "message": "Invalid service key"}, 401
        return f(*args, **kwargs)

    return decorated_function
