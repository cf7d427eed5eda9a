"""Request checks shared by resources."""

import hmac

import falcon.asgi

from docflow.domain.exceptions import ValidationError
from docflow.interfaces.api.middleware.user_context import RequestUser


def require_user(req: falcon.asgi.Request, resp: falcon.asgi.Response) -> RequestUser | None:
    """Caller identity, or None after writing a 401 response."""
    user = getattr(req.context, "user", None)
    if not user:
        resp.status = falcon.HTTP_401
        resp.media = {"error": "unauthorized", "message": "Missing user identity"}
        return None
    return user


def require_system_token(
    req: falcon.asgi.Request, resp: falcon.asgi.Response, token: str | None
) -> bool:
    """Check ``Authorization: Bearer <token>`` when a token is configured."""
    if not token:
        return True
    auth = req.get_header("Authorization") or ""
    if auth.startswith("Bearer ") and hmac.compare_digest(auth[7:].encode(), token.encode()):
        return True
    resp.status = falcon.HTTP_401
    resp.media = {"error": "unauthorized", "message": "Invalid or missing system token"}
    return False


def parse_id(value: str, name: str = "id") -> int:
    try:
        return int(value)
    except ValueError as e:
        raise ValidationError(f"Invalid {name}: {value!r}") from e
