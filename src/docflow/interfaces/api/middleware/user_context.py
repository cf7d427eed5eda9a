"""User context middleware - trusts the owner id set by the fronting auth proxy."""

from dataclasses import dataclass

import falcon.asgi

USER_HEADER = "X-User-Id"


@dataclass
class RequestUser:
    """User from request context."""

    user_id: str


class UserContextMiddleware:
    """Sets ``req.context.user`` from the ``X-User-Id`` header, or None."""

    def __init__(self, header: str = USER_HEADER) -> None:
        self._header = header

    async def process_request(
        self, req: falcon.asgi.Request, resp: falcon.asgi.Response
    ) -> None:
        user_id = (req.get_header(self._header) or "").strip()
        req.context.user = RequestUser(user_id=user_id) if user_id else None
