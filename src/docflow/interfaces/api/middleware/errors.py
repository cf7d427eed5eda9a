"""Error handlers - map domain errors to JSON responses."""

import logging

import falcon
import falcon.asgi

from docflow.domain.exceptions import DocFlowError

logger = logging.getLogger(__name__)

_STATUS_BY_KIND = {
    "validation_error": falcon.HTTP_400,
    "access_denied": falcon.HTTP_403,
    "not_found": falcon.HTTP_404,
    "constraint_violation": falcon.HTTP_409,
    "unsupported_task": falcon.HTTP_422,
    "storage_error": falcon.HTTP_502,
    "throttled": falcon.HTTP_503,
    "connection_failure": falcon.HTTP_503,
    "storage_not_initialized": falcon.HTTP_503,
    "retries_exhausted": falcon.HTTP_503,
    "timeout": falcon.HTTP_504,
}


async def handle_docflow_error(
    req: falcon.asgi.Request,
    resp: falcon.asgi.Response,
    ex: DocFlowError,
    params: dict,
) -> None:
    """Respond with ``{"error": kind, "message": summary}``; details go to the log."""
    status = _STATUS_BY_KIND.get(ex.kind, falcon.HTTP_500)
    if status[0] == "5":
        logger.error("%s %s failed: %s (%s)", req.method, req.path, ex, ex.kind)
    else:
        logger.info("%s %s rejected: %s (%s)", req.method, req.path, ex, ex.kind)
    resp.status = status
    resp.media = {"error": ex.kind, "message": ex.summary}


async def handle_unexpected_error(
    req: falcon.asgi.Request,
    resp: falcon.asgi.Response,
    ex: Exception,
    params: dict,
) -> None:
    logger.exception("%s %s crashed", req.method, req.path)
    resp.status = falcon.HTTP_500
    resp.media = {"error": DocFlowError.kind, "message": DocFlowError.summary}
