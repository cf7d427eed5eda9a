"""Comparison API resources."""

import falcon.asgi

from docflow.application.dto import CompareInput
from docflow.application.use_cases.comparison.compare_documents import (
    CompareDocumentsUseCase,
    GetComparisonUseCase,
)
from docflow.domain.exceptions import ValidationError
from docflow.interfaces.api.resources.common import parse_id, require_user
from docflow.interfaces.api.resources.serializers import comparison_to_dict


class ComparisonsResource:
    """POST /v1/comparisons - compare two of the caller's processed documents."""

    def __init__(self, compare_documents: CompareDocumentsUseCase) -> None:
        self._compare_documents = compare_documents

    async def on_post(self, req: falcon.asgi.Request, resp: falcon.asgi.Response) -> None:
        """Body: ``{"document1_id": int, "document2_id": int}``."""
        user = require_user(req, resp)
        if not user:
            return

        body = await req.get_media(default_when_empty=None)
        if not isinstance(body, dict):
            raise ValidationError("JSON object body required")
        try:
            document1_id = int(body["document1_id"])
            document2_id = int(body["document2_id"])
        except (KeyError, TypeError, ValueError) as e:
            raise ValidationError(f"document1_id and document2_id required: {e}") from e

        comparison = await self._compare_documents.execute(
            CompareInput(
                owner_id=user.user_id,
                document1_id=document1_id,
                document2_id=document2_id,
            )
        )
        resp.media = comparison_to_dict(comparison)
        resp.status = falcon.HTTP_201


class ComparisonResource:
    """GET /v1/comparisons/{id}."""

    def __init__(self, get_comparison: GetComparisonUseCase) -> None:
        self._get_comparison = get_comparison

    async def on_get(
        self, req: falcon.asgi.Request, resp: falcon.asgi.Response, comparison_id: str
    ) -> None:
        user = require_user(req, resp)
        if not user:
            return

        comparison = await self._get_comparison.execute(
            user.user_id, parse_id(comparison_id, "comparison id")
        )
        resp.media = comparison_to_dict(comparison)
        resp.status = falcon.HTTP_200
