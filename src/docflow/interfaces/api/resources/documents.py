"""Document API resources."""

import re
from urllib.parse import unquote_to_bytes

import falcon.asgi

from docflow.application.dto import DocumentUploadInput, ExtractionRequestStatus, QueryOptions
from docflow.application.use_cases.document.download_document import DownloadDocumentUseCase
from docflow.application.use_cases.document.get_document import (
    DeleteDocumentUseCase,
    GetDocumentUseCase,
    ListDocumentsUseCase,
)
from docflow.application.use_cases.document.request_extraction import (
    GetExtractionStatusUseCase,
    RequestExtractionUseCase,
)
from docflow.application.use_cases.document.set_reference import SetReferenceDocumentUseCase
from docflow.application.use_cases.document.upload_document import UploadDocumentUseCase
from docflow.domain.exceptions import ValidationError
from docflow.interfaces.api.resources.common import parse_id, require_user
from docflow.interfaces.api.resources.serializers import (
    document_to_dict,
    extraction_request_to_dict,
    extraction_status_to_dict,
    queue_item_to_dict,
)

MAX_PAGE_SIZE = 100

# RFC 5987: filename*=charset''percent-encoded (two single quotes)
_FILENAME_STAR_RFC5987 = re.compile(r"([\w-]+)''(.+)")

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})


def _decode_filename(raw: str) -> str:
    """Fix mojibake when UTF-8 bytes were read as Latin-1."""
    try:
        return raw.encode("latin-1").decode("utf-8")
    except (UnicodeEncodeError, UnicodeDecodeError):
        return raw


def _filename_star(raw_header_value: bytes) -> str | None:
    """``filename*=charset''percent-encoded`` from a raw Content-Disposition value."""
    decoded = raw_header_value.decode("utf-8", errors="replace")
    idx = decoded.find("filename*=")
    if idx == -1:
        return None
    match = _FILENAME_STAR_RFC5987.match(decoded[idx + len("filename*=") :].strip())
    if not match:
        return None
    charset, encoded = match.groups()
    try:
        return unquote_to_bytes(encoded.split(";")[0]).decode(charset)
    except (ValueError, LookupError):
        return None


def _part_filename(part: object) -> str:
    raw = (getattr(part, "filename", None) or "").strip()
    if raw:
        return _decode_filename(raw)
    headers = getattr(part, "_headers", None)
    if isinstance(headers, dict):
        return (_filename_star(headers.get(b"content-disposition", b"")) or "").strip()
    return ""


class DocumentsResource:
    """GET/POST /v1/documents - list the caller's documents and upload new ones."""

    def __init__(
        self, upload_document: UploadDocumentUseCase, list_documents: ListDocumentsUseCase
    ) -> None:
        self._upload_document = upload_document
        self._list_documents = list_documents

    async def on_get(self, req: falcon.asgi.Request, resp: falcon.asgi.Response) -> None:
        """List documents. Query: limit, offset, order_by=col:dir,..."""
        user = require_user(req, resp)
        if not user:
            return

        limit = req.get_param_as_int("limit") or 20
        options = QueryOptions(
            order_by=QueryOptions.parse_order(req.get_param("order_by")),
            limit=min(max(limit, 1), MAX_PAGE_SIZE),
            offset=req.get_param_as_int("offset", min_value=0) or 0,
        )
        documents = await self._list_documents.execute(user.user_id, options)
        resp.media = {
            "items": [document_to_dict(d) for d in documents],
            "limit": options.limit,
            "offset": options.offset,
        }
        resp.status = falcon.HTTP_200

    async def on_post(self, req: falcon.asgi.Request, resp: falcon.asgi.Response) -> None:
        """Upload one file (multipart field ``file``, optional ``is_reference``)."""
        user = require_user(req, resp)
        if not user:
            return

        if "multipart/form-data" not in (req.content_type or ""):
            raise ValidationError("multipart/form-data required")

        form = await req.get_media()
        data = b""
        filename = ""
        content_type: str | None = None
        is_reference = False
        async for part in form:
            name = (part.name or "").strip()
            if name == "file":
                data = bytes(await part.get_data())
                filename = _part_filename(part)
                content_type = part.content_type
            elif name == "is_reference":
                value = (await part.get_data()).decode("utf-8").strip().lower()
                is_reference = value in _TRUE_VALUES
        if not filename and not data:
            raise ValidationError("A file is required")

        result = await self._upload_document.execute(
            DocumentUploadInput(
                owner_id=user.user_id,
                filename=filename,
                data=data,
                content_type=content_type,
                is_reference=is_reference,
            )
        )
        resp.media = {
            "document": document_to_dict(result.document),
            "duplicate": result.duplicate,
            "queue_item": queue_item_to_dict(result.queue_item) if result.queue_item else None,
        }
        resp.status = falcon.HTTP_200 if result.duplicate else falcon.HTTP_201


class DocumentResource:
    """GET/DELETE /v1/documents/{id}."""

    def __init__(
        self, get_document: GetDocumentUseCase, delete_document: DeleteDocumentUseCase
    ) -> None:
        self._get_document = get_document
        self._delete_document = delete_document

    async def on_get(
        self, req: falcon.asgi.Request, resp: falcon.asgi.Response, document_id: str
    ) -> None:
        """Get document by id. ``include_text=true`` adds the extracted text."""
        user = require_user(req, resp)
        if not user:
            return

        document = await self._get_document.execute(user.user_id, parse_id(document_id))
        include_text = req.get_param_as_bool("include_text", default=False)
        resp.media = document_to_dict(document, include_text=include_text)
        resp.status = falcon.HTTP_200

    async def on_delete(
        self, req: falcon.asgi.Request, resp: falcon.asgi.Response, document_id: str
    ) -> None:
        user = require_user(req, resp)
        if not user:
            return

        await self._delete_document.execute(user.user_id, parse_id(document_id))
        resp.status = falcon.HTTP_204


class DocumentReferenceResource:
    """POST /v1/documents/{id}/reference - make the document the caller's reference."""

    def __init__(self, set_reference: SetReferenceDocumentUseCase) -> None:
        self._set_reference = set_reference

    async def on_post(
        self, req: falcon.asgi.Request, resp: falcon.asgi.Response, document_id: str
    ) -> None:
        user = require_user(req, resp)
        if not user:
            return

        document = await self._set_reference.execute(user.user_id, parse_id(document_id))
        resp.media = document_to_dict(document)
        resp.status = falcon.HTTP_200


class DocumentDownloadResource:
    """GET /v1/documents/{id}/download - the stored file as an attachment."""

    def __init__(self, download_document: DownloadDocumentUseCase) -> None:
        self._download_document = download_document

    async def on_get(
        self, req: falcon.asgi.Request, resp: falcon.asgi.Response, document_id: str
    ) -> None:
        user = require_user(req, resp)
        if not user:
            return

        download = await self._download_document.execute(user.user_id, parse_id(document_id))
        resp.data = download.data
        resp.content_type = download.content_type
        resp.downloadable_as = download.document.original_name
        resp.cache_control = ["private", "max-age=3600"]
        resp.status = falcon.HTTP_200


class DocumentExtractionResource:
    """GET/POST /v1/documents/{id}/extract - extraction status and manual re-queue."""

    def __init__(
        self,
        request_extraction: RequestExtractionUseCase,
        extraction_status: GetExtractionStatusUseCase,
    ) -> None:
        self._request_extraction = request_extraction
        self._extraction_status = extraction_status

    async def on_get(
        self, req: falcon.asgi.Request, resp: falcon.asgi.Response, document_id: str
    ) -> None:
        user = require_user(req, resp)
        if not user:
            return

        status = await self._extraction_status.execute(user.user_id, parse_id(document_id))
        resp.media = extraction_status_to_dict(status)
        resp.status = falcon.HTTP_200

    async def on_post(
        self, req: falcon.asgi.Request, resp: falcon.asgi.Response, document_id: str
    ) -> None:
        """Queue extraction; 202 when queued, 200 when done or already pending."""
        user = require_user(req, resp)
        if not user:
            return

        result = await self._request_extraction.execute(user.user_id, parse_id(document_id))
        resp.media = extraction_request_to_dict(result)
        queued = result.status is ExtractionRequestStatus.QUEUED
        resp.status = falcon.HTTP_202 if queued else falcon.HTTP_200
