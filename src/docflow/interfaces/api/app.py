"""Falcon ASGI application."""

import falcon
import falcon.asgi
from falcon.asgi import App

from docflow.container import Services
from docflow.domain.exceptions import DocFlowError
from docflow.interfaces.api.middleware.errors import (
    handle_docflow_error,
    handle_unexpected_error,
)
from docflow.interfaces.api.middleware.lifespan import LifespanMiddleware
from docflow.interfaces.api.middleware.user_context import UserContextMiddleware
from docflow.interfaces.api.resources.comparisons import ComparisonResource, ComparisonsResource
from docflow.interfaces.api.resources.documents import (
    DocumentDownloadResource,
    DocumentExtractionResource,
    DocumentReferenceResource,
    DocumentResource,
    DocumentsResource,
)
from docflow.interfaces.api.resources.health import HealthResource
from docflow.interfaces.api.resources.queue import QueueProcessResource, QueueResource


def create_app(services: Services, *, embed_worker: bool | None = None) -> App:
    """Create Falcon ASGI app with routes.

    ``embed_worker`` defaults to ``settings.worker_enabled``.
    """
    settings = services.settings
    if embed_worker is None:
        embed_worker = settings.worker_enabled

    app = falcon.asgi.App(
        middleware=[
            LifespanMiddleware(
                services.store,
                services.storage,
                services.provider,
                services.worker if embed_worker else None,
                migrate=settings.auto_migrate,
            ),
            UserContextMiddleware(),
        ],
    )
    multipart = app.req_options.media_handlers[falcon.MEDIA_MULTIPART]
    multipart.parse_options.max_body_part_buffer_size = settings.max_upload_bytes

    # most specific type wins, so falcon's own HTTPError handling is kept
    app.add_error_handler(Exception, handle_unexpected_error)
    app.add_error_handler(DocFlowError, handle_docflow_error)

    health = HealthResource(services.store, services.storage)
    app.add_route("/v1/health", health)
    app.add_route("/v1/health/ready", health, suffix="ready")
    app.add_route(
        "/v1/documents", DocumentsResource(services.upload_document, services.list_documents)
    )
    app.add_route(
        "/v1/documents/{document_id}",
        DocumentResource(services.get_document, services.delete_document),
    )
    app.add_route(
        "/v1/documents/{document_id}/reference",
        DocumentReferenceResource(services.set_reference),
    )
    app.add_route(
        "/v1/documents/{document_id}/download",
        DocumentDownloadResource(services.download_document),
    )
    app.add_route(
        "/v1/documents/{document_id}/extract",
        DocumentExtractionResource(services.request_extraction, services.extraction_status),
    )
    app.add_route("/v1/comparisons", ComparisonsResource(services.compare_documents))
    app.add_route(
        "/v1/comparisons/{comparison_id}", ComparisonResource(services.get_comparison)
    )
    app.add_route("/v1/queue", QueueResource(services.queue, settings.queue_system_token))
    app.add_route(
        "/v1/queue/process",
        QueueProcessResource(services.worker, settings.queue_system_token),
    )
    return app
