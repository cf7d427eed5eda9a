"""Fixtures for API tests."""

import asyncio
from collections.abc import Iterator

import pytest
from falcon.testing import TestClient

from docflow.config import Settings
from docflow.container import Services, build_services
from docflow.interfaces.api.app import create_app

BOUNDARY = "docflow-test-boundary"
SYSTEM_TOKEN = "system-token"


def multipart_body(
    filename: str,
    content: bytes,
    content_type: str = "text/plain",
    **fields: str,
) -> bytes:
    """Build a multipart/form-data body with a ``file`` part plus plain fields."""
    chunks = []
    for name, value in fields.items():
        chunks.append(
            f'--{BOUNDARY}\r\nContent-Disposition: form-data; name="{name}"\r\n\r\n{value}\r\n'.encode()
        )
    chunks.append(
        (
            f"--{BOUNDARY}\r\n"
            f'Content-Disposition: form-data; name="file"; filename="{filename}"\r\n'
            f"Content-Type: {content_type}\r\n\r\n"
        ).encode()
        + content
        + b"\r\n"
    )
    chunks.append(f"--{BOUNDARY}--\r\n".encode())
    return b"".join(chunks)


def user_headers(user_id: str = "user-1", **extra: str) -> dict[str, str]:
    return {"X-User-Id": user_id, **extra}


def upload_headers(user_id: str = "user-1") -> dict[str, str]:
    return user_headers(user_id, **{"Content-Type": f"multipart/form-data; boundary={BOUNDARY}"})


def system_headers() -> dict[str, str]:
    return {"Authorization": f"Bearer {SYSTEM_TOKEN}"}


@pytest.fixture
def services(settings: Settings) -> Iterator[Services]:
    """Memory store and local storage, opened up front since tests may not run lifespan."""
    services = build_services(settings)
    asyncio.run(services.start())
    yield services
    asyncio.run(services.stop())


@pytest.fixture
def client(services: Services) -> TestClient:
    """Falcon ASGI test client over the full app, worker not embedded."""
    return TestClient(create_app(services, embed_worker=False))


@pytest.fixture
def upload(client: TestClient):
    """POST a file and return the response."""

    def _upload(
        filename: str = "contract.txt",
        content: bytes = b"supply agreement between parties",
        user_id: str = "user-1",
        content_type: str = "text/plain",
        **fields: str,
    ):
        return client.simulate_post(
            "/v1/documents",
            body=multipart_body(filename, content, content_type, **fields),
            headers=upload_headers(user_id),
        )

    return _upload
