"""
Unit tests for the FastAPI ASGI application — HTTP endpoints.

Tests GET / (the CRL) and GET /healthz. The cache is a MagicMock injected
through create_app, so the lifespan never builds a real one.
"""

from __future__ import annotations

from datetime import timedelta
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from crl_server import asgi
from crl_server.domain.models import CachedArtifact
from crl_server.railway import ErrorCode, Result
from tests.conftest import EPOCH_START

ARTIFACT = CachedArtifact(payload=b"\x30\x82DER", number=1700000000, generated_at=EPOCH_START)


@pytest.fixture()
def cache() -> MagicMock:
    mock = MagicMock()
    mock.get.return_value = Result.success(ARTIFACT)
    return mock


@pytest.fixture()
def client(cache: MagicMock) -> TestClient:
    """A TestClient without running the lifespan (no real startup)."""
    return TestClient(asgi.create_app(cache=cache), raise_server_exceptions=False)


# ─────────────────────── GET / ───────────────────────


class TestCrlEndpoint:
    def test_serves_crl_with_headers(self, client: TestClient) -> None:
        """
        GIVEN a cache that returns an artifact
        WHEN GET / is called
        THEN the response is 200 with the payload as body
        AND Content-Type application/pkix-crl
        AND Cache-Control max-age=3600.
        """
        response = client.get("/")

        assert response.status_code == 200
        assert response.content == ARTIFACT.payload
        assert response.headers["content-type"] == "application/pkix-crl"
        assert response.headers["cache-control"] == "max-age=3600"

    def test_cache_control_matches_freshness_window(self) -> None:
        assert asgi.CACHE_CONTROL == f"max-age={int(timedelta(hours=1).total_seconds())}"

    def test_every_request_consults_the_cache(self, client: TestClient, cache: MagicMock) -> None:
        client.get("/")
        client.get("/")

        assert cache.get.call_count == 2

    @pytest.mark.parametrize(
        "code",
        [ErrorCode.CREDENTIAL_ERROR, ErrorCode.REGISTRY_ERROR, ErrorCode.SIGNING_ERROR, ErrorCode.TECHNICAL_ERROR],
    )
    def test_regeneration_failure_is_500(
        self, client: TestClient, cache: MagicMock, code: ErrorCode,
    ) -> None:
        """
        GIVEN a cache whose regeneration fails
        WHEN GET / is called
        THEN the response is 500 with a generic body that leaks no details.
        """
        cache.get.return_value = Result.failure(code, "secret detail about /etc/tls.key")

        response = client.get("/")

        assert response.status_code == 500
        assert response.text == "Internal Server Error"
        assert "tls.key" not in response.text

    def test_no_cache_is_503(self) -> None:
        client = TestClient(asgi.create_app(), raise_server_exceptions=False)

        response = client.get("/")

        assert response.status_code == 503

    def test_other_methods_are_rejected(self, client: TestClient, cache: MagicMock) -> None:
        response = client.post("/")

        assert response.status_code == 405
        cache.get.assert_not_called()


# ─────────────────────── GET /healthz ───────────────────────


class TestHealthEndpoint:
    def test_healthz_returns_ok(self, client: TestClient, cache: MagicMock) -> None:
        """
        GIVEN a running app
        WHEN GET /healthz is called
        THEN it returns 200 "ok" without touching the cache.
        """
        response = client.get("/healthz")

        assert response.status_code == 200
        assert response.text == "ok"
        cache.get.assert_not_called()

    def test_healthz_does_not_depend_on_cache(self) -> None:
        client = TestClient(asgi.create_app(), raise_server_exceptions=False)

        assert client.get("/healthz").status_code == 200

    def test_docs_are_disabled(self, client: TestClient) -> None:
        assert client.get("/docs").status_code == 404
        assert client.get("/openapi.json").status_code == 404
