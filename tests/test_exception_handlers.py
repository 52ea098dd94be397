"""Tests for global exception handlers.

Validates that all exception types are handled consistently with
proper HTTP status codes, error format, and no information leakage.
"""

import asyncio
import json
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from bookexport.core.errors import AppError, GenerationAppError, ValidationAppError
from bookexport.core.exception_handlers import general_exception_handler, setup_exception_handlers


@pytest.fixture
def app_with_handlers() -> FastAPI:
    app = FastAPI()
    setup_exception_handlers(app)
    return app


@pytest.fixture
def client(app_with_handlers: FastAPI) -> TestClient:
    return TestClient(app_with_handlers, raise_server_exceptions=False)


class TestAppErrorHandler:
    def test_validation_error_returns_400(self, client: TestClient, app_with_handlers: FastAPI):
        @app_with_handlers.get("/test-validation")
        async def test_endpoint():
            raise ValidationAppError(code="invalid_book", message="Book has no title")

        response = client.get("/test-validation")

        assert response.status_code == 400
        data = response.json()
        assert data["error"]["code"] == "invalid_book"
        assert data["error"]["message"] == "Book has no title"
        assert "request_id" in data["error"]
        assert "details" not in data["error"]

    def test_generation_error_returns_500_with_details(
        self, client: TestClient, app_with_handlers: FastAPI
    ):
        @app_with_handlers.get("/test-generation")
        async def test_endpoint():
            raise GenerationAppError(
                code="epub_generation_failed",
                message="The EPUB file could not be generated.",
                details={"book_slug": "Candide", "error_type": "MemoryError"},
            )

        response = client.get("/test-generation")

        assert response.status_code == 500
        data = response.json()
        assert data["error"]["code"] == "epub_generation_failed"
        assert data["error"]["details"] == {"book_slug": "Candide", "error_type": "MemoryError"}


class TestGeneralExceptionHandler:
    def test_unexpected_exception_returns_generic_500(
        self, client: TestClient, app_with_handlers: FastAPI
    ):
        @app_with_handlers.get("/test-crash")
        async def test_endpoint():
            raise RuntimeError("zip writer exploded at offset 42")

        response = client.get("/test-crash")

        assert response.status_code == 500
        data = response.json()
        assert data["error"]["code"] == "internal_server_error"
        assert "offset 42" not in response.text

    def test_general_exception_handler_never_leaks_stack_trace(self):
        request = AsyncMock()
        request.url.path = "/test"
        request.method = "GET"

        response = asyncio.run(general_exception_handler(request, ValueError("secret detail")))

        body = bytes(response.body).decode()
        data = json.loads(body)
        assert response.status_code == 500
        assert "Traceback" not in body
        assert "ValueError" not in body
        assert "secret detail" not in data["error"]["message"]


def test_setup_registers_handlers(app_with_handlers: FastAPI):
    assert AppError in app_with_handlers.exception_handlers
    assert Exception in app_with_handlers.exception_handlers


def test_app_error_str_is_message():
    error = ValidationAppError(code="x", message="readable message")

    assert str(error) == "readable message"
