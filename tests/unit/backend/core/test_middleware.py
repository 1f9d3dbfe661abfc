"""
Unit Tests for Request Context Middleware.
"""

from unittest.mock import MagicMock, patch

import pytest
from starlette.requests import Request
from starlette.responses import Response

from adminui.backend.core.middleware import RequestContextMiddleware

CONTEXTVARS = "adminui.backend.core.middleware.structlog.contextvars"


@pytest.fixture
def middleware():
    return RequestContextMiddleware(MagicMock())


@pytest.fixture
def mock_request():
    request = MagicMock(spec=Request)
    request.headers = {}
    request.method = "POST"
    request.url = MagicMock()
    request.url.path = "/api/server/execute"
    request.client = MagicMock()
    request.client.host = "127.0.0.1"
    request.state = MagicMock()
    return request


class TestRequestId:
    @pytest.mark.asyncio
    async def test_generated_when_missing(self, middleware, mock_request):
        async def call_next(request):
            return Response("OK")

        with patch(CONTEXTVARS):
            response = await middleware.dispatch(mock_request, call_next)

        assert len(response.headers["X-Request-ID"]) == 36
        assert response.headers["X-Request-ID"] == mock_request.state.request_id

    @pytest.mark.asyncio
    async def test_echoes_client_id(self, middleware, mock_request):
        mock_request.headers = {"X-Request-ID": "req-42"}

        async def call_next(request):
            return Response("OK")

        with patch(CONTEXTVARS):
            response = await middleware.dispatch(mock_request, call_next)

        assert response.headers["X-Request-ID"] == "req-42"
        assert response.headers["X-Response-Time"].endswith("ms")


class TestFrontend:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("header,expected", [("telegram", "telegram"), ("WEB", "web"), ("curl", "unknown")])
    async def test_frontend_header(self, middleware, mock_request, header, expected):
        mock_request.headers = {"X-Frontend-ID": header}

        async def call_next(request):
            return Response("OK")

        with patch(CONTEXTVARS):
            await middleware.dispatch(mock_request, call_next)

        assert mock_request.state.frontend == expected


class TestStructlogContext:
    @pytest.mark.asyncio
    async def test_binds_and_clears(self, middleware, mock_request):
        async def call_next(request):
            return Response("OK")

        with patch(CONTEXTVARS) as mock_ctx:
            await middleware.dispatch(mock_request, call_next)

        kwargs = mock_ctx.bind_contextvars.call_args.kwargs
        assert kwargs["method"] == "POST"
        assert kwargs["path"] == "/api/server/execute"
        assert mock_ctx.clear_contextvars.call_count == 2

    @pytest.mark.asyncio
    async def test_clears_and_reraises_on_exception(self, middleware, mock_request):
        async def call_next(request):
            raise RuntimeError("boom")

        with patch(CONTEXTVARS) as mock_ctx:
            with pytest.raises(RuntimeError):
                await middleware.dispatch(mock_request, call_next)

        assert mock_ctx.clear_contextvars.call_count == 2

    @pytest.mark.asyncio
    async def test_missing_client(self, middleware, mock_request):
        mock_request.client = None

        async def call_next(request):
            return Response("OK")

        with patch(CONTEXTVARS):
            response = await middleware.dispatch(mock_request, call_next)

        assert response.status_code == 200
