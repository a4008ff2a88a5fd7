"""Tests for the bearer key gate."""
import pytest
from unittest.mock import AsyncMock, MagicMock

from cloudctrl.middleware.auth import BearerKeyAuth


class TestBearerKeyAuth:
    """Test BearerKeyAuth middleware."""

    @pytest.fixture
    def mock_request(self):
        request = MagicMock()
        request.url = MagicMock()
        request.url.path = "/api/credentials"
        request.headers = {}
        return request

    @pytest.fixture
    def mock_call_next(self):
        return AsyncMock(return_value="response")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("api_key", [None, "", "   "])
    async def test_no_api_key_configured_allows_all(self, mock_request, mock_call_next, api_key):
        middleware = BearerKeyAuth(AsyncMock(), api_key=api_key)

        assert await middleware.dispatch(mock_request, mock_call_next) == "response"
        mock_call_next.assert_called_once_with(mock_request)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("path", ["/health", "/"])
    async def test_public_paths_bypass_auth(self, mock_request, mock_call_next, path):
        middleware = BearerKeyAuth(AsyncMock(), api_key="secret-key")
        mock_request.url.path = path

        assert await middleware.dispatch(mock_request, mock_call_next) == "response"

    @pytest.mark.asyncio
    async def test_valid_token(self, mock_request, mock_call_next):
        middleware = BearerKeyAuth(AsyncMock(), api_key="secret-key")
        mock_request.headers = {"authorization": "Bearer secret-key"}

        assert await middleware.dispatch(mock_request, mock_call_next) == "response"

    @pytest.mark.asyncio
    async def test_scheme_is_case_insensitive(self, mock_request, mock_call_next):
        middleware = BearerKeyAuth(AsyncMock(), api_key="secret-key")
        mock_request.headers = {"authorization": "bearer secret-key"}

        assert await middleware.dispatch(mock_request, mock_call_next) == "response"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "header",
        [None, "Bearer wrong-key", "Basic secret-key", "secret-key", "Bearer secret-ke"],
    )
    async def test_rejects_missing_or_wrong_token(self, mock_request, mock_call_next, header):
        middleware = BearerKeyAuth(AsyncMock(), api_key="secret-key")
        if header is not None:
            mock_request.headers = {"authorization": header}

        response = await middleware.dispatch(mock_request, mock_call_next)

        assert response.status_code == 401
        mock_call_next.assert_not_called()
