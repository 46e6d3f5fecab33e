"""Tests for Anthropic (Claude) collector."""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from app.collectors.llm_anthropic import API_URL, API_VERSION, AnthropicCollector
from app.core.exceptions import ProviderError


@pytest.fixture
def collector():
    return AnthropicCollector(api_key="sk-ant-test")


def _mock_client(MockClient, resp):
    mock_client = AsyncMock()
    mock_client.post.return_value = resp
    mock_client.__aenter__ = AsyncMock(return_value=mock_client)
    mock_client.__aexit__ = AsyncMock(return_value=False)
    MockClient.return_value = mock_client
    return mock_client


class TestQueryLlm:
    @pytest.mark.asyncio
    async def test_joins_text_blocks(self, collector):
        mock_resp = MagicMock()
        mock_resp.json.return_value = {
            "content": [
                {"type": "text", "text": "HubSpot is free to start. "},
                {"type": "tool_use", "id": "x", "name": "noop", "input": {}},
                {"type": "text", "text": "Salesforce scales well."},
            ],
            "model": "claude-3-5-sonnet-20241022",
            "usage": {"input_tokens": 20, "output_tokens": 30},
        }
        mock_resp.raise_for_status = MagicMock()

        with patch("app.collectors.llm_anthropic.httpx.AsyncClient") as MockClient:
            mock_client = _mock_client(MockClient, mock_resp)
            result = await collector.query_llm("CRM?")

            call = mock_client.post.call_args
            assert call.args[0] == API_URL
            assert call.kwargs["headers"]["x-api-key"] == "sk-ant-test"
            assert call.kwargs["headers"]["anthropic-version"] == API_VERSION
            assert call.kwargs["json"]["messages"] == [{"role": "user", "content": "CRM?"}]

        assert result.text == "HubSpot is free to start. Salesforce scales well."
        assert result.tokens == 50
        assert result.model == "claude-3-5-sonnet-20241022"

    @pytest.mark.asyncio
    async def test_auth_error(self, collector):
        resp_401 = MagicMock()
        resp_401.status_code = 401
        resp_401.text = '{"type":"error","error":{"type":"authentication_error","message":"invalid x-api-key"}}'
        resp_401.json.return_value = {
            "type": "error",
            "error": {"type": "authentication_error", "message": "invalid x-api-key"},
        }
        resp_401.raise_for_status = MagicMock(
            side_effect=httpx.HTTPStatusError("401", request=MagicMock(), response=resp_401),
        )

        with patch("app.collectors.llm_anthropic.httpx.AsyncClient") as MockClient:
            _mock_client(MockClient, resp_401)
            with pytest.raises(ProviderError) as exc_info:
                await collector.query("CRM?")

        assert exc_info.value.status == 401
        assert str(exc_info.value) == "anthropic API error: invalid x-api-key"


class TestProvider:
    def test_defaults(self, collector):
        assert collector.provider == "anthropic"
        assert collector.model == "claude-3-5-sonnet-20241022"
