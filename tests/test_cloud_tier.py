"""Tests for CloudModelTier response normalization and error translation."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from tierflow.orchestration.backends.mock import MockCompletionClient
from tierflow.orchestration.errors import TierError, TierErrorKind
from tierflow.orchestration.models import ModelRequestOptions, TierId
from tierflow.orchestration.tiers.cloud import CloudModelTier


def tier_returning(value) -> CloudModelTier:
    client = MockCompletionClient()
    client.complete = AsyncMock(return_value=value)
    return CloudModelTier(client)


def tier_raising(exc: Exception) -> CloudModelTier:
    client = MockCompletionClient()
    client.complete = AsyncMock(side_effect=exc)
    return CloudModelTier(client)


class TestResponseNormalization:

    async def test_plain_string_has_zero_usage(self):
        response = await tier_returning("cloud says hi").make_request("p", ModelRequestOptions())

        assert response.text == "cloud says hi"
        assert response.tier_id is TierId.CLOUD
        assert response.token_usage.input_tokens == 0
        assert response.token_usage.output_tokens == 0

    async def test_mapping_with_openai_usage_names(self):
        raw = {"content": "ok", "usage": {"prompt_tokens": 12, "completion_tokens": 3}}
        response = await tier_returning(raw).make_request("p", ModelRequestOptions())

        assert response.text == "ok"
        assert response.token_usage.input_tokens == 12
        assert response.token_usage.output_tokens == 3
        assert response.token_usage.cache_read_tokens is None

    async def test_object_with_input_output_usage_names(self):
        raw = SimpleNamespace(
            content="ok",
            usage=SimpleNamespace(input_tokens=7, output_tokens=2, cache_read_tokens=5),
        )
        response = await tier_returning(raw).make_request("p", ModelRequestOptions())

        assert response.token_usage.input_tokens == 7
        assert response.token_usage.output_tokens == 2
        assert response.token_usage.cache_read_tokens == 5

    async def test_missing_content_becomes_empty_text(self):
        response = await tier_returning({"usage": {}}).make_request("p", ModelRequestOptions())
        assert response.text == ""

    async def test_non_text_content_is_invalid_response(self):
        with pytest.raises(TierError) as exc_info:
            await tier_returning({"content": ["a", "b"]}).make_request("p", ModelRequestOptions())
        assert exc_info.value.kind is TierErrorKind.INVALID_RESPONSE
        assert exc_info.value.tier is TierId.CLOUD

    async def test_options_forwarded_to_client(self):
        client = MockCompletionClient()
        client.complete = AsyncMock(return_value="ok")
        tier = CloudModelTier(client)

        await tier.make_request(
            "p", ModelRequestOptions(max_tokens=50, temperature=0.3, stop_sequences=["\n\n"])
        )

        client.complete.assert_awaited_once_with(
            "p", max_tokens=50, temperature=0.3, stop=["\n\n"]
        )

    async def test_mock_client_end_to_end(self):
        client = MockCompletionClient()
        response = await CloudModelTier(client).make_request("two words", ModelRequestOptions())

        assert response.text.startswith("[MOCK] Deterministic cloud response")
        assert response.token_usage.input_tokens == 2
        assert client.call_count == 1


class TestErrorTranslation:

    async def test_client_error_is_wrapped(self):
        with pytest.raises(TierError) as exc_info:
            await tier_raising(RuntimeError("API Error")).make_request("p", ModelRequestOptions())

        err = exc_info.value
        assert err.message == "Cloud model request failed: API Error"
        assert err.tier is TierId.CLOUD
        assert err.kind is TierErrorKind.BACKEND
        assert err.status_code is None

    async def test_status_code_attribute_is_kept(self):
        exc = RuntimeError("rate limited")
        exc.status_code = 429
        with pytest.raises(TierError) as exc_info:
            await tier_raising(exc).make_request("p", ModelRequestOptions())
        assert exc_info.value.status_code == 429

    async def test_status_code_read_from_response(self):
        exc = RuntimeError("server error")
        exc.response = SimpleNamespace(status_code=503)
        with pytest.raises(TierError) as exc_info:
            await tier_raising(exc).make_request("p", ModelRequestOptions())
        assert exc_info.value.status_code == 503
