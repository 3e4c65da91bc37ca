"""Unit tests for UpstreamConfig and UpstreamClient."""

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest
import pytest_check as check
from pydantic import ValidationError

from mistral_hub.api.app import create_app, lifespan
from mistral_hub.errors import EmptyResultError, UpstreamError
from mistral_hub.upstream import UpstreamClient, UpstreamConfig
from mistral_hub.upstream.client import (
    DEFAULT_VISION_PROMPT,
    DOCUMENT_SYSTEM_PROMPT,
    OCR_PROMPT,
)
from tests.conftest import FakeOpenAI, connection_error


class TestUpstreamConfig:
    """Tests for UpstreamConfig validation."""

    def test_valid_config_with_all_fields(self) -> None:
        """Config accepts valid values for all fields."""
        config = UpstreamConfig(
            api_key="test-key-12345",
            base_url="http://localhost:9000/v1",
            timeout=30.0,
            max_retries=2,
        )

        check.equal(config.api_key, "test-key-12345")
        check.equal(config.base_url, "http://localhost:9000/v1")
        check.equal(config.timeout, 30.0)
        check.equal(config.max_retries, 2)

    def test_config_with_default_values(self) -> None:
        """Config uses Mistral defaults when only the API key is provided."""
        with patch.dict("os.environ", {}, clear=True):
            config = UpstreamConfig(api_key="test-key")

        check.equal(config.base_url, "https://api.mistral.ai/v1")
        check.equal(config.timeout, 120.0)
        check.equal(config.max_retries, 0)

    def test_config_reads_environment(self) -> None:
        """API key and timeout come from the environment."""
        env = {"MISTRAL_API_KEY": "env-key", "MISTRAL_TIMEOUT": "15"}
        with patch.dict("os.environ", env, clear=True):
            config = UpstreamConfig()

        check.equal(config.api_key, "env-key")
        check.equal(config.timeout, 15.0)

    def test_config_fails_with_missing_api_key(self) -> None:
        """Config raises when the API key is missing."""
        with pytest.raises(ValidationError) as exc_info:
            UpstreamConfig(api_key="")

        assert "MISTRAL_API_KEY environment variable is not set" in str(exc_info.value)

    def test_config_fails_with_whitespace_api_key(self) -> None:
        """Config rejects whitespace-only API key."""
        with pytest.raises(ValidationError):
            UpstreamConfig(api_key="   ")

    def test_config_strips_api_key_whitespace(self) -> None:
        """Config strips leading/trailing whitespace from API key."""
        config = UpstreamConfig(api_key="  test-key  ")

        assert config.api_key == "test-key"

    def test_config_rejects_non_positive_timeout(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            UpstreamConfig(api_key="k", timeout=0)

        assert "timeout" in str(exc_info.value).lower()


class TestUpstreamClientInit:
    """Tests for SDK client construction."""

    @patch("mistral_hub.upstream.client.AsyncOpenAI")
    def test_builds_sdk_client_from_config(self, mock_openai: MagicMock) -> None:
        """Config values are passed to AsyncOpenAI."""
        config = UpstreamConfig(
            api_key="test-key",
            base_url="https://api.mistral.ai/v1",
            timeout=42.0,
        )

        UpstreamClient(config=config)

        mock_openai.assert_called_once_with(
            api_key="test-key",
            base_url="https://api.mistral.ai/v1",
            timeout=42.0,
            max_retries=0,
        )

    async def test_close_releases_sdk_client(self, fake_openai: FakeOpenAI) -> None:
        await UpstreamClient(client=fake_openai).close()

        assert fake_openai.closed is True


class TestChatStream:
    """Tests for open_chat_stream."""

    async def test_yields_non_empty_deltas(
        self, upstream: UpstreamClient, fake_openai: FakeOpenAI
    ) -> None:
        fake_openai.completions.stream_deltas = ["a", None, "", "b"]

        deltas = await upstream.open_chat_stream("m", [{"role": "user", "content": "x"}])

        assert [d async for d in deltas] == ["a", "b"]

    async def test_skips_chunks_without_choices(self, upstream: UpstreamClient) -> None:
        """Usage-only chunks carry no choices and are ignored."""
        chunks = [
            SimpleNamespace(choices=[]),
            SimpleNamespace(choices=[SimpleNamespace(delta=SimpleNamespace(content="z"))]),
        ]

        class Stream:
            async def _gen(self):
                for c in chunks:
                    yield c

            def __aiter__(self):
                return self._gen()

            async def close(self) -> None:
                pass

        deltas = upstream._iter_deltas(Stream())

        assert [d async for d in deltas] == ["z"]

    async def test_joins_chunked_content(
        self, upstream: UpstreamClient, fake_openai: FakeOpenAI
    ) -> None:
        """List-shaped delta content is flattened to text."""
        fake_openai.completions.stream_deltas = [[{"type": "text", "text": "hi"}]]

        deltas = await upstream.open_chat_stream("m", [])

        assert [d async for d in deltas] == ["hi"]

    async def test_open_failure_raises_upstream_error(
        self, upstream: UpstreamClient, fake_openai: FakeOpenAI
    ) -> None:
        fake_openai.completions.open_error = connection_error()

        with pytest.raises(UpstreamError, match="Connection error"):
            await upstream.open_chat_stream("m", [])

    async def test_mid_stream_failure_raises_and_closes(
        self, upstream: UpstreamClient, fake_openai: FakeOpenAI
    ) -> None:
        fake_openai.completions.stream_deltas = ["a"]
        fake_openai.completions.stream_error = connection_error()
        deltas = await upstream.open_chat_stream("m", [])
        received: list[str] = []

        with pytest.raises(UpstreamError):
            async for delta in deltas:
                received.append(delta)

        check.equal(received, ["a"])
        check.is_true(fake_openai.completions.streams[0].closed)


class TestModalRequests:
    """Tests for vision and document request shaping."""

    async def test_describe_image_defaults(
        self, upstream: UpstreamClient, fake_openai: FakeOpenAI
    ) -> None:
        """Default model and prompt are used when none are given."""
        fake_openai.completions.responses = ["A cat."]

        content = await upstream.describe_image("aW1n")

        call = fake_openai.completions.calls[0]
        parts = call["messages"][0]["content"]
        check.equal(content, "A cat.")
        check.equal(call["model"], "pixtral-large-latest")
        check.equal(parts[0], {"type": "text", "text": DEFAULT_VISION_PROMPT})
        check.equal(parts[1]["image_url"]["url"], "data:image/jpeg;base64,aW1n")

    async def test_describe_image_empty_result(
        self, upstream: UpstreamClient, fake_openai: FakeOpenAI
    ) -> None:
        fake_openai.completions.responses = [None]

        with pytest.raises(EmptyResultError, match="No response from vision model"):
            await upstream.describe_image("aW1n", prompt="What is this?")

    async def test_extract_ignores_caller_model(
        self, upstream: UpstreamClient, fake_openai: FakeOpenAI
    ) -> None:
        """OCR always runs on the vision-capable model."""
        fake_openai.completions.responses = ["Page text"]

        text = await upstream.extract_document_text("cGRm")

        call = fake_openai.completions.calls[0]
        parts = call["messages"][0]["content"]
        check.equal(text, "Page text")
        check.equal(call["model"], "pixtral-large-latest")
        check.equal(parts[0]["text"], OCR_PROMPT)
        check.equal(parts[1]["image_url"]["url"], "data:application/pdf;base64,cGRm")

    async def test_extract_empty_text_raises(
        self, upstream: UpstreamClient, fake_openai: FakeOpenAI
    ) -> None:
        fake_openai.completions.responses = [""]

        with pytest.raises(EmptyResultError, match="Failed to extract text from document"):
            await upstream.extract_document_text("cGRm")

    async def test_answer_from_document_prompt(
        self, upstream: UpstreamClient, fake_openai: FakeOpenAI
    ) -> None:
        fake_openai.completions.responses = ["42"]

        answer = await upstream.answer_from_document("The answer is 42.", "What is it?")

        messages = fake_openai.completions.calls[0]["messages"]
        check.equal(answer, "42")
        check.equal(fake_openai.completions.calls[0]["model"], "mistral-large-latest")
        check.equal(messages[0], {"role": "system", "content": DOCUMENT_SYSTEM_PROMPT})
        check.equal(
            messages[1]["content"],
            "Document content:\n\nThe answer is 42.\n\n---\n\nQuestion: What is it?",
        )

    async def test_completion_failure_raises_upstream_error(
        self, upstream: UpstreamClient, fake_openai: FakeOpenAI
    ) -> None:
        fake_openai.completions.responses = [connection_error()]

        with pytest.raises(UpstreamError):
            await upstream.complete("m", [])


class TestLifespanConfiguration:
    """Tests for how startup reports an unusable upstream configuration."""

    async def test_missing_key_reported(self) -> None:
        application = create_app()

        with patch.dict("os.environ", {}, clear=True):
            async with lifespan(application):
                check.is_none(application.state.upstream)
                check.equal(
                    application.state.upstream_error,
                    "MISTRAL_API_KEY environment variable is not set",
                )

    async def test_invalid_timeout_names_the_setting(self) -> None:
        """A bad timeout is not reported as a missing key."""
        application = create_app()
        env = {"MISTRAL_API_KEY": "test-key", "MISTRAL_TIMEOUT": "0"}

        with patch.dict("os.environ", env, clear=True):
            async with lifespan(application):
                error = application.state.upstream_error

        check.is_not_in("MISTRAL_API_KEY", error)
        check.is_in("timeout", error)

    async def test_unparseable_timeout_reported(self) -> None:
        application = create_app()
        env = {"MISTRAL_API_KEY": "test-key", "MISTRAL_TIMEOUT": "soon"}

        with patch.dict("os.environ", env, clear=True):
            async with lifespan(application):
                error = application.state.upstream_error

        check.is_true(error.startswith("Invalid Mistral API configuration"))
        check.is_not_in("MISTRAL_API_KEY", error)
