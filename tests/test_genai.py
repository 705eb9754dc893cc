"""Unit tests for the generative service models, factory and Gemini provider."""
from types import SimpleNamespace

import httpx
import pytest
from hypothesis import given
from hypothesis import strategies as st

from nexus.errors import TransportError
from nexus.genai import (
    GenerativeService,
    InlineData,
    Part,
    StoryAudience,
    StoryLength,
    StoryOptions,
    StoryTone,
    StreamingResponse,
    create_generative_service,
)
from nexus.genai.providers.gemini import GeminiService


class TestGenerativeService:
    """Tests for the service interface and factory."""

    def test_service_is_abstract(self):
        """Test that GenerativeService cannot be instantiated directly."""
        with pytest.raises(TypeError):
            GenerativeService()  # type: ignore

    def test_factory_rejects_unknown_provider(self):
        """Test that an unknown provider raises ValueError."""
        with pytest.raises(ValueError, match="Unsupported provider"):
            create_generative_service("openai", api_key="x")

    def test_factory_requires_api_key(self):
        """Test that Gemini without an API key raises TypeError."""
        with pytest.raises(TypeError, match="api_key"):
            create_generative_service("gemini")


class TestInlineData:
    """Tests for inline attachments."""

    def test_data_url(self):
        """Test that a data URL is parsed into MIME type and payload."""
        data = InlineData.from_data_url("data:image/jpeg;base64,AAEC")

        assert data.mime_type == "image/jpeg"
        assert data.to_bytes() == b"\x00\x01\x02"
        assert data.to_data_url() == "data:image/jpeg;base64,AAEC"
        assert data.is_image

    def test_not_a_data_url(self):
        """Test that plain strings are rejected."""
        with pytest.raises(ValueError):
            InlineData.from_data_url("https://example.com/cat.png")

    def test_from_file(self, tmp_path):
        """Test that the MIME type is guessed from the extension."""
        path = tmp_path / "photo.png"
        path.write_bytes(b"\x89PNG")

        data = InlineData.from_file(path)

        assert data.mime_type == "image/png"
        assert data.to_bytes() == b"\x89PNG"

    @given(st.binary(max_size=256))
    def test_bytes_survive_data_url(self, raw: bytes):
        """Property test: bytes are preserved through a data URL."""
        data = InlineData.from_bytes(raw, "image/png")

        assert InlineData.from_data_url(data.to_data_url()).to_bytes() == raw


class TestPart:
    """Tests for message parts."""

    def test_text_or_inline_only(self):
        """Test that a part holds exactly one kind of content."""
        inline = InlineData.from_bytes(b"x", "image/png")

        with pytest.raises(ValueError):
            Part()
        with pytest.raises(ValueError):
            Part(text="hi", inline_data=inline)
        assert Part.from_text("").text == ""


class TestStoryOptions:
    """Tests for story options."""

    def test_defaults(self):
        """Test the default story constraints in the instruction."""
        instruction = StoryOptions().system_instruction()

        assert "Medium story for Teenagers" in instruction
        assert "Fantasy" in instruction
        assert "Adventurous" in instruction

    def test_custom_options(self):
        """Test that every option reaches the instruction."""
        options = StoryOptions(audience=StoryAudience.CHILDREN, tone=StoryTone.WHIMSICAL, length=StoryLength.SHORT)

        assert "Short story for Children" in options.system_instruction()
        assert "Whimsical" in options.system_instruction()


class TestStreamingResponse:
    """Tests for the streaming wrapper."""

    @pytest.mark.asyncio
    async def test_iterates_fragments_and_usage(self):
        """Test that fragments pass through and usage can be attached."""
        async def produce():
            yield "a"
            yield "b"

        response = StreamingResponse(produce())
        collected = [fragment async for fragment in response]
        response.set_usage({"total_tokens": 3})

        assert collected == ["a", "b"]
        assert response.usage == {"total_tokens": 3}


class FakeModels:
    """Stands in for ``client.aio.models``; each script is a list of chunk texts or an error."""

    def __init__(self, scripts: list[list]):
        self.scripts = scripts
        self.calls: list[list] = []

    async def generate_content_stream(self, model, contents, config):
        self.calls.append(contents)
        script = self.scripts.pop(0)

        async def chunks():
            for item in script:
                if isinstance(item, Exception):
                    raise item
                yield SimpleNamespace(usage_metadata=None, candidates=None, text=item)

        return chunks()


class TestGeminiService:
    """Tests for chat history kept by the Gemini provider."""

    @pytest.fixture
    def gemini(self) -> GeminiService:
        return GeminiService(api_key="test-key")

    @pytest.mark.asyncio
    async def test_completed_exchange_recorded(self, gemini):
        """Test that a finished stream adds the user and model turns to the context."""
        models = FakeModels([["Hel", "lo"]])
        gemini._client = SimpleNamespace(aio=SimpleNamespace(models=models))
        context = gemini.create_chat_context("Be brief.")

        response = await gemini.send_streamed(context, [Part.from_text("Hi")])
        fragments = [fragment async for fragment in response]

        assert fragments == ["Hel", "lo"]
        assert [(turn.role, turn.parts[0].text) for turn in context.history] == [
            ("user", "Hi"),
            ("model", "Hello"),
        ]

    @pytest.mark.asyncio
    async def test_failed_stream_leaves_history_unchanged(self, gemini):
        """Test that a stream failing midway records no turns, so requests keep alternating roles."""
        models = FakeModels([["partial", httpx.ReadError("connection reset")], ["fine"]])
        gemini._client = SimpleNamespace(aio=SimpleNamespace(models=models))
        context = gemini.create_chat_context("Be brief.")

        response = await gemini.send_streamed(context, [Part.from_text("first")])
        with pytest.raises(TransportError):
            async for _ in response:
                pass

        assert context.history == []

        response = await gemini.send_streamed(context, [Part.from_text("second")])
        assert [fragment async for fragment in response] == ["fine"]
        assert [content.role for content in models.calls[1]] == ["user"]
        assert [(turn.role, turn.parts[0].text) for turn in context.history] == [
            ("user", "second"),
            ("model", "fine"),
        ]
