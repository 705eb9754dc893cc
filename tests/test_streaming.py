"""Unit tests for streamed reply assembly."""
import asyncio

import pytest

from nexus.config import CHAT_ERROR_PREFIX
from nexus.errors import SessionNotFoundError, StreamInProgressError, TransportError
from nexus.sessions import StreamAssembler


async def fragments(*items, gate: asyncio.Event | None = None):
    for item in items:
        if isinstance(item, Exception):
            raise item
        if gate is not None and item is gate:
            await gate.wait()
            continue
        await asyncio.sleep(0)
        yield item


@pytest.fixture
async def session_id(registry) -> str:
    return await registry.create_session("Nexus", "flash", "Hello!")


class TestStreamAssembler:
    """Tests for StreamAssembler."""

    @pytest.mark.asyncio
    async def test_fragments_concatenate_in_order(self, registry, session_id):
        """Test that fragments form one model message in arrival order."""
        assembler = StreamAssembler(registry)

        message = await assembler.assemble(session_id, fragments("Hel", "lo, ", "world!"))

        session = registry.get(session_id)
        assert message.text == "Hello, world!"
        assert session.last_message is message
        assert len(session.messages) == 2
        assert not assembler.is_streaming(session_id)

    @pytest.mark.asyncio
    async def test_message_grows_in_place(self, registry, session_id):
        """Test that listeners see the reply grow fragment by fragment."""
        assembler = StreamAssembler(registry)
        seen = []
        registry.subscribe(lambda sid: seen.append(registry.get(sid).last_message.text))

        await assembler.assemble(session_id, fragments("a", "b", "c"))

        assert seen == ["", "a", "ab", "abc"]

    @pytest.mark.asyncio
    async def test_empty_stream_leaves_empty_reply(self, registry, session_id):
        """Test that a stream with no fragments still appends the model message."""
        message = await StreamAssembler(registry).assemble(session_id, fragments())

        assert message.text == ""
        assert len(registry.get(session_id).messages) == 2

    @pytest.mark.asyncio
    async def test_mid_stream_error_appends_apology(self, registry, session_id):
        """Test that a failure keeps partial text and records the error."""
        assembler = StreamAssembler(registry)

        with pytest.raises(TransportError, match="connection reset"):
            await assembler.assemble(session_id, fragments("Part", RuntimeError("connection reset")))

        messages = registry.get(session_id).messages
        assert messages[-2].text == "Part"
        assert messages[-1].text == f"{CHAT_ERROR_PREFIX}connection reset"
        assert not assembler.is_streaming(session_id)

    @pytest.mark.asyncio
    async def test_error_without_detail(self, registry, session_id):
        """Test that an error with no message gets a generic apology."""
        with pytest.raises(TransportError):
            await StreamAssembler(registry).assemble(session_id, fragments(RuntimeError()))

        assert registry.get(session_id).last_message.text == f"{CHAT_ERROR_PREFIX}An error occurred."

    @pytest.mark.asyncio
    async def test_fragments_follow_bound_session(self, registry, session_id):
        """Test that switching the active session does not redirect fragments."""
        assembler = StreamAssembler(registry)
        gate = asyncio.Event()
        task = asyncio.create_task(assembler.assemble(session_id, fragments("one ", gate, "two", gate=gate)))
        await asyncio.sleep(0.01)

        other = await registry.create_session("Nexus", "flash", "Other")
        gate.set()
        await task

        assert registry.active_id == other
        assert registry.get(session_id).last_message.text == "one two"
        assert len(registry.get(other).messages) == 1

    @pytest.mark.asyncio
    async def test_deleted_session_drops_fragments(self, registry, session_id):
        """Test that fragments for a deleted session are discarded quietly."""
        assembler = StreamAssembler(registry)
        gate = asyncio.Event()
        task = asyncio.create_task(assembler.assemble(session_id, fragments("one ", gate, "two", gate=gate)))
        await asyncio.sleep(0.01)

        await registry.delete_session(session_id)
        gate.set()
        await task

        assert session_id not in registry
        assert session_id not in [s.id for s in registry.list_sessions()]

    @pytest.mark.asyncio
    async def test_one_stream_per_session(self, registry, session_id):
        """Test that a second stream to a streaming session is rejected."""
        assembler = StreamAssembler(registry)
        gate = asyncio.Event()
        task = asyncio.create_task(assembler.assemble(session_id, fragments(gate, "done", gate=gate)))
        await asyncio.sleep(0.01)

        assert assembler.is_streaming(session_id)
        assert assembler.streaming_sessions == frozenset({session_id})
        with pytest.raises(StreamInProgressError):
            await assembler.assemble(session_id, fragments("late"))

        gate.set()
        await task
        assert registry.get(session_id).last_message.text == "done"

    @pytest.mark.asyncio
    async def test_unknown_session(self, registry):
        """Test that assembling into an unknown session raises SessionNotFoundError."""
        assembler = StreamAssembler(registry)

        with pytest.raises(SessionNotFoundError):
            await assembler.assemble("missing", fragments("x"))

        assert not assembler.is_streaming("missing")
