"""Unit tests for the throttled decision sink."""

import asyncio

import pytest

from agentstream.streaming.consumer import decision_key, stream_to_sink
from agentstream.streaming.decisions import MessageDecision, MessageRole
from tests.unit.streaming.conftest import async_iter


def assistant(msg_id, message, tool_call_id=None):
    return MessageDecision(id=msg_id, role=MessageRole.ASSISTANT, message=message, tool_call_id=tool_call_id)


class TestDecisionKey:
    def test_prefers_tool_call_id(self):
        assert decision_key(assistant("m1", "", tool_call_id="tc_1")) == "tc_1"

    def test_falls_back_to_message_id(self):
        assert decision_key(assistant("m1", "")) == "m1"


class TestStreamToSink:
    @pytest.mark.asyncio
    async def test_burst_delivers_first_and_final(self):
        decisions = [assistant("m1", "H"), assistant("m1", "He"), assistant("m1", "Hel"), assistant("m1", "Hello")]
        received = []

        consumed = await stream_to_sink(async_iter(decisions), received.append, delay=10.0)

        assert consumed == 4
        assert [d.message for d in received] == ["H", "Hello"]

    @pytest.mark.asyncio
    async def test_keys_throttled_independently(self):
        decisions = [
            assistant("m1", "a", tool_call_id="tc_1"),
            assistant("m1", "b", tool_call_id="tc_2"),
            assistant("m1", "c", tool_call_id="tc_1"),
        ]
        received = []

        await stream_to_sink(async_iter(decisions), received.append, delay=10.0)

        assert [(d.tool_call_id, d.message) for d in received] == [("tc_1", "a"), ("tc_2", "b"), ("tc_1", "c")]

    @pytest.mark.asyncio
    async def test_flushes_when_source_fails(self):
        async def failing():
            yield assistant("m1", "partial")
            yield assistant("m1", "partial more")
            raise RuntimeError("provider exploded")

        received = []
        with pytest.raises(RuntimeError):
            await stream_to_sink(failing(), received.append, delay=10.0)

        assert [d.message for d in received] == ["partial", "partial more"]

    @pytest.mark.asyncio
    async def test_trailing_delivered_during_slow_stream(self):
        async def slow():
            yield assistant("m1", "one")
            yield assistant("m1", "two")
            await asyncio.sleep(0.08)
            yield assistant("m2", "other")

        received = []
        await stream_to_sink(slow(), received.append, delay=0.05)

        assert [d.message for d in received] == ["one", "two", "other"]

    @pytest.mark.asyncio
    async def test_default_delay_from_settings(self, test_settings):
        received = []

        consumed = await stream_to_sink(async_iter([assistant("m1", "x")]), received.append)

        assert consumed == 1
        assert received[0].message == "x"
