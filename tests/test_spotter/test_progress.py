"""Tests for thoughtspot_mcp.spotter.progress."""

from __future__ import annotations

import asyncio
from unittest.mock import MagicMock

from thoughtspot_mcp.spotter.progress import ProgressChannel, ProgressUpdate


class TestEmit:
    def test_steps_by_ten(self):
        sink = MagicMock(return_value=None)
        channel = ProgressChannel(sink)
        channel.emit("one")
        channel.emit("two")
        updates = [c.args[0] for c in sink.call_args_list]
        assert updates == [
            ProgressUpdate("one", 10.0, 100.0),
            ProgressUpdate("two", 20.0, 100.0),
        ]

    def test_clamped_to_total(self):
        channel = ProgressChannel(step=40.0)
        values = [channel.emit(str(i)).progress for i in range(4)]
        assert values == [40.0, 80.0, 100.0, 100.0]
        assert channel.current == 100.0

    def test_without_sink(self):
        assert ProgressChannel().emit("hello").message == "hello"

    def test_sync_sink_failure_is_swallowed(self):
        channel = ProgressChannel(MagicMock(side_effect=RuntimeError("closed")))
        update = channel.emit("still fine")
        assert update.progress == 10.0


class TestAsyncSink:
    def test_async_sink_is_scheduled(self):
        received = []

        async def sink(update):
            received.append(update.message)

        async def run():
            channel = ProgressChannel(sink)
            channel.emit("a")
            channel.emit("b")
            await channel.drain()

        asyncio.run(run())
        assert received == ["a", "b"]

    def test_async_sink_failure_does_not_propagate(self):
        async def sink(update):
            raise ConnectionError("client went away")

        async def run():
            channel = ProgressChannel(sink)
            channel.emit("a")
            await channel.drain()
            return channel.current

        assert asyncio.run(run()) == 10.0
