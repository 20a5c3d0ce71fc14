import asyncio

import pytest

from stream.commands import (CommandChannel, SelectLanguage, StartDetection,
                             StopDetection)


@pytest.mark.asyncio
async def test_commands_are_applied_in_order():
    channel = CommandChannel()
    applied = []

    async def handler(command):
        applied.append(command)
        await asyncio.sleep(0)
        return len(applied)

    consumer = asyncio.create_task(channel.run(handler))
    try:
        results = await asyncio.gather(
            channel.call(StartDetection()),
            channel.call(SelectLanguage("fr")),
            channel.call(StopDetection()),
        )
    finally:
        consumer.cancel()
        with pytest.raises(asyncio.CancelledError):
            await consumer

    assert applied == [StartDetection(), SelectLanguage("fr"), StopDetection()]
    assert results == [1, 2, 3]


@pytest.mark.asyncio
async def test_handler_error_is_returned_to_caller_and_loop_survives():
    channel = CommandChannel()

    async def handler(command):
        if isinstance(command, StopDetection):
            raise RuntimeError("cannot stop")
        return "ok"

    consumer = asyncio.create_task(channel.run(handler))
    try:
        with pytest.raises(RuntimeError):
            await channel.call(StopDetection())
        assert await channel.call(StartDetection()) == "ok"
    finally:
        consumer.cancel()
        with pytest.raises(asyncio.CancelledError):
            await consumer
