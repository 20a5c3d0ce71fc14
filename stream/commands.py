"""Typed control messages for the detection coordinator.

The UI never touches the session directly; it posts commands on a
`CommandChannel` and a single consumer task applies them in order, so a
camera switch can never interleave with a start or a stop.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Union

logger = logging.getLogger("vocabary.commands")


@dataclass(frozen=True)
class StartDetection:
    device_id: Optional[str] = None
    facing_mode: Optional[str] = None


@dataclass(frozen=True)
class StopDetection:
    release_camera: bool = False


@dataclass(frozen=True)
class SwitchCamera:
    device_id: str


@dataclass(frozen=True)
class SelectLanguage:
    language_code: str


Command = Union[StartDetection, StopDetection, SwitchCamera, SelectLanguage]
CommandHandler = Callable[[Command], Awaitable[Any]]


class CommandChannel:
    def __init__(self, maxsize: int = 0):
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)

    async def send(self, command: Command) -> asyncio.Future:
        """Queue `command`; the returned future resolves with the handler result."""
        future = asyncio.get_running_loop().create_future()
        await self._queue.put((command, future))
        return future

    async def call(self, command: Command) -> Any:
        """Queue `command` and wait for it to be applied."""
        return await (await self.send(command))

    def pending(self) -> int:
        return self._queue.qsize()

    async def run(self, handler: CommandHandler) -> None:
        """Apply queued commands one at a time until cancelled."""
        while True:
            command, future = await self._queue.get()
            try:
                result = await handler(command)
            except asyncio.CancelledError:
                if not future.done():
                    future.cancel()
                raise
            except Exception as error:
                logger.error(f"Command {type(command).__name__} failed: {error}")
                if not future.done():
                    future.set_exception(error)
            else:
                if not future.done():
                    future.set_result(result)
            finally:
                self._queue.task_done()
