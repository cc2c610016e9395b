from __future__ import annotations
import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, Protocol, Tuple

import httpx

from .errors import SessionError

log = logging.getLogger("sessionkit.compat")

CompletionHandler = Callable[[Optional[Any], Optional[httpx.Response], Optional[BaseException]], None]


class Task(Protocol):
    task_delegate: Optional[Any]

    def resume(self) -> None:
        ...


class SessionTask:
    """Callback-style task: nothing happens until ``resume()``."""

    def __init__(
        self,
        run: Callable[[Optional[Any]], Awaitable[Tuple[Any, httpx.Response]]],
        completion_handler: CompletionHandler,
        task_delegate: Optional[Any] = None,
    ) -> None:
        self._run = run
        self._completion_handler = completion_handler
        self._future: Optional[asyncio.Future] = None
        self.task_delegate = task_delegate

    @property
    def state(self) -> str:
        if self._future is None:
            return "suspended"
        if self._future.cancelled():
            return "canceled"
        return "completed" if self._future.done() else "running"

    def resume(self) -> None:
        if self._future is not None:
            return
        self._future = asyncio.ensure_future(self._execute())

    def cancel(self) -> None:
        if self._future is not None and not self._future.done():
            self._future.cancel()

    async def _execute(self) -> None:
        try:
            data, response = await self._run(self.task_delegate)
        except asyncio.CancelledError as e:
            self._completion_handler(None, None, e)
            raise
        except Exception as e:
            self._completion_handler(None, None, e)
            return
        self._completion_handler(data, response, None)


async def asyncify(
    task_builder: Callable[[CompletionHandler], Task],
    task_delegate: Optional[Any] = None,
) -> Tuple[Any, httpx.Response]:
    """Await a callback-based task.

    The handler receives ``(data, response, error)``. An error fails the
    await with that error; data and response complete it; anything else is
    ``SessionError.invalid_response()``.
    When ``task_delegate`` is None the delegate the task already carries is kept.
    """
    loop = asyncio.get_running_loop()
    future: asyncio.Future = loop.create_future()

    def handler(data: Optional[Any], response: Optional[httpx.Response], error: Optional[BaseException]) -> None:
        def settle() -> None:
            if future.done():
                return
            if error is not None:
                future.set_exception(error)
            elif data is not None and response is not None:
                future.set_result((data, response))
            else:
                log.debug("task completed without data and without error")
                future.set_exception(SessionError.invalid_response())

        loop.call_soon_threadsafe(settle)

    task = task_builder(handler)
    if task_delegate is not None:
        task.task_delegate = task_delegate
    task.resume()
    try:
        return await future
    except asyncio.CancelledError:
        cancel = getattr(task, "cancel", None)
        if cancel is not None:
            cancel()
        raise
