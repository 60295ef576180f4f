"""
Hot Data Holder

Single shared value that is computed lazily, replaced only through a
serialized mutate() and fanned out to every subscriber in commit order.

- One asyncio.Lock gates the initial computation and every mutation,
  so at most one producer/transform runs at any instant
- Concurrent first readers share one initial computation task
- Each subscriber owns an unbounded queue fed on commit
"""

import asyncio
from contextlib import suppress
from typing import AsyncIterator, Awaitable, Callable, Generic, TypeVar

from remote_config.common.logging_setup import get_service_logger

T = TypeVar("T")

Transform = Callable[[T], Awaitable[T]]


def _consume_exception(task: asyncio.Task) -> None:
    # the awaiting caller may have been cancelled before the task finished
    if not task.cancelled():
        task.exception()


class HotData(Generic[T]):
    """
    Lazily computed, mutex-guarded, broadcast value.

    Example:
        holder = HotData(load_value, logging_tag="config.provider")

        value = await holder.read()
        value = await holder.mutate(refresh)

        async for value in holder.data():
            ...
    """

    def __init__(
        self,
        producer: Callable[[], Awaitable[T]],
        logging_tag: str = "hot_data",
    ):
        self._producer = producer
        self._logger = get_service_logger(logging_tag)

        self._value: T | None = None
        self._seq = 0  # Commit counter, increases by one per replacement
        self._lock = asyncio.Lock()
        self._init_task: asyncio.Task | None = None
        self._subscribers: list[asyncio.Queue] = []

    @property
    def current(self) -> T | None:
        """Committed value, or None before the first computation"""
        return self._value

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    async def read(self) -> T:
        """
        Return the current value, computing it on first access.

        All concurrent first readers await the same computation and see
        the same value or the same exception. A failed initial
        computation is retried by the next read.
        """
        if self._value is not None:
            return self._value

        if self._init_task is None:
            self._init_task = asyncio.get_running_loop().create_task(self._initialize())
            self._init_task.add_done_callback(_consume_exception)

        # Shielded: once started the computation runs to completion
        return await asyncio.shield(self._init_task)

    async def _initialize(self) -> T:
        try:
            async with self._lock:
                if self._value is None:
                    self._logger.debug("Computing initial value")
                    self._commit(await self._producer())
                return self._value
        finally:
            self._init_task = None

    async def mutate(self, transform: Transform) -> T:
        """
        Replace the value with transform(current) under the gate.

        If transform raises, the current value is kept and the error
        propagates to the caller.
        """
        _, value = await self._run_mutation(transform)
        return value

    async def _run_mutation(self, transform: Transform) -> tuple[int, T]:
        task = asyncio.get_running_loop().create_task(self._mutate_locked(transform))
        task.add_done_callback(_consume_exception)
        return await asyncio.shield(task)

    async def _mutate_locked(self, transform: Transform) -> tuple[int, T]:
        await self.read()

        async with self._lock:
            new_value = await transform(self._value)
            seq = self._commit(new_value)
            return seq, new_value

    def _commit(self, value: T) -> int:
        """Publish a new value to every subscriber, in commit order"""
        self._value = value
        self._seq += 1
        for queue in list(self._subscribers):
            queue.put_nowait((self._seq, value))
        return self._seq

    def _attach(self) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue()
        self._subscribers.append(queue)
        return queue

    def _detach(self, queue: asyncio.Queue) -> None:
        with suppress(ValueError):
            self._subscribers.remove(queue)

    async def data(self) -> AsyncIterator[T]:
        """
        Stream the current value, then every later replacement.

        Triggers the initial computation if needed. Runs until the
        consumer stops iterating.
        """
        queue = self._attach()
        try:
            await self.read()
            seq, value = self._seq, self._value
            yield value

            while True:
                item_seq, item = await queue.get()
                if item_seq > seq:
                    seq = item_seq
                    yield item
        finally:
            self._detach(queue)

    async def data_after(self, transform: Transform) -> AsyncIterator[T]:
        """
        Apply transform through mutate(), emit its result, then stream
        every replacement committed after it.
        """
        queue = self._attach()
        try:
            seq, value = await self._run_mutation(transform)
            yield value

            while True:
                item_seq, item = await queue.get()
                if item_seq > seq:
                    seq = item_seq
                    yield item
        finally:
            self._detach(queue)
