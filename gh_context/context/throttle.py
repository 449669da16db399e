"""Bounded concurrent execution of coroutines."""

import asyncio
from collections.abc import Awaitable, Callable, Iterable
from typing import Any, TypeVar

T = TypeVar("T")


async def gather_bounded(
    factories: Iterable[Callable[[], Awaitable[T]]], limit: int = 10
) -> list[T | BaseException]:
    """Run coroutine factories with at most ``limit`` in flight.

    New work is admitted until the limit is reached, then one in-flight task
    has to finish before the next is started. Each call has its own admission
    window, so nested calls from inside a running task cannot starve each
    other the way a shared semaphore would.

    Args:
        factories: Zero-argument callables returning awaitables
        limit: Maximum number of simultaneously running tasks

    Returns:
        Results in submission order; a task that raised contributes its
        exception instead of a result, and never cancels its siblings.
    """
    if limit < 1:
        raise ValueError(f"limit must be at least 1, got {limit}")

    tasks: list[asyncio.Task[Any]] = []
    in_flight: set[asyncio.Task[Any]] = set()

    for factory in factories:
        if len(in_flight) >= limit:
            _, in_flight = await asyncio.wait(
                in_flight, return_when=asyncio.FIRST_COMPLETED
            )
        task = asyncio.ensure_future(factory())
        tasks.append(task)
        in_flight.add(task)

    if in_flight:
        await asyncio.wait(in_flight)

    results: list[T | BaseException] = []
    for task in tasks:
        exception = task.exception()
        results.append(exception if exception is not None else task.result())
    return results
