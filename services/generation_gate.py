"""In-process registry of generations that are currently running."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Dict, Tuple, TypeVar

from services.errors import InternalError

T = TypeVar("T")


class InFlightRegistry:
    """Run at most one job per key at a time and share its outcome.

    The first caller for a key becomes the owner and runs the job; callers
    arriving while it runs await the same future and receive the same result
    (or the same exception). The key is released when the job finishes.
    """

    def __init__(self) -> None:
        self._pending: Dict[str, asyncio.Future] = {}

    def is_pending(self, key: str) -> bool:
        return key in self._pending

    async def run(self, key: str, job: Callable[[], Awaitable[T]]) -> Tuple[T, bool]:
        """Run `job` for `key` unless one is already running.

        Returns:
            A tuple `(result, owner)` where `owner` is False for callers that
            joined a job started by someone else.
        """
        pending = self._pending.get(key)
        if pending is not None:
            # shield: a cancelled joiner must not cancel the owner's job
            return await asyncio.shield(pending), False

        future: asyncio.Future = asyncio.get_running_loop().create_future()
        self._pending[key] = future
        try:
            result = await job()
        except asyncio.CancelledError:
            # joiners get an error response instead of being cancelled themselves
            future.set_exception(InternalError(f"Generation for {key!r} was interrupted"))
            future.exception()
            raise
        except Exception as exc:
            future.set_exception(exc)
            # mark retrieved so an unjoined failure is not reported as unhandled
            future.exception()
            raise
        finally:
            self._pending.pop(key, None)

        future.set_result(result)
        return result, True
