import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Dict, Optional


@dataclass(frozen=True)
class Settled:
    """Outcome of one branch of a settle_all fan-out."""

    value: Any = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def settle_all(**branches: Awaitable[Any]) -> Dict[str, Settled]:
    """
    Runs named awaitables concurrently and waits for all of them to finish.
    Unlike a plain gather, a failing branch never cancels or hides the others:
    every branch comes back as a Settled holding either its value or its error.
    """
    names = list(branches)
    results = await asyncio.gather(*branches.values(), return_exceptions=True)

    settled: Dict[str, Settled] = {}
    for name, result in zip(names, results):
        if isinstance(result, asyncio.CancelledError):
            raise result
        if isinstance(result, BaseException):
            settled[name] = Settled(error=result)
        else:
            settled[name] = Settled(value=result)
    return settled
