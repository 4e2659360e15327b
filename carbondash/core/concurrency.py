"""Run independent blocking calls side by side."""
from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, wait
from typing import Any, Callable, List


def gather(*calls: Callable[[], Any]) -> List[Any]:
    """Run ``calls`` concurrently and return their results in order.

    Every call is allowed to settle before returning. If any of them raised,
    the first exception in submission order is re-raised.
    """
    if not calls:
        return []
    with ThreadPoolExecutor(max_workers=len(calls)) as executor:
        futures = [executor.submit(call) for call in calls]
        wait(futures)
    for future in futures:
        exc = future.exception()
        if exc is not None:
            raise exc
    return [future.result() for future in futures]


__all__ = ["gather"]
