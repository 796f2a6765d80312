"""
Concurrent fan-out of independent lookups.
"""

import asyncio
from typing import Any, Awaitable, Dict


async def parallel(operations: Dict[str, Awaitable[Any]]) -> Dict[str, Any]:
    """
    Run named independent operations concurrently.

    Args:
        operations: Mapping of result name to awaitable

    Returns:
        Mapping of result name to result, once every operation has completed

    Raises:
        The first exception raised by any operation. Operations still
        running at that point are cancelled.
    """
    names = list(operations)
    tasks = [asyncio.ensure_future(operation) for operation in operations.values()]
    try:
        results = await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            if not task.done():
                task.cancel()
        raise
    return dict(zip(names, results))
