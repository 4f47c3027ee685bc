import functools
import time
from typing import Any, Awaitable, Callable, TypeVar

from loguru import logger

R = TypeVar("R")


def log_rpc_call(
    enabled: bool = True,
) -> Callable[[Callable[..., Awaitable[R]]], Callable[..., Awaitable[R]]]:
    """
    Decorator factory that logs the duration and outcome of an upstream RPC call.

    The decorated coroutine must be a method whose instance exposes ``chain_id``
    and whose first positional argument is the JSON-RPC method name.

    Args:
        enabled (bool): Flag to enable or disable logging.

    Returns:
        Callable: A decorator that wraps the target coroutine.
    """

    def decorator(func: Callable[..., Awaitable[R]]) -> Callable[..., Awaitable[R]]:
        @functools.wraps(func)
        async def wrapper(self: Any, method: str, *args: Any, **kwargs: Any) -> R:
            start_time = time.perf_counter()
            try:
                result = await func(self, method, *args, **kwargs)
            except Exception as exc:
                if enabled:
                    logger.warning(
                        f"RPC {method} on chain {self.chain_id} failed after "
                        f"{time.perf_counter() - start_time:f} seconds: {exc}",
                    )
                raise
            if enabled:
                logger.debug(
                    f"RPC {method} on chain {self.chain_id} "
                    f"completed in {time.perf_counter() - start_time:f} seconds",
                )
            return result

        return wrapper

    return decorator
