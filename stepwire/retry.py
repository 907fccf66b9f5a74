"""Retry helpers for actions that poll external state."""

import functools
import random
import time
from typing import Any, Callable, Optional, Tuple, Type, Union

from stepwire.context import ExecutionContext
from stepwire.exceptions import CommandError, TaskCancelledError
from stepwire.logging_config import get_logger

logger = get_logger("retry")

RetryOn = Union[Type[BaseException], Tuple[Type[BaseException], ...]]


def retry_call(
    func: Callable[[], Any],
    max_attempts: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    backoff_factor: float = 1.0,
    jitter: bool = False,
    retry_on: RetryOn = (CommandError, ConnectionError, TimeoutError),
    ctx: Optional[ExecutionContext] = None,
    operation_name: Optional[str] = None,
) -> Any:
    """Call ``func`` until it succeeds or ``max_attempts`` is exhausted.

    Args:
        func: Zero-argument callable to invoke
        max_attempts: Maximum number of attempts
        base_delay: Delay in seconds after the first failure
        max_delay: Upper bound for the delay
        backoff_factor: Multiplier applied to the delay per attempt;
            1.0 keeps a fixed delay
        jitter: Add up to 10% random delay
        retry_on: Exception types that trigger another attempt
        ctx: When given, waits are cut short by cancellation
        operation_name: Name used in log messages

    Raises:
        TaskCancelledError: If ``ctx`` is cancelled while waiting
        The last exception from ``func`` once attempts are exhausted; other
        exception types are raised immediately.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")
    name = operation_name or getattr(func, "__name__", "operation")

    for attempt in range(max_attempts):
        try:
            result = func()
            if attempt > 0:
                logger.info(f"{name} succeeded after {attempt + 1} attempts")
            return result
        except retry_on as e:
            if attempt == max_attempts - 1:
                logger.error(
                    f"{name} failed after {max_attempts} attempts: {str(e)}",
                    extra={"attempts": max_attempts, "final_error": str(e)},
                )
                raise

            delay = min(base_delay * (backoff_factor**attempt), max_delay)
            if jitter:
                delay += random.uniform(0, delay * 0.1)

            logger.warning(
                f"{name} failed (attempt {attempt + 1}/{max_attempts}), "
                f"retrying in {delay:.2f}s: {str(e)}",
                extra={
                    "attempt": attempt + 1,
                    "max_attempts": max_attempts,
                    "delay": delay,
                    "error": str(e),
                },
            )

            if ctx is None:
                time.sleep(delay)
            elif ctx.wait(delay):
                logger.info(f"{name} cancelled, stopping retries")
                raise TaskCancelledError(f"{name} cancelled during retry") from e


def exponential_backoff(
    max_attempts: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    backoff_factor: float = 2.0,
    jitter: bool = True,
    retry_on: RetryOn = (CommandError, ConnectionError, TimeoutError),
):
    """
    Decorator for exponential backoff retry with configurable parameters.

    Example:
        @exponential_backoff(max_attempts=5, base_delay=0.5)
        def pull_image(runner, image):
            return runner.run_command("docker", "pull", image)
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            return retry_call(
                lambda: func(*args, **kwargs),
                max_attempts=max_attempts,
                base_delay=base_delay,
                max_delay=max_delay,
                backoff_factor=backoff_factor,
                jitter=jitter,
                retry_on=retry_on,
                operation_name=func.__name__,
            )

        return wrapper

    return decorator
