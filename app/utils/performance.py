"""
Performance monitoring utilities for the Kittens Scoreboard
Provides a timing decorator for service calls
"""

import functools
import time

from flask import current_app, has_app_context

from app.utils.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_SLOW_FUNCTION_THRESHOLD = 1.0


def _slow_threshold():
    if has_app_context():
        return current_app.config.get(
            "SLOW_FUNCTION_THRESHOLD", DEFAULT_SLOW_FUNCTION_THRESHOLD
        )
    return DEFAULT_SLOW_FUNCTION_THRESHOLD


def timer(func):
    """
    Decorator to time function execution

    Args:
        func: Function to time

    Returns:
        Wrapped function with timing
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        start_time = time.perf_counter()
        try:
            result = func(*args, **kwargs)
        except Exception as e:
            execution_time = time.perf_counter() - start_time
            logger.error(
                f"Function {func.__name__} failed after {execution_time:.2f}s: {str(e)}"
            )
            raise

        execution_time = time.perf_counter() - start_time

        # Log slow functions
        threshold = _slow_threshold()
        if execution_time > threshold:
            logger.warning(
                f"Slow function {func.__name__} took {execution_time:.2f}s "
                f"(threshold: {threshold}s)"
            )
        else:
            logger.debug(f"Function {func.__name__} executed in {execution_time:.3f}s")

        return result

    return wrapper
