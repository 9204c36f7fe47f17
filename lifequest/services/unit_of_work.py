"""Transaction boundary for service methods."""

import functools
from typing import Any, Callable, TypeVar

F = TypeVar("F", bound=Callable[..., Any])


def rollback_on_error(method: F) -> F:
    """Roll back ``self._db`` when the wrapped method raises.

    Services stage their writes, publish events, then commit. Any error on
    the way, including a failed event delivery, discards the staged writes
    so the session is clean for the next call.
    """

    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        try:
            return method(self, *args, **kwargs)
        except Exception:
            self._db.rollback()
            raise

    return wrapper  # type: ignore[return-value]
