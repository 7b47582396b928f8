"""Request correlation ids.

HTTP requests get theirs from the X-Request-ID header (echoed back, or a
fresh UUID). Work started outside a request, such as a scheduler tick, opens
a ``correlation_scope`` so its log lines and transition records still share
one id.
"""

import uuid
from collections.abc import Iterator
from contextlib import contextmanager

from asgi_correlation_id import CorrelationIdMiddleware
from asgi_correlation_id.context import correlation_id
from fastapi import FastAPI

HEADER_NAME = "X-Request-ID"


def setup_correlation_middleware(app: FastAPI) -> None:
    """Install the middleware. Any client-supplied id is accepted as is."""
    app.add_middleware(
        CorrelationIdMiddleware,
        header_name=HEADER_NAME,
        generator=lambda: str(uuid.uuid4()),
        validator=None,
        transformer=lambda value: value,
    )


def get_correlation_id() -> str | None:
    """The active id, or None outside a request or scope."""
    return correlation_id.get(None)


@contextmanager
def correlation_scope(value: str) -> Iterator[str]:
    """Use ``value`` as the correlation id for the block unless one is already active.

    Yields the id in effect inside the block.
    """
    current = correlation_id.get(None)
    if current:
        yield current
        return

    token = correlation_id.set(value)
    try:
        yield value
    finally:
        correlation_id.reset(token)


__all__ = ["correlation_scope", "get_correlation_id", "setup_correlation_middleware"]
