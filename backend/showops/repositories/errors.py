"""Translate driver-level failures into the domain's typed errors."""

from collections.abc import Iterator
from contextlib import contextmanager

import structlog
from sqlalchemy.exc import SQLAlchemyError

from showops.core.exceptions import CollaboratorUnavailableError

logger = structlog.get_logger(__name__)


@contextmanager
def unavailable_on_error(collaborator: str) -> Iterator[None]:
    """Re-raise any SQLAlchemy error as CollaboratorUnavailableError.

    Example:
        with unavailable_on_error("timecards"):
            async with self.session_factory() as session:
                ...
    """
    try:
        yield
    except SQLAlchemyError as exc:
        logger.warning(
            "repository_unavailable",
            collaborator=collaborator,
            error=str(exc),
            error_type=type(exc).__name__,
        )
        raise CollaboratorUnavailableError(collaborator, exc) from exc
