import logging
import time
from contextlib import contextmanager
from typing import Any, Dict, Iterator

from chartpipe.config.settings import settings

logger = logging.getLogger("chartpipe")
logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))


def format_fields(fields: Dict[str, Any]) -> str:
    """Render ``key=value`` pairs; None values are left out."""
    return " ".join(f"{key}={value}" for key, value in fields.items() if value is not None)


@contextmanager
def timed(operation: str, **kwargs: Any) -> Iterator[None]:
    start = time.perf_counter()
    try:
        yield
    finally:
        duration_ms = (time.perf_counter() - start) * 1000
        logger.info("op=%s duration_ms=%.2f %s", operation, duration_ms, format_fields(kwargs))


def log_event(event: str, **kwargs: Any) -> None:
    logger.info("event=%s %s", event, format_fields(kwargs))


def log_warning(event: str, **kwargs: Any) -> None:
    logger.warning("event=%s %s", event, format_fields(kwargs))


def log_error(event: str, message: str, **kwargs: Any) -> None:
    logger.error("event=%s message=\"%s\" %s", event, message, format_fields(kwargs))
